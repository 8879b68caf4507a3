from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.catalog.models import CatalogItem

User = get_user_model()


class CatalogConfigTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="admin123", role="ADMIN")
        self.dealer = User.objects.create_user(username="dealer", password="dealer123", role="DEALER")
        CatalogItem.objects.create(category="panel", brand="Adani", size="545W", price=Decimal("14000"))
        CatalogItem.objects.create(category="panel", brand="Waaree", size="545W")
        CatalogItem.objects.create(category="inverter", brand="Growatt", size="5kW", item_type="String Inverter")

    def auth_as(self, username, password):
        response = self.client.post(
            "/api/v1/auth/login/",
            {"username": username, "password": password},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")

    def test_lookup_price_matches_normalized_labels(self):
        self.assertEqual(CatalogItem.objects.lookup_price("panel", brand=" adani ", size="545w"), Decimal("14000.00"))
        self.assertIsNone(CatalogItem.objects.lookup_price("panel", brand="Waaree", size="545W"))
        self.assertIsNone(CatalogItem.objects.lookup_price("inverter", brand="Growatt"))

    def test_config_products_filters_by_category(self):
        self.auth_as("dealer", "dealer123")
        response = self.client.get("/api/v1/config/products/?category=panel")
        self.assertEqual(response.status_code, 200)
        self.assertEqual({row["brand"] for row in response.data}, {"Adani", "Waaree"})

        invalid = self.client.get("/api/v1/config/products/?category=rocket")
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.data["error"]["code"], "VAL_004")

    def test_admin_replaces_category_and_is_audited(self):
        self.auth_as("admin", "admin123")
        response = self.client.put(
            "/api/v1/config/products/",
            {
                "category": "panel",
                "items": [
                    {"brand": "Tata Power Solar", "size": "550W", "price": "15500"},
                    {"brand": "Vikram Solar", "size": "440W"},
                ],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(
            set(CatalogItem.objects.filter(category="panel").values_list("brand", flat=True)),
            {"Tata Power Solar", "Vikram Solar"},
        )
        self.assertEqual(CatalogItem.objects.filter(category="inverter").count(), 1)
        self.assertTrue(AuditLog.objects.filter(action="catalog.items.replace", entity_id="panel").exists())

    def test_dealer_cannot_replace_catalog(self):
        self.auth_as("dealer", "dealer123")
        response = self.client.put(
            "/api/v1/config/products/",
            {"category": "panel", "items": []},
            format="json",
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(CatalogItem.objects.filter(category="panel").count(), 2)

    def test_product_catalog_groups_active_entries(self):
        CatalogItem.objects.create(category="panel", brand="Retired", size="330W", is_active=False)
        self.auth_as("dealer", "dealer123")
        response = self.client.get("/api/v1/quotations/product-catalog/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["panels"]["brands"], ["Adani", "Waaree"])
        self.assertEqual(response.data["panels"]["sizes"], ["545W"])
        self.assertEqual(response.data["inverters"]["types"], ["String Inverter"])

    def test_states_are_public(self):
        response = self.client.get("/api/v1/config/states/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("Uttar Pradesh", response.data)

    def test_seed_catalog_is_idempotent(self):
        call_command("seed_catalog", stdout=StringIO())
        count = CatalogItem.objects.count()
        call_command("seed_catalog", stdout=StringIO())
        self.assertEqual(CatalogItem.objects.count(), count)
