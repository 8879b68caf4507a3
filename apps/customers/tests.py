from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.customers.models import Customer

User = get_user_model()

CUSTOMER_PAYLOAD = {
    "firstName": "Suresh",
    "lastName": "Yadav",
    "mobile": "9812345678",
    "email": "suresh@example.com",
    "address": {"street": "22 Gomti Nagar", "city": "Lucknow", "state": "Uttar Pradesh", "pincode": "226010"},
}


class CustomerModelTests(APITestCase):
    def test_get_or_create_by_mobile_reuses_dealer_customer(self):
        dealer = User.objects.create_user(username="dealer", password="dealer123", role="DEALER")
        fields = {"first_name": "Suresh", "last_name": "Yadav", "street": "1", "city": "A", "state": "B", "pincode": "226010"}
        first, created = Customer.get_or_create_by_mobile(dealer, "9812345678", **fields)
        self.assertTrue(created)

        second, created = Customer.get_or_create_by_mobile(dealer, "+91 98123 45678", **{**fields, "city": "Kanpur"})
        self.assertFalse(created)
        self.assertEqual(first.pk, second.pk)
        second.refresh_from_db()
        self.assertEqual(second.city, "Kanpur")
        self.assertEqual(Customer.objects.count(), 1)

    def test_same_mobile_for_different_dealers_is_separate(self):
        dealer_a = User.objects.create_user(username="a", password="x", role="DEALER")
        dealer_b = User.objects.create_user(username="b", password="x", role="DEALER")
        fields = {"first_name": "S", "last_name": "Y", "street": "1", "city": "A", "state": "B", "pincode": "226010"}
        Customer.get_or_create_by_mobile(dealer_a, "9812345678", **fields)
        Customer.get_or_create_by_mobile(dealer_b, "9812345678", **fields)
        self.assertEqual(Customer.objects.count(), 2)


class CustomerApiTests(APITestCase):
    def setUp(self):
        self.dealer = User.objects.create_user(username="dealer", password="dealer123", role="DEALER")
        self.other = User.objects.create_user(username="other", password="other123", role="DEALER")
        self.admin = User.objects.create_user(username="admin", password="admin123", role="ADMIN")

    def test_create_is_idempotent_by_mobile(self):
        self.client.force_authenticate(self.dealer)
        created = self.client.post("/api/v1/customers/", CUSTOMER_PAYLOAD, format="json")
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["address"]["city"], "Lucknow")
        self.assertEqual(created.data["dealerId"], self.dealer.id)

        again = self.client.post("/api/v1/customers/", CUSTOMER_PAYLOAD, format="json")
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.data["id"], created.data["id"])
        self.assertEqual(Customer.objects.count(), 1)
        self.assertEqual(AuditLog.objects.filter(action="customers.customer.create").count(), 1)

    def test_validation_rejects_bad_mobile_pincode_and_email(self):
        self.client.force_authenticate(self.dealer)
        payload = {
            **CUSTOMER_PAYLOAD,
            "mobile": "98123",
            "email": "not-an-email",
            "address": {**CUSTOMER_PAYLOAD["address"], "pincode": "22601"},
        }
        response = self.client.post("/api/v1/customers/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        fields = {item["field"] for item in response.data["error"]["details"]}
        self.assertIn("mobile", fields)
        self.assertIn("email", fields)
        self.assertIn("address.pincode", fields)

    def test_email_is_optional(self):
        self.client.force_authenticate(self.dealer)
        payload = {key: value for key, value in CUSTOMER_PAYLOAD.items() if key != "email"}
        response = self.client.post("/api/v1/customers/", payload, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["email"], "")

    def test_dealers_only_see_their_customers_and_admin_sees_all(self):
        self.client.force_authenticate(self.dealer)
        self.client.post("/api/v1/customers/", CUSTOMER_PAYLOAD, format="json")
        self.client.force_authenticate(self.other)
        self.client.post("/api/v1/customers/", {**CUSTOMER_PAYLOAD, "mobile": "9000000000"}, format="json")

        self.client.force_authenticate(self.dealer)
        response = self.client.get("/api/v1/customers/")
        self.assertEqual(response.data["count"], 1)
        other_customer = Customer.objects.get(dealer=self.other)
        hidden = self.client.get(f"/api/v1/customers/{other_customer.id}/")
        self.assertEqual(hidden.status_code, 404)
        self.assertEqual(hidden.data["error"]["code"], "RES_001")

        self.client.force_authenticate(self.admin)
        response = self.client.get("/api/v1/customers/?q=suresh")
        self.assertEqual(response.data["count"], 2)

    def test_partial_update_changes_address(self):
        self.client.force_authenticate(self.dealer)
        created = self.client.post("/api/v1/customers/", CUSTOMER_PAYLOAD, format="json")
        response = self.client.patch(
            f"/api/v1/customers/{created.data['id']}/",
            {"address": {**CUSTOMER_PAYLOAD["address"], "city": "Kanpur", "pincode": "208001"}},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["address"]["city"], "Kanpur")
        self.assertTrue(AuditLog.objects.filter(action="customers.customer.update").exists())
