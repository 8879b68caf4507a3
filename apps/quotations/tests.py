from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.catalog.models import CatalogItem
from apps.customers.models import Customer
from apps.quotations.models import Quotation, QuotationDraft, QuotationStatus
from apps.quotations.pricing import (
    PricingValidationError,
    apply_discount,
    compute_component_prices,
    derive_totals,
    payment_schedule,
    resolve_pricing,
)

User = get_user_model()

DCR_PRODUCTS = {
    "systemType": "dcr",
    "panelBrand": "Adani",
    "panelSize": "545W",
    "panelQuantity": 10,
    "inverterType": "String Inverter",
    "inverterBrand": "Growatt",
    "inverterSize": "5kW",
    "structureType": "GI Structure",
    "structureSize": "5kW",
    "centralSubsidy": 78000,
    "stateSubsidy": 10000,
}

CUSTOMER = {
    "firstName": "Suresh",
    "lastName": "Yadav",
    "mobile": "9812345678",
    "email": "suresh@example.com",
    "address": {"street": "22 Gomti Nagar", "city": "Lucknow", "state": "Uttar Pradesh", "pincode": "226010"},
}

ZERO_RATES = {
    "panel_per_watt": 0,
    "inverter_per_kw": 0,
    "structure_per_kw": 0,
    "cable": 0,
    "meter": 0,
    "acdb_dcdb": 0,
}


def quotation_payload(**overrides):
    payload = {
        "customer": CUSTOMER,
        "products": DCR_PRODUCTS,
        "discount": 10,
        "pricing": {
            "subtotal": 236250,
            "centralSubsidy": 78000,
            "stateSubsidy": 10000,
            "totalSubsidy": 88000,
            "amountAfterSubsidy": 148250,
            "discountAmount": 14825,
            "totalAmount": 133425,
            "finalAmount": 148250,
        },
    }
    payload.update(overrides)
    return payload


class ComponentPricingTests(SimpleTestCase):
    def test_reference_dcr_system_prices_to_expected_subtotal(self):
        components = compute_component_prices(DCR_PRODUCTS)
        self.assertEqual(components.panel, Decimal("136250.00"))
        self.assertEqual(components.inverter, Decimal("40000.00"))
        self.assertEqual(components.structure, Decimal("25000.00"))
        self.assertEqual(components.cable, Decimal("15000.00"))
        self.assertEqual(components.meter, Decimal("8000.00"))
        self.assertEqual(components.acdb_dcdb, Decimal("12000.00"))
        self.assertEqual(components.subtotal, Decimal("236250.00"))

    def test_catalog_price_replaces_heuristic(self):
        def lookup(category, brand="", size="", item_type=""):
            return {"panel": Decimal("14000"), "inverter": Decimal("52000")}.get(category)

        components = compute_component_prices(DCR_PRODUCTS, catalog_lookup=lookup)
        self.assertEqual(components.panel, Decimal("140000.00"))
        self.assertEqual(components.inverter, Decimal("52000.00"))
        self.assertEqual(components.structure, Decimal("25000.00"))

    def test_both_and_customize_sum_their_panel_groups(self):
        both = compute_component_prices(
            {
                "systemType": "both",
                "dcrPanelSize": "545W",
                "dcrPanelQuantity": 4,
                "nonDcrPanelSize": "550W",
                "nonDcrPanelQuantity": 2,
            }
        )
        self.assertEqual(both.panel, Decimal("82000.00"))

        custom = compute_component_prices(
            {
                "systemType": "customize",
                "customPanels": [
                    {"brand": "Waaree", "size": "440W", "quantity": 3},
                    {"brand": "Adani", "size": "545W", "quantity": 2, "price": "15000"},
                ],
            }
        )
        self.assertEqual(custom.panel, Decimal("63000.00"))

    def test_hybrid_battery_price_is_included(self):
        components = compute_component_prices({**DCR_PRODUCTS, "systemType": "hybrid", "batteryPrice": "65000"})
        self.assertEqual(components.battery, Decimal("65000.00"))
        self.assertEqual(components.subtotal, Decimal("301250.00"))


class PricingResolverTests(SimpleTestCase):
    def test_resolves_nested_pricing(self):
        resolved = resolve_pricing(quotation_payload())
        self.assertEqual(resolved.subtotal, Decimal("236250.00"))
        self.assertEqual(resolved.total_subsidy, Decimal("88000.00"))
        self.assertEqual(resolved.final_amount, Decimal("148250.00"))
        self.assertEqual(resolved.total_amount, Decimal("133425.00"))
        self.assertEqual(resolved.sources["subtotal"], "pricing.subtotal")

    def test_resolution_is_idempotent(self):
        payload = quotation_payload()
        self.assertEqual(resolve_pricing(payload), resolve_pricing(payload))

    def test_top_level_value_wins_over_nested_ones(self):
        resolved = resolve_pricing(quotation_payload(subtotal="240000"))
        self.assertEqual(resolved.subtotal, Decimal("240000.00"))
        self.assertEqual(resolved.sources["subtotal"], "body.subtotal")

    def test_invalid_candidates_fall_through_to_computed_subtotal(self):
        payload = quotation_payload(subtotal="abc")
        payload["pricing"] = {**payload["pricing"], "subtotal": 0}
        resolved = resolve_pricing(payload)
        self.assertEqual(resolved.subtotal, Decimal("236250.00"))
        self.assertEqual(resolved.sources["subtotal"], "computed")

    def test_subtotal_errors_first_when_nothing_is_positive(self):
        payload = {"products": {"systemType": "dcr"}, "subtotal": "0"}
        with self.assertRaises(PricingValidationError) as ctx:
            resolve_pricing(payload, rates=ZERO_RATES)
        self.assertEqual(ctx.exception.error_code, "VAL_001")
        received = ctx.exception.details[0]["receivedValues"]
        self.assertEqual(received["body.subtotal"], "0")
        self.assertIn("computed", received)

    def test_amounts_beyond_column_range_are_invalid_candidates(self):
        for oversized in ("1e30", "1e11", 10000000000):
            payload = {"products": {"systemType": "dcr"}, "subtotal": oversized, "totalAmount": 1, "finalAmount": 1}
            with self.assertRaises(PricingValidationError) as ctx:
                resolve_pricing(payload, rates=ZERO_RATES)
            self.assertEqual(ctx.exception.error_code, "VAL_001")

        resolved = resolve_pricing({"products": {"systemType": "dcr"}, "subtotal": "1e30", "totalAmount": 1, "finalAmount": 1})
        self.assertEqual(resolved.sources["subtotal"], "computed")
        self.assertEqual(resolved.subtotal, Decimal("35000.00"))

        payload = {"products": {"systemType": "dcr"}, "subtotal": 1000, "totalAmount": "1e30", "finalAmount": 1}
        with self.assertRaises(PricingValidationError) as ctx:
            resolve_pricing(payload)
        self.assertEqual(ctx.exception.error_code, "VAL_002")

    def test_oversized_component_price_is_rejected(self):
        products = {"systemType": "dcr", "panelSize": "545W", "panelQuantity": "9999999999"}
        with self.assertRaises(PricingValidationError) as ctx:
            compute_component_prices(products)
        self.assertEqual(ctx.exception.error_code, "VAL_005")
        self.assertEqual(ctx.exception.details[0]["field"], "products.panel")

    def test_missing_total_amount_is_val_002(self):
        payload = quotation_payload()
        payload["pricing"] = {"subtotal": 236250, "finalAmount": 148250}
        with self.assertRaises(PricingValidationError) as ctx:
            resolve_pricing(payload)
        self.assertEqual(ctx.exception.error_code, "VAL_002")
        self.assertEqual(ctx.exception.details[0]["field"], "totalAmount")
        self.assertEqual(
            set(ctx.exception.details[0]["receivedValues"]),
            {"body.totalAmount", "pricing.totalAmount", "products.totalAmount"},
        )

    def test_missing_final_amount_is_val_003(self):
        payload = quotation_payload()
        payload["pricing"] = {"subtotal": 236250, "totalAmount": 133425}
        with self.assertRaises(PricingValidationError) as ctx:
            resolve_pricing(payload)
        self.assertEqual(ctx.exception.error_code, "VAL_003")

    def test_subsidies_default_to_zero(self):
        payload = {"products": {"systemType": "dcr"}, "subtotal": 1000, "totalAmount": 1000, "finalAmount": 1000}
        resolved = resolve_pricing(payload)
        self.assertEqual(resolved.central_subsidy, Decimal("0.00"))
        self.assertEqual(resolved.total_subsidy, Decimal("0.00"))
        self.assertEqual(resolved.amount_after_subsidy, Decimal("1000.00"))
        self.assertEqual(resolved.sources["totalSubsidy"], "computed")

    def test_derived_totals_and_payment_schedule(self):
        totals = derive_totals(Decimal("236250"), Decimal("88000"), Decimal("10"))
        self.assertEqual(totals["final_amount"], Decimal("148250.00"))
        self.assertEqual(totals["discount_amount"], Decimal("14825.00"))
        self.assertEqual(totals["total_amount"], Decimal("133425.00"))
        self.assertEqual(apply_discount(Decimal("1000"), 0), (Decimal("0.00"), Decimal("1000.00")))

        schedule = payment_schedule(Decimal("100.01"))
        self.assertEqual([phase["phase"] for phase in schedule], ["deposit", "progress", "final"])
        self.assertEqual(sum(phase["amount"] for phase in schedule), Decimal("100.01"))


class QuotationApiTestCase(APITestCase):
    def setUp(self):
        self.dealer = User.objects.create_user(username="dealer", password="dealer123", role="DEALER")
        self.other = User.objects.create_user(username="other", password="other123", role="DEALER")
        self.admin = User.objects.create_user(username="admin", password="admin123", role="ADMIN")
        self.manager = User.objects.create_user(username="accounts", password="accounts123", role="ACCOUNT_MANAGER")

    def auth_as(self, username, password, path="/api/v1/auth/login/"):
        response = self.client.post(path, {"username": username, "password": password}, format="json")
        self.assertEqual(response.status_code, 200)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")

    def create_quotation(self, **overrides):
        response = self.client.post("/api/v1/quotations/", quotation_payload(**overrides), format="json")
        self.assertEqual(response.status_code, 201, response.data)
        return response


class QuotationCreateTests(QuotationApiTestCase):
    def test_create_persists_resolved_pricing_and_products(self):
        self.auth_as("dealer", "dealer123")
        response = self.create_quotation()

        self.assertEqual(response.data["id"], "QT-000001")
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["systemType"], "dcr")
        self.assertEqual(response.data["pricing"]["subtotal"], Decimal("236250.00"))
        self.assertEqual(response.data["pricing"]["totalSubsidy"], Decimal("88000.00"))
        self.assertEqual(response.data["pricing"]["totalAmount"], Decimal("133425.00"))
        self.assertEqual(response.data["products"]["panelPrice"], Decimal("136250.00"))

        quotation = Quotation.objects.get(pk="QT-000001")
        self.assertEqual(quotation.valid_until - quotation.created_at, timedelta(days=5))
        self.assertTrue(AuditLog.objects.filter(action="quotations.quotation.create", entity_id="QT-000001").exists())

    def test_ids_are_sequential(self):
        self.auth_as("dealer", "dealer123")
        self.create_quotation()
        second = self.create_quotation()
        self.assertEqual(second.data["id"], "QT-000002")

    def test_customer_is_reused_by_mobile(self):
        self.auth_as("dealer", "dealer123")
        first = self.create_quotation()
        second = self.create_quotation()
        self.assertEqual(first.data["customerId"], second.data["customerId"])
        self.assertEqual(Customer.objects.count(), 1)

    def test_existing_customer_by_id(self):
        self.auth_as("dealer", "dealer123")
        customer_id = self.create_quotation().data["customerId"]
        response = self.create_quotation(customer=None, customerId=str(customer_id))
        self.assertEqual(response.data["customerId"], customer_id)

    def test_missing_customer_is_val_007(self):
        self.auth_as("dealer", "dealer123")
        payload = quotation_payload()
        payload.pop("customer")
        response = self.client.post("/api/v1/quotations/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VAL_007")

    def test_other_dealers_customer_is_not_found(self):
        self.auth_as("dealer", "dealer123")
        customer_id = self.create_quotation().data["customerId"]
        self.auth_as("other", "other123")
        response = self.client.post(
            "/api/v1/quotations/", quotation_payload(customer=None, customerId=str(customer_id)), format="json"
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["code"], "RES_001")

        response = self.client.post(
            "/api/v1/quotations/", quotation_payload(customer=None, customerId="not-a-uuid"), format="json"
        )
        self.assertEqual(response.data["error"]["code"], "RES_001")

    def test_incomplete_product_selection_is_val_005(self):
        self.auth_as("dealer", "dealer123")
        response = self.client.post(
            "/api/v1/quotations/",
            quotation_payload(products={"systemType": "both", "inverterSize": "5kW"}),
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VAL_005")
        fields = {detail["field"] for detail in response.data["error"]["details"]}
        self.assertIn("products.dcrPanelBrand", fields)
        self.assertIn("products.nonDcrPanelQuantity", fields)
        self.assertFalse(Quotation.objects.exists())

    def test_brand_must_be_in_active_catalog(self):
        CatalogItem.objects.create(category="panel", brand="Waaree", size="545W")
        self.auth_as("dealer", "dealer123")
        response = self.client.post("/api/v1/quotations/", quotation_payload(), format="json")
        self.assertEqual(response.data["error"]["code"], "VAL_005")
        self.assertEqual(response.data["error"]["details"][0]["field"], "products.panelBrand")

    def test_pricing_errors_use_their_codes(self):
        self.auth_as("dealer", "dealer123")
        payload = quotation_payload()
        payload["pricing"] = {"subtotal": 236250, "finalAmount": 148250}
        response = self.client.post("/api/v1/quotations/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VAL_002")
        self.assertIn("receivedValues", response.data["error"]["details"][0])
        self.assertFalse(Customer.objects.exists())

    def test_catalog_price_is_used_for_components(self):
        CatalogItem.objects.create(category="panel", brand="Adani", size="545W", price=Decimal("14000"))
        self.auth_as("dealer", "dealer123")
        response = self.create_quotation()
        self.assertEqual(response.data["products"]["panelPrice"], Decimal("140000.00"))


class QuotationListTests(QuotationApiTestCase):
    def test_dealer_sees_only_own_quotations_and_admin_sees_all(self):
        self.auth_as("dealer", "dealer123")
        self.create_quotation()
        self.auth_as("other", "other123")
        self.create_quotation()

        response = self.client.get("/api/v1/quotations/")
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(self.client.get("/api/v1/quotations/QT-000001/").status_code, 404)

        self.auth_as("admin", "admin123")
        self.assertEqual(self.client.get("/api/v1/quotations/").data["count"], 2)
        self.assertEqual(self.client.get("/api/v1/admin/quotations/?dealerId=%s" % self.dealer.id).data["count"], 1)

    def test_filters_by_status_and_search(self):
        self.auth_as("dealer", "dealer123")
        self.create_quotation()
        Quotation.objects.filter(pk="QT-000001").update(status=QuotationStatus.APPROVED)
        self.create_quotation()

        self.assertEqual(self.client.get("/api/v1/quotations/?status=approved").data["count"], 1)
        self.assertEqual(self.client.get("/api/v1/quotations/?q=Suresh").data["count"], 2)
        self.assertEqual(self.client.get("/api/v1/quotations/?q=nobody").data["count"], 0)


class AdminQuotationTests(QuotationApiTestCase):
    def setUp(self):
        super().setUp()
        self.auth_as("dealer", "dealer123")
        self.quotation_id = self.create_quotation().data["id"]

    def test_dealer_cannot_edit_pricing(self):
        response = self.client.patch(f"/api/v1/quotations/{self.quotation_id}/discount/", {"discount": 5}, format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"]["code"], "AUTH_004")

    def test_discount_edit_recomputes_totals(self):
        self.auth_as("admin", "admin123")
        response = self.client.patch(f"/api/v1/quotations/{self.quotation_id}/discount/", {"discount": 20}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["pricing"]["discountAmount"], Decimal("29650.00"))
        self.assertEqual(response.data["pricing"]["totalAmount"], Decimal("118600.00"))

    def test_pricing_edit_rederives_final_amount(self):
        self.auth_as("admin", "admin123")
        response = self.client.patch(
            f"/api/v1/quotations/{self.quotation_id}/pricing/",
            {"subtotal": 250000, "stateSubsidy": 20000},
            format="json",
        )
        pricing = response.data["pricing"]
        self.assertEqual(pricing["totalSubsidy"], Decimal("98000.00"))
        self.assertEqual(pricing["finalAmount"], Decimal("152000.00"))
        self.assertEqual(pricing["totalAmount"], Decimal("136800.00"))

    def test_pricing_edit_rejects_subsidy_above_subtotal(self):
        self.auth_as("admin", "admin123")
        response = self.client.patch(
            f"/api/v1/quotations/{self.quotation_id}/pricing/", {"centralSubsidy": 230000}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VAL_004")
        self.assertEqual(response.data["error"]["details"][0]["field"], "centralSubsidy")

        quotation = Quotation.objects.get(pk=self.quotation_id)
        self.assertEqual(quotation.central_subsidy, Decimal("78000.00"))
        self.assertEqual(quotation.final_amount, Decimal("148250.00"))

    def test_products_edit_replaces_selection(self):
        self.auth_as("admin", "admin123")
        products = {**DCR_PRODUCTS, "panelQuantity": 12}
        response = self.client.patch(
            f"/api/v1/quotations/{self.quotation_id}/products/", {"products": products}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["products"]["panelQuantity"], 12)
        self.assertEqual(response.data["products"]["panelPrice"], Decimal("163500.00"))
        self.assertEqual(response.data["pricing"]["subtotal"], Decimal("236250.00"))

    def test_admin_override_keeps_discount_when_totals_change(self):
        self.auth_as("admin", "admin123")
        response = self.client.patch(
            f"/api/v1/admin/quotations/{self.quotation_id}/",
            {"totalAmount": 120000, "dealerId": self.other.id},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["dealerId"], self.other.id)
        self.assertEqual(response.data["discount"], Decimal("10.00"))
        self.assertEqual(response.data["pricing"]["totalAmount"], Decimal("120000.00"))

        response = self.client.patch(f"/api/v1/admin/quotations/{self.quotation_id}/", {"discount": 0}, format="json")
        self.assertEqual(response.data["pricing"]["totalAmount"], Decimal("148250.00"))

    def test_status_can_move_freely_and_is_audited(self):
        self.auth_as("admin", "admin123")
        for target in ("approved", "rejected", "pending", "completed"):
            response = self.client.patch(
                f"/api/v1/admin/quotations/{self.quotation_id}/status/", {"status": target}, format="json"
            )
            self.assertEqual(response.data["status"], target)
        self.assertEqual(AuditLog.objects.filter(action="quotations.quotation.status").count(), 4)

        response = self.client.patch(
            f"/api/v1/admin/quotations/{self.quotation_id}/status/", {"status": "archived"}, format="json"
        )
        self.assertEqual(response.data["error"]["code"], "VAL_004")


class AccountManagementTests(QuotationApiTestCase):
    def test_only_approved_quotations_with_payment_schedule(self):
        self.auth_as("dealer", "dealer123")
        self.create_quotation()
        self.create_quotation()
        Quotation.objects.filter(pk="QT-000002").update(status=QuotationStatus.APPROVED)

        self.auth_as("accounts", "accounts123", path="/api/v1/auth/account-management/login/")
        response = self.client.get("/api/v1/account-management/quotations/")
        self.assertEqual(response.data["count"], 1)
        quotation = response.data["results"][0]
        self.assertEqual(quotation["id"], "QT-000002")
        amounts = [phase["amount"] for phase in quotation["paymentSchedule"]]
        self.assertEqual(amounts, [Decimal("26685.00"), Decimal("80055.00"), Decimal("26685.00")])

        self.assertEqual(self.client.get("/api/v1/quotations/").status_code, 403)


class QuotationDraftTests(QuotationApiTestCase):
    def setUp(self):
        super().setUp()
        self.auth_as("dealer", "dealer123")

    def test_wizard_walks_to_a_quotation(self):
        response = self.client.post("/api/v1/quotations/draft/customer/", {"customer": CUSTOMER}, format="json")
        self.assertEqual(response.data["step"], "products")

        response = self.client.post(
            "/api/v1/quotations/draft/products/", {"products": DCR_PRODUCTS, "discount": 10}, format="json"
        )
        self.assertEqual(response.data["step"], "confirmation")

        response = self.client.post("/api/v1/quotations/draft/confirm/", {}, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["pricing"]["subtotal"], Decimal("236250.00"))
        self.assertEqual(response.data["pricing"]["finalAmount"], Decimal("148250.00"))
        self.assertEqual(response.data["pricing"]["totalAmount"], Decimal("133425.00"))
        self.assertFalse(QuotationDraft.objects.exists())

    def test_back_keeps_entered_data_without_validation(self):
        self.client.post("/api/v1/quotations/draft/customer/", {"customer": CUSTOMER}, format="json")
        self.client.post("/api/v1/quotations/draft/products/", {"products": DCR_PRODUCTS}, format="json")

        response = self.client.post("/api/v1/quotations/draft/back/", {}, format="json")
        self.assertEqual(response.data["step"], "products")
        self.assertEqual(response.data["products"]["panelSize"], "545W")
        self.assertEqual(response.data["customer"]["customer"]["mobile"], "9812345678")

    def test_each_step_validates_its_own_input(self):
        response = self.client.post(
            "/api/v1/quotations/draft/products/", {"products": DCR_PRODUCTS}, format="json"
        )
        self.assertEqual(response.data["error"]["code"], "VAL_006")

        response = self.client.post(
            "/api/v1/quotations/draft/customer/", {"customer": {**CUSTOMER, "mobile": "123"}}, format="json"
        )
        self.assertEqual(response.data["error"]["code"], "VAL_004")
        self.assertEqual(self.client.get("/api/v1/quotations/draft/").data["step"], "customer")

        self.client.post("/api/v1/quotations/draft/customer/", {"customer": CUSTOMER}, format="json")
        response = self.client.post(
            "/api/v1/quotations/draft/products/", {"products": {"systemType": "dcr"}}, format="json"
        )
        self.assertEqual(response.data["error"]["code"], "VAL_005")

        response = self.client.post("/api/v1/quotations/draft/confirm/", {}, format="json")
        self.assertEqual(response.data["error"]["code"], "VAL_006")

    def test_discard_draft(self):
        self.client.post("/api/v1/quotations/draft/customer/", {"customer": CUSTOMER}, format="json")
        self.assertEqual(self.client.delete("/api/v1/quotations/draft/").status_code, 204)
        self.assertEqual(self.client.get("/api/v1/quotations/draft/").data["step"], "customer")


class StatisticsTests(QuotationApiTestCase):
    def test_dealer_and_admin_statistics(self):
        self.auth_as("dealer", "dealer123")
        self.create_quotation()
        self.create_quotation()
        Quotation.objects.filter(pk="QT-000001").update(status=QuotationStatus.APPROVED)

        response = self.client.get("/api/v1/dealers/me/statistics/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["totalQuotations"], 2)
        self.assertEqual(response.data["byStatus"]["approved"], 1)
        self.assertEqual(response.data["approvedValue"], Decimal("133425.00"))
        self.assertEqual(response.data["totalCustomers"], 1)
        self.assertEqual(self.client.get("/api/v1/admin/statistics/").status_code, 403)

        self.auth_as("admin", "admin123")
        response = self.client.get("/api/v1/admin/statistics/")
        self.assertEqual(response.data["totalValue"], Decimal("266850.00"))
        self.assertEqual(response.data["byDealer"][0]["dealer__username"], "dealer")
        self.assertEqual(response.data["accounts"]["dealers"], 2)

        response = self.client.get("/api/v1/admin/statistics/?startDate=2030-01-02&endDate=2030-01-01")
        self.assertEqual(response.data["error"]["code"], "VAL_004")
