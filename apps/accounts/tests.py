from datetime import date
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from rest_framework.test import APITestCase

from apps.accounts.models import DealerProfile, UserRole
from apps.accounts.services import create_user_with_role, resolve_account
from apps.audit.models import AuditLog
from apps.common.exceptions import InactiveAccountError, InvalidCredentialsError

User = get_user_model()


def make_dealer(username="dealer1", password="dealer123", **fields):
    return create_user_with_role(
        role=UserRole.DEALER,
        password=password,
        username=username,
        first_name="Ravi",
        last_name="Kumar",
        mobile="9876543210",
        profile_data={"date_of_birth": date(1990, 5, 17), "city": "Lucknow", "state": "Uttar Pradesh"},
        **fields,
    )


class AccountResolutionTests(APITestCase):
    def test_seeded_admin_resolves_with_admin_role(self):
        call_command("seed_demo_accounts", stdout=StringIO())
        account = resolve_account("admin", "admin123")
        self.assertEqual(account.user.role, "ADMIN")
        self.assertEqual(account.kind, "admin")

    def test_seed_command_is_idempotent(self):
        call_command("seed_demo_accounts", stdout=StringIO())
        call_command("seed_demo_accounts", stdout=StringIO())
        self.assertEqual(User.objects.filter(username="admin").count(), 1)
        self.assertEqual(User.objects.count(), 4)

    def test_wrong_password_and_inactive_account_are_rejected(self):
        dealer = make_dealer()
        with self.assertRaises(InvalidCredentialsError):
            resolve_account("dealer1", "nope")
        with self.assertRaises(InvalidCredentialsError):
            resolve_account("ghost", "dealer123")

        dealer.is_active = False
        dealer.save(update_fields=["is_active"])
        with self.assertRaises(InactiveAccountError):
            resolve_account("dealer1", "dealer123")


class AuthApiTests(APITestCase):
    def setUp(self):
        self.dealer = make_dealer()
        self.manager = create_user_with_role(
            role=UserRole.ACCOUNT_MANAGER, password="manager123", username="manager"
        )

    def test_login_returns_tokens_and_user(self):
        response = self.client.post(
            "/api/v1/auth/login/", {"username": "dealer1", "password": "dealer123"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("token", response.data)
        self.assertIn("refreshToken", response.data)
        self.assertEqual(response.data["user"]["role"], "dealer")
        self.assertTrue(AuditLog.objects.filter(action="auth.login", entity_id=str(self.dealer.id)).exists())

    def test_login_failure_uses_error_envelope(self):
        response = self.client.post(
            "/api/v1/auth/login/", {"username": "dealer1", "password": "bad"}, format="json"
        )
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["error"]["code"], "AUTH_001")

    def test_login_validation_error_lists_fields(self):
        response = self.client.post("/api/v1/auth/login/", {"username": "dealer1"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VAL_004")
        self.assertIn("password", [item["field"] for item in response.data["error"]["details"]])

    def test_account_manager_uses_separate_portal(self):
        portal = self.client.post(
            "/api/v1/auth/login/", {"username": "manager", "password": "manager123"}, format="json"
        )
        self.assertEqual(portal.status_code, 401)

        response = self.client.post(
            "/api/v1/auth/account-management/login/",
            {"username": "manager", "password": "manager123"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["user"]["role"], "account-management")

    def test_refresh_issues_new_access_token(self):
        login = self.client.post(
            "/api/v1/auth/login/", {"username": "dealer1", "password": "dealer123"}, format="json"
        )
        response = self.client.post(
            "/api/v1/auth/refresh/", {"refreshToken": login.data["refreshToken"]}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("token", response.data)
        self.assertGreater(response.data["expiresIn"], 0)

        invalid = self.client.post("/api/v1/auth/refresh/", {"refreshToken": "garbage"}, format="json")
        self.assertEqual(invalid.status_code, 401)
        self.assertEqual(invalid.data["error"]["code"], "AUTH_002")

    def test_protected_endpoint_without_token_is_unauthenticated(self):
        response = self.client.get("/api/v1/dealers/me/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["error"]["code"], "AUTH_003")

    def test_change_password_requires_current_password(self):
        self.client.force_authenticate(self.dealer)
        wrong = self.client.post(
            "/api/v1/auth/change-password/",
            {"currentPassword": "bad", "newPassword": "newpass123"},
            format="json",
        )
        self.assertEqual(wrong.status_code, 401)

        changed = self.client.post(
            "/api/v1/auth/change-password/",
            {"currentPassword": "dealer123", "newPassword": "newpass123"},
            format="json",
        )
        self.assertEqual(changed.status_code, 200)
        self.dealer.refresh_from_db()
        self.assertTrue(self.dealer.check_password("newpass123"))

    def test_forgot_password_matches_date_of_birth(self):
        mismatch = self.client.post(
            "/api/v1/auth/forgot-password/",
            {"username": "dealer1", "dateOfBirth": "1991-01-01", "newPassword": "fresh123"},
            format="json",
        )
        self.assertEqual(mismatch.status_code, 401)

        response = self.client.post(
            "/api/v1/auth/forgot-password/",
            {"username": "dealer1", "dateOfBirth": "1990-05-17", "newPassword": "fresh123"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.dealer.refresh_from_db()
        self.assertTrue(self.dealer.check_password("fresh123"))

    def test_reset_password_with_old_password(self):
        response = self.client.post(
            "/api/v1/auth/reset-password/",
            {"username": "dealer1", "oldPassword": "dealer123", "newPassword": "reset123"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(AuditLog.objects.filter(action="auth.password.reset").exists())


class DealerApiTests(APITestCase):
    registration = {
        "username": "newdealer",
        "password": "secret123",
        "firstName": "Asha",
        "lastName": "Verma",
        "email": "asha@example.com",
        "mobile": "9123456780",
        "gender": "female",
        "dateOfBirth": "1992-03-04",
        "governmentIdType": "pan",
        "governmentIdNumber": "ABCDE1234F",
        "address": {"street": "4 Civil Lines", "city": "Kanpur", "state": "Uttar Pradesh", "pincode": "208001"},
    }

    def test_register_creates_dealer_with_profile(self):
        response = self.client.post("/api/v1/dealers/register/", self.registration, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["role"], "dealer")
        self.assertEqual(response.data["address"]["pincode"], "208001")
        dealer = User.objects.get(username="newdealer")
        self.assertEqual(dealer.role, UserRole.DEALER)
        self.assertEqual(dealer.dealer_profile.government_id_type, "pan")

    def test_register_rejects_bad_mobile_and_duplicate_username(self):
        payload = {**self.registration, "mobile": "12345"}
        response = self.client.post("/api/v1/dealers/register/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("mobile", [item["field"] for item in response.data["error"]["details"]])

        make_dealer(username="newdealer")
        duplicate = self.client.post("/api/v1/dealers/register/", self.registration, format="json")
        self.assertEqual(duplicate.status_code, 400)

    def test_dealer_can_update_own_profile_and_address(self):
        dealer = make_dealer()
        self.client.force_authenticate(dealer)
        response = self.client.patch(
            "/api/v1/dealers/me/",
            {"firstName": "Ravindra", "address": {"street": "1 Hazratganj", "city": "Lucknow", "state": "UP", "pincode": "226001"}},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["firstName"], "Ravindra")
        profile = DealerProfile.objects.get(user=dealer)
        self.assertEqual(profile.street, "1 Hazratganj")

    def test_dealer_lists_active_visitors(self):
        dealer = make_dealer()
        create_user_with_role(role=UserRole.VISITOR, password="visit123", username="v1", first_name="Vik")
        inactive = create_user_with_role(role=UserRole.VISITOR, password="visit123", username="v2")
        inactive.is_active = False
        inactive.save(update_fields=["is_active"])

        self.client.force_authenticate(dealer)
        response = self.client.get("/api/v1/dealers/visitors/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["username"] for row in response.data["results"]], ["v1"])


class AdminAccountApiTests(APITestCase):
    def setUp(self):
        self.admin = create_user_with_role(role=UserRole.ADMIN, password="admin123", username="admin")
        self.dealer = make_dealer()

    def auth_as(self, username, password):
        response = self.client.post(
            "/api/v1/auth/login/", {"username": username, "password": password}, format="json"
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")

    def test_dealer_cannot_manage_accounts(self):
        self.auth_as("dealer1", "dealer123")
        response = self.client.get("/api/v1/admin/dealers/")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"]["code"], "AUTH_004")

    def test_admin_deactivates_and_activates_dealer(self):
        self.auth_as("admin", "admin123")
        response = self.client.patch(f"/api/v1/admin/dealers/{self.dealer.id}/deactivate/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["isActive"])

        response = self.client.patch(f"/api/v1/admin/dealers/{self.dealer.id}/activate/")
        self.assertTrue(response.data["isActive"])
        self.assertTrue(AuditLog.objects.filter(action="accounts.dealer.deactivate").exists())
        self.assertTrue(AuditLog.objects.filter(action="accounts.dealer.activate").exists())

    def test_admin_creates_visitor_and_sets_password(self):
        self.auth_as("admin", "admin123")
        created = self.client.post(
            "/api/v1/admin/visitors/",
            {
                "username": "visitor9",
                "password": "visit123",
                "firstName": "Neha",
                "lastName": "Singh",
                "email": "neha@example.com",
                "mobile": "9000000001",
                "employeeId": "EMP009",
            },
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["employeeId"], "EMP009")
        self.assertNotIn("password", created.data)
        visitor = User.objects.get(username="visitor9")
        self.assertEqual(visitor.visitor_profile.created_by, self.admin)

        response = self.client.put(
            f"/api/v1/admin/visitors/{visitor.id}/password/", {"newPassword": "changed123"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        visitor.refresh_from_db()
        self.assertTrue(visitor.check_password("changed123"))

    def test_visitor_create_requires_password(self):
        self.auth_as("admin", "admin123")
        response = self.client.post(
            "/api/v1/admin/visitors/",
            {"username": "visitor10", "firstName": "A", "lastName": "B", "mobile": "9000000002"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_account_manager_history_lists_own_actions(self):
        manager = create_user_with_role(role=UserRole.ACCOUNT_MANAGER, password="manager123", username="manager")
        self.client.post(
            "/api/v1/auth/account-management/login/",
            {"username": "manager", "password": "manager123"},
            format="json",
        )

        self.auth_as("admin", "admin123")
        response = self.client.get(f"/api/v1/admin/account-managers/{manager.id}/history/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("auth.login", [row["action"] for row in response.data["results"]])

        deactivated = self.client.post(f"/api/v1/admin/account-managers/{manager.id}/deactivate/")
        self.assertFalse(deactivated.data["isActive"])
