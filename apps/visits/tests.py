import base64
import shutil
import tempfile
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, override_settings
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.common.exceptions import InvalidStateError, ServiceError
from apps.customers.models import Customer
from apps.quotations.models import Quotation
from apps.visits.models import Visit, VisitAssignment, VisitStatus
from apps.visits.transitions import decode_image, plan_transition

User = get_user_model()

IMAGE_BYTES = b"\x89PNG\r\n\x1a\nsite photo"
IMAGE = base64.b64encode(IMAGE_BYTES).decode()
COMPLETE_PAYLOAD = {
    "length": 1200,
    "width": "850.5",
    "height": 300,
    "images": [f"data:image/png;base64,{IMAGE}"],
    "notes": "South facing roof",
}


class VisitTransitionRuleTests(SimpleTestCase):
    def test_approve_only_from_pending(self):
        plan = plan_transition(VisitStatus.PENDING, "approve")
        self.assertEqual(plan.changes, {"status": VisitStatus.APPROVED})
        with self.assertRaises(InvalidStateError):
            plan_transition(VisitStatus.APPROVED, "approve")

    def test_settling_is_allowed_from_pending_or_approved(self):
        for source in (VisitStatus.PENDING, VisitStatus.APPROVED):
            plan = plan_transition(source, "reschedule", {"reason": "Customer away"})
            self.assertEqual(plan.changes["status"], VisitStatus.RESCHEDULED)
            self.assertEqual(plan.changes["feedback"], "Customer away")

    def test_terminal_statuses_refuse_every_action(self):
        for source in (VisitStatus.COMPLETED, VisitStatus.INCOMPLETE, VisitStatus.REJECTED, VisitStatus.RESCHEDULED):
            with self.assertRaises(InvalidStateError):
                plan_transition(source, "reject", {"rejectionReason": "Late"})

    def test_reasons_are_mandatory(self):
        for name, field in (("reject", "rejectionReason"), ("incomplete", "reason"), ("reschedule", "reason")):
            with self.assertRaises(ServiceError) as ctx:
                plan_transition(VisitStatus.PENDING, name, {field: "   "})
            self.assertEqual(ctx.exception.error_code, "VAL_004")
            self.assertEqual(ctx.exception.details[0]["field"], field)

    def test_complete_needs_positive_dimensions_and_an_image(self):
        plan = plan_transition(VisitStatus.PENDING, "complete", COMPLETE_PAYLOAD)
        self.assertEqual(plan.changes["width"], Decimal("850.50"))
        self.assertEqual(plan.changes["notes"], "South facing roof")
        self.assertEqual(plan.images, [(IMAGE_BYTES, "png")])

        for broken in (
            {"height": 0},
            {"length": "abc"},
            {"width": None},
            {"length": "1e30"},
            {"height": "100000000"},
            {"images": []},
            {"images": ["%%%"]},
        ):
            with self.assertRaises(ServiceError) as ctx:
                plan_transition(VisitStatus.APPROVED, "complete", {**COMPLETE_PAYLOAD, **broken})
            self.assertEqual(ctx.exception.error_code, "VAL_004")

    def test_decode_image_accepts_bare_base64(self):
        self.assertEqual(decode_image(IMAGE, 0), (IMAGE_BYTES, "png"))
        jpeg = base64.b64encode(b"\xff\xd8\xff\xe0 roof").decode()
        self.assertEqual(decode_image(f"data:image/jpeg;base64,{jpeg}", 1), (b"\xff\xd8\xff\xe0 roof", "jpg"))

    def test_decode_image_rejects_unsupported_types(self):
        html = base64.b64encode(b"<html><script></script></html>").decode()
        for value in (
            f"data:image/../../evil;base64,{IMAGE}",
            f"data:image/html;base64,{IMAGE}",
            f"data:text/html;base64,{IMAGE}",
            html,
            f"data:image/png;base64,{html}",
        ):
            with self.assertRaises(ServiceError) as ctx:
                decode_image(value, 2)
            self.assertEqual(ctx.exception.error_code, "VAL_004")
            self.assertEqual(ctx.exception.details[0]["field"], "images[2]")


class VisitApiTestCase(APITestCase):
    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.media_override = override_settings(MEDIA_ROOT=self.media_root)
        self.media_override.enable()

        self.dealer = User.objects.create_user(username="dealer", password="dealer123", role="DEALER")
        self.other = User.objects.create_user(username="other", password="other123", role="DEALER")
        self.visitor = User.objects.create_user(
            username="visitor", password="visitor123", role="VISITOR", first_name="Amit", last_name="Singh"
        )
        self.stranger = User.objects.create_user(username="stranger", password="stranger123", role="VISITOR")
        customer = Customer.objects.create(
            dealer=self.dealer,
            first_name="Suresh",
            last_name="Yadav",
            mobile="9812345678",
            street="22 Gomti Nagar",
            city="Lucknow",
            state="Uttar Pradesh",
            pincode="226010",
        )
        self.quotation = Quotation.objects.create(
            id="QT-000001", dealer=self.dealer, customer=customer, system_type="dcr"
        )

    def tearDown(self):
        self.media_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def auth_as(self, username, password):
        response = self.client.post("/api/v1/auth/login/", {"username": username, "password": password}, format="json")
        self.assertEqual(response.status_code, 200)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")

    def schedule(self, date="2030-03-10", time="10:30", visitors=None):
        self.auth_as("dealer", "dealer123")
        response = self.client.post(
            "/api/v1/visits/",
            {
                "quotationId": self.quotation.id,
                "date": date,
                "time": time,
                "location": "22 Gomti Nagar, Lucknow",
                "locationLink": "https://maps.example.com/?q=26.85,80.95",
                "visitors": visitors or [{"visitorId": self.visitor.id}],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        return response.data["id"]


class VisitSchedulingTests(VisitApiTestCase):
    def test_dealer_schedules_visit_with_fixed_assignment(self):
        visit_id = self.schedule()
        visit = Visit.objects.get(pk=visit_id)
        self.assertEqual(visit.status, VisitStatus.PENDING)
        self.assertEqual(visit.created_by, self.dealer)
        assignment = VisitAssignment.objects.get(visit=visit)
        self.assertEqual(assignment.visitor_name, "Amit Singh")
        self.assertTrue(AuditLog.objects.filter(action="visits.visit.create", entity_id=str(visit_id)).exists())

    def test_other_dealer_cannot_schedule_on_foreign_quotation(self):
        self.auth_as("other", "other123")
        response = self.client.post(
            "/api/v1/visits/",
            {
                "quotationId": self.quotation.id,
                "date": "2030-03-10",
                "time": "10:30",
                "location": "Lucknow",
                "visitors": [{"visitorId": self.visitor.id}],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["code"], "RES_001")

    def test_visitors_are_required_and_must_be_visitors(self):
        self.auth_as("dealer", "dealer123")
        base = {"quotationId": self.quotation.id, "date": "2030-03-10", "time": "10:30", "location": "Lucknow"}
        response = self.client.post("/api/v1/visits/", {**base, "visitors": []}, format="json")
        self.assertEqual(response.data["error"]["code"], "VAL_004")
        response = self.client.post("/api/v1/visits/", {**base, "visitors": [{"visitorId": self.other.id}]}, format="json")
        self.assertEqual(response.data["error"]["code"], "VAL_004")

    def test_dealer_deletes_visit(self):
        visit_id = self.schedule()
        response = self.client.delete(f"/api/v1/visits/{visit_id}/")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Visit.objects.exists())
        self.assertTrue(AuditLog.objects.filter(action="visits.visit.delete").exists())

    def test_current_status_follows_latest_visit(self):
        early = self.schedule(date="2030-03-10", time="09:00")
        self.schedule(date="2030-03-10", time="15:00")
        Visit.objects.filter(pk=early).update(status=VisitStatus.COMPLETED)

        response = self.client.get(f"/api/v1/quotations/visit-status/?ids={self.quotation.id},QT-999999")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["currentStatus"], "pending")
        self.assertEqual(response.data[0]["visitCount"], 2)

        response = self.client.get(f"/api/v1/quotations/{self.quotation.id}/visits/")
        self.assertEqual([visit["status"] for visit in response.data], ["completed", "pending"])


class VisitTransitionApiTests(VisitApiTestCase):
    def setUp(self):
        super().setUp()
        self.visit_id = self.schedule()

    def test_dealer_cannot_change_status(self):
        response = self.client.patch(f"/api/v1/visits/{self.visit_id}/approve/", {}, format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"]["code"], "AUTH_004")

    def test_unassigned_visitor_is_refused_without_mutation(self):
        self.auth_as("stranger", "stranger123")
        response = self.client.patch(f"/api/v1/visits/{self.visit_id}/approve/", {}, format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"]["code"], "AUTH_004")
        self.assertEqual(Visit.objects.get(pk=self.visit_id).status, VisitStatus.PENDING)

    def test_empty_rejection_reason_leaves_visit_pending(self):
        self.auth_as("visitor", "visitor123")
        response = self.client.patch(f"/api/v1/visits/{self.visit_id}/reject/", {"rejectionReason": ""}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "VAL_004")
        self.assertEqual(Visit.objects.get(pk=self.visit_id).status, VisitStatus.PENDING)

    def test_approve_then_complete_with_images(self):
        self.auth_as("visitor", "visitor123")
        response = self.client.patch(f"/api/v1/visits/{self.visit_id}/approve/", {}, format="json")
        self.assertEqual(response.data["status"], "approved")

        response = self.client.patch(f"/api/v1/visits/{self.visit_id}/approve/", {}, format="json")
        self.assertEqual(response.data["error"]["code"], "VAL_006")

        response = self.client.patch(f"/api/v1/visits/{self.visit_id}/complete/", COMPLETE_PAYLOAD, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "completed")
        self.assertEqual(response.data["length"], Decimal("1200.00"))
        self.assertEqual(len(response.data["images"]), 1)
        self.assertTrue(AuditLog.objects.filter(action="visits.visit.complete").exists())

        response = self.client.patch(
            f"/api/v1/visits/{self.visit_id}/reschedule/", {"reason": "Rain"}, format="json"
        )
        self.assertEqual(response.data["error"]["code"], "VAL_006")

    def test_complete_rejects_oversized_dimensions_and_foreign_image_types(self):
        self.auth_as("visitor", "visitor123")
        for broken in (
            {"length": "1e30"},
            {"images": [f"data:image/../../evil;base64,{IMAGE}"]},
            {"images": [f"data:image/html;base64,{IMAGE}"]},
        ):
            response = self.client.patch(
                f"/api/v1/visits/{self.visit_id}/complete/", {**COMPLETE_PAYLOAD, **broken}, format="json"
            )
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.data["error"]["code"], "VAL_004")

        visit = Visit.objects.get(pk=self.visit_id)
        self.assertEqual(visit.status, VisitStatus.PENDING)
        self.assertIsNone(visit.length)
        self.assertFalse(visit.images.exists())

    def test_stored_image_name_uses_detected_type(self):
        self.auth_as("visitor", "visitor123")
        payload = {**COMPLETE_PAYLOAD, "images": [f"data:image/jpeg;base64,{IMAGE}"]}
        response = self.client.patch(f"/api/v1/visits/{self.visit_id}/complete/", payload, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(Visit.objects.get(pk=self.visit_id).images.get().image.name.endswith(".png"))

    def test_complete_straight_from_pending(self):
        self.auth_as("visitor", "visitor123")
        response = self.client.patch(f"/api/v1/visits/{self.visit_id}/complete/", COMPLETE_PAYLOAD, format="json")
        self.assertEqual(response.data["status"], "completed")

    def test_incomplete_records_reason(self):
        self.auth_as("visitor", "visitor123")
        response = self.client.patch(
            f"/api/v1/visits/{self.visit_id}/incomplete/", {"reason": "Roof access locked"}, format="json"
        )
        self.assertEqual(response.data["status"], "incomplete")
        self.assertEqual(response.data["feedback"], "Roof access locked")


class VisitorDashboardTests(VisitApiTestCase):
    def test_assigned_visits_and_statistics(self):
        first = self.schedule()
        self.schedule(date="2030-03-11")
        self.schedule(date="2030-03-12", visitors=[{"visitorId": self.stranger.id}])
        Visit.objects.filter(pk=first).update(status=VisitStatus.APPROVED)

        self.auth_as("visitor", "visitor123")
        response = self.client.get("/api/v1/visitors/me/visits/")
        self.assertEqual(response.data["count"], 2)
        summary = response.data["results"][0]["quotation"]
        self.assertEqual(summary["id"], "QT-000001")
        self.assertEqual(summary["customerName"], "Suresh Yadav")

        response = self.client.get("/api/v1/visitors/me/visits/?status=approved")
        self.assertEqual(response.data["count"], 1)

        response = self.client.get("/api/v1/visitors/me/statistics/")
        self.assertEqual(response.data["total"], 2)
        self.assertEqual(response.data["approved"], 1)
        self.assertEqual(response.data["pending"], 1)

        self.assertEqual(self.client.get("/api/v1/visits/").status_code, 403)
