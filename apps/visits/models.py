import uuid

from django.conf import settings
from django.db import models


class VisitStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    COMPLETED = "completed", "Completed"
    INCOMPLETE = "incomplete", "Incomplete"
    REJECTED = "rejected", "Rejected"
    RESCHEDULED = "rescheduled", "Rescheduled"


class VisitQuerySet(models.QuerySet):
    def latest_first(self):
        return self.order_by("-date", "-time", "-created_at")

    def assigned_to(self, visitor):
        return self.filter(assignments__visitor=visitor).distinct()


class Visit(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quotation = models.ForeignKey("quotations.Quotation", on_delete=models.CASCADE, related_name="visits")
    date = models.DateField()
    time = models.TimeField()
    location = models.CharField(max_length=255)
    location_link = models.CharField(max_length=500, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=VisitStatus.choices, default=VisitStatus.PENDING)
    feedback = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)
    length = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    width = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    height = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_visits",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = VisitQuerySet.as_manager()

    class Meta:
        ordering = ["date", "time", "created_at"]
        indexes = [
            models.Index(fields=["quotation", "date", "time"], name="visit_quotation_when_idx"),
            models.Index(fields=["status"], name="visit_status_idx"),
        ]

    def __str__(self):
        return f"Visit {self.quotation_id} {self.date} {self.time} ({self.status})"

    def is_assigned(self, user):
        return self.assignments.filter(visitor=user).exists()


class VisitAssignment(models.Model):
    visit = models.ForeignKey(Visit, on_delete=models.CASCADE, related_name="assignments")
    visitor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="visit_assignments")
    visitor_name = models.CharField(max_length=255, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["visit", "visitor"], name="visit_assignment_unique_visitor"),
        ]

    def __str__(self):
        return f"{self.visitor_name or self.visitor_id} -> {self.visit_id}"


class VisitImage(models.Model):
    visit = models.ForeignKey(Visit, on_delete=models.CASCADE, related_name="images")
    image = models.FileField(upload_to="visits/%Y/%m/")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
