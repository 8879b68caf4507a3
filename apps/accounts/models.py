from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    ADMIN = "ADMIN", "Admin"
    DEALER = "DEALER", "Dealer"
    VISITOR = "VISITOR", "Visitor"
    ACCOUNT_MANAGER = "ACCOUNT_MANAGER", "Account Manager"


# Wire-format role names the client understands.
ROLE_SLUGS = {
    UserRole.ADMIN: "admin",
    UserRole.DEALER: "dealer",
    UserRole.VISITOR: "visitor",
    UserRole.ACCOUNT_MANAGER: "account-management",
}


class User(AbstractUser):
    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.DEALER)
    mobile = models.CharField(max_length=15, blank=True)

    @property
    def role_slug(self):
        return ROLE_SLUGS.get(self.role, "dealer")

    @property
    def display_name(self):
        full_name = self.get_full_name()
        return full_name or self.username


class DealerProfile(models.Model):
    user = models.OneToOneField("accounts.User", on_delete=models.CASCADE, related_name="dealer_profile")
    gender = models.CharField(max_length=20, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    father_name = models.CharField(max_length=150, blank=True)
    father_contact = models.CharField(max_length=15, blank=True)
    government_id_type = models.CharField(max_length=40, blank=True)
    government_id_number = models.CharField(max_length=40, blank=True)
    street = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=6, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"DealerProfile({self.user.username})"


class VisitorProfile(models.Model):
    user = models.OneToOneField("accounts.User", on_delete=models.CASCADE, related_name="visitor_profile")
    employee_id = models.CharField(max_length=40, blank=True)
    created_by = models.ForeignKey(
        "accounts.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_visitors",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"VisitorProfile({self.user.username})"
