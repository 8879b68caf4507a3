import uuid

from django.db import models


def normalize_mobile(value):
    digits = "".join(ch for ch in str(value or "") if ch.isdigit())
    # Strip the Indian country code so +91 98765 43210 and 9876543210 collide.
    if len(digits) == 12 and digits.startswith("91"):
        digits = digits[2:]
    return digits


class Customer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    dealer = models.ForeignKey("accounts.User", on_delete=models.PROTECT, related_name="customers")
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    mobile = models.CharField(max_length=10)
    email = models.EmailField(blank=True)
    street = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    pincode = models.CharField(max_length=6)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    UPSERT_FIELDS = ("first_name", "last_name", "email", "street", "city", "state", "pincode")

    class Meta:
        ordering = ["-updated_at"]
        constraints = [
            models.UniqueConstraint(fields=["dealer", "mobile"], name="unique_customer_mobile_per_dealer"),
        ]
        indexes = [
            models.Index(fields=["mobile"], name="customer_mobile_idx"),
            models.Index(fields=["last_name", "first_name"], name="customer_name_idx"),
        ]

    def save(self, *args, **kwargs):
        self.mobile = normalize_mobile(self.mobile)
        self.first_name = str(self.first_name or "").strip()
        self.last_name = str(self.last_name or "").strip()
        self.email = str(self.email or "").strip()
        super().save(*args, **kwargs)

    @classmethod
    def get_or_create_by_mobile(cls, dealer, mobile, **fields):
        """Reuse the dealer's customer with this mobile, refreshing any details that changed."""
        normalized = normalize_mobile(mobile)
        customer = cls.objects.filter(dealer=dealer, mobile=normalized).first()
        if customer is None:
            return cls.objects.create(dealer=dealer, mobile=normalized, **fields), True

        updated_fields = []
        for name in cls.UPSERT_FIELDS:
            value = str(fields.get(name) or "").strip()
            if value and getattr(customer, name) != value:
                setattr(customer, name, value)
                updated_fields.append(name)
        if updated_fields:
            updated_fields.append("updated_at")
            customer.save(update_fields=updated_fields)
        return customer, False

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return f"{self.full_name} ({self.mobile})"
