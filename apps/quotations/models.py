from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class QuotationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    COMPLETED = "completed", "Completed"


class SystemType(models.TextChoices):
    DCR = "dcr", "DCR"
    NON_DCR = "non-dcr", "Non-DCR"
    BOTH = "both", "DCR + Non-DCR"
    HYBRID = "hybrid", "Hybrid"
    CUSTOMIZE = "customize", "Customize"


def default_valid_until():
    return timezone.now() + timedelta(days=settings.QUOTATION_VALIDITY_DAYS)


def money_field(**kwargs):
    return models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"), **kwargs)


class Quotation(models.Model):
    id = models.CharField(primary_key=True, max_length=20, editable=False)
    dealer = models.ForeignKey("accounts.User", on_delete=models.PROTECT, related_name="quotations")
    customer = models.ForeignKey("customers.Customer", on_delete=models.PROTECT, related_name="quotations")
    system_type = models.CharField(max_length=20, choices=SystemType.choices)
    status = models.CharField(max_length=20, choices=QuotationStatus.choices, default=QuotationStatus.PENDING)
    discount = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    subtotal = money_field()
    central_subsidy = money_field()
    state_subsidy = money_field()
    total_subsidy = money_field()
    amount_after_subsidy = money_field()
    discount_amount = money_field()
    total_amount = money_field()
    final_amount = money_field()
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    valid_until = models.DateTimeField(default=default_valid_until)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["dealer", "status"], name="quotation_dealer_status_idx"),
            models.Index(fields=["status", "created_at"], name="quotation_status_created_idx"),
        ]

    def __str__(self):
        return f"{self.id} ({self.status})"


class QuotationProduct(models.Model):
    quotation = models.OneToOneField(Quotation, on_delete=models.CASCADE, related_name="products")
    system_type = models.CharField(max_length=20, choices=SystemType.choices)
    panel_brand = models.CharField(max_length=80, blank=True)
    panel_size = models.CharField(max_length=40, blank=True)
    panel_quantity = models.PositiveIntegerField(null=True, blank=True)
    dcr_panel_brand = models.CharField(max_length=80, blank=True)
    dcr_panel_size = models.CharField(max_length=40, blank=True)
    dcr_panel_quantity = models.PositiveIntegerField(null=True, blank=True)
    non_dcr_panel_brand = models.CharField(max_length=80, blank=True)
    non_dcr_panel_size = models.CharField(max_length=40, blank=True)
    non_dcr_panel_quantity = models.PositiveIntegerField(null=True, blank=True)
    inverter_type = models.CharField(max_length=40, blank=True)
    inverter_brand = models.CharField(max_length=80, blank=True)
    inverter_size = models.CharField(max_length=40, blank=True)
    structure_type = models.CharField(max_length=40, blank=True)
    structure_size = models.CharField(max_length=40, blank=True)
    meter_brand = models.CharField(max_length=80, blank=True)
    ac_cable_brand = models.CharField(max_length=80, blank=True)
    ac_cable_size = models.CharField(max_length=40, blank=True)
    dc_cable_brand = models.CharField(max_length=80, blank=True)
    dc_cable_size = models.CharField(max_length=40, blank=True)
    acdb = models.CharField(max_length=40, blank=True)
    dcdb = models.CharField(max_length=40, blank=True)
    hybrid_inverter = models.CharField(max_length=80, blank=True)
    battery_capacity = models.CharField(max_length=40, blank=True)
    system_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    central_subsidy = money_field()
    state_subsidy = money_field()
    panel_price = money_field()
    inverter_price = money_field()
    structure_price = money_field()
    cable_price = money_field()
    meter_price = money_field()
    acdb_dcdb_price = money_field()
    battery_price = money_field()

    def __str__(self):
        return f"Products({self.quotation_id})"


class CustomPanel(models.Model):
    product = models.ForeignKey(QuotationProduct, on_delete=models.CASCADE, related_name="custom_panels")
    brand = models.CharField(max_length=80)
    size = models.CharField(max_length=40)
    quantity = models.PositiveIntegerField()
    panel_type = models.CharField(max_length=20, blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    class Meta:
        ordering = ["id"]


class DraftStep(models.TextChoices):
    CUSTOMER = "customer", "Customer details"
    PRODUCTS = "products", "Product selection"
    CONFIRMATION = "confirmation", "Confirmation"


DRAFT_STEP_ORDER = [DraftStep.CUSTOMER, DraftStep.PRODUCTS, DraftStep.CONFIRMATION]


class QuotationDraft(models.Model):
    dealer = models.OneToOneField("accounts.User", on_delete=models.CASCADE, related_name="quotation_draft")
    step = models.CharField(max_length=20, choices=DraftStep.choices, default=DraftStep.CUSTOMER)
    customer_data = models.JSONField(default=dict, blank=True)
    products_data = models.JSONField(default=dict, blank=True)
    discount = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Draft({self.dealer_id}, {self.step})"
