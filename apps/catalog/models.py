import re
import uuid
from decimal import Decimal

from django.db import models


class CatalogCategory(models.TextChoices):
    PANEL = "panel", "Panel"
    INVERTER = "inverter", "Inverter"
    STRUCTURE = "structure", "Structure"
    METER = "meter", "Meter"
    CABLE = "cable", "Cable"
    ACDB = "acdb", "ACDB"
    DCDB = "dcdb", "DCDB"
    BATTERY = "battery", "Battery"


def normalize_catalog_label(value: str) -> str:
    return re.sub(r"\s+", " ", (value or "").strip()).upper()


class CatalogItemQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def for_category(self, category):
        return self.filter(category=category)

    def lookup_price(self, category, brand="", size="", item_type=""):
        """Price of the active entry matching the given labels, or None when nothing priced matches."""
        queryset = self.active().for_category(category).exclude(price__isnull=True)
        if brand:
            queryset = queryset.filter(normalized_brand=normalize_catalog_label(brand))
        if size:
            queryset = queryset.filter(normalized_size=normalize_catalog_label(size))
        if item_type:
            queryset = queryset.filter(item_type__iexact=item_type.strip())
        item = queryset.order_by("price").first()
        return item.price if item else None


class CatalogItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    category = models.CharField(max_length=20, choices=CatalogCategory.choices, db_index=True)
    brand = models.CharField(max_length=80, blank=True)
    size = models.CharField(max_length=40, blank=True)
    item_type = models.CharField(max_length=40, blank=True)
    normalized_brand = models.CharField(max_length=80, blank=True, db_index=True)
    normalized_size = models.CharField(max_length=40, blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CatalogItemQuerySet.as_manager()

    class Meta:
        ordering = ["category", "brand", "size"]
        indexes = [
            models.Index(fields=["category", "normalized_brand"], name="catalog_category_brand_idx"),
        ]

    def save(self, *args, **kwargs):
        self.brand = (self.brand or "").strip()
        self.size = (self.size or "").strip()
        self.item_type = (self.item_type or "").strip()
        self.normalized_brand = normalize_catalog_label(self.brand)
        self.normalized_size = normalize_catalog_label(self.size)
        if self.price is not None:
            self.price = Decimal(self.price).quantize(Decimal("0.01"))
        super().save(*args, **kwargs)

    def __str__(self):
        label = " ".join(part for part in [self.brand, self.size, self.item_type] if part)
        return f"{self.category}: {label or '-'}"


INDIAN_STATES = [
    "Andhra Pradesh",
    "Arunachal Pradesh",
    "Assam",
    "Bihar",
    "Chhattisgarh",
    "Goa",
    "Gujarat",
    "Haryana",
    "Himachal Pradesh",
    "Jharkhand",
    "Karnataka",
    "Kerala",
    "Madhya Pradesh",
    "Maharashtra",
    "Manipur",
    "Meghalaya",
    "Mizoram",
    "Nagaland",
    "Odisha",
    "Punjab",
    "Rajasthan",
    "Sikkim",
    "Tamil Nadu",
    "Telangana",
    "Tripura",
    "Uttar Pradesh",
    "Uttarakhand",
    "West Bengal",
    "Andaman and Nicobar Islands",
    "Chandigarh",
    "Dadra and Nagar Haveli and Daman and Diu",
    "Delhi",
    "Jammu and Kashmir",
    "Ladakh",
    "Lakshadweep",
    "Puducherry",
]
