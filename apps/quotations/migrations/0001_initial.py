# Generated manually for solar quotations, product selections and drafts.

import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models

import apps.quotations.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Quotation",
            fields=[
                ("id", models.CharField(editable=False, max_length=20, primary_key=True, serialize=False)),
                (
                    "system_type",
                    models.CharField(
                        choices=[
                            ("dcr", "DCR"),
                            ("non-dcr", "Non-DCR"),
                            ("both", "DCR + Non-DCR"),
                            ("hybrid", "Hybrid"),
                            ("customize", "Customize"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("completed", "Completed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("central_subsidy", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("state_subsidy", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_subsidy", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("amount_after_subsidy", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("final_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("valid_until", models.DateTimeField(default=apps.quotations.models.default_valid_until)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="quotations",
                        to="customers.customer",
                    ),
                ),
                (
                    "dealer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="quotations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["dealer", "status"], name="quotation_dealer_status_idx"),
                    models.Index(fields=["status", "created_at"], name="quotation_status_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="QuotationProduct",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "system_type",
                    models.CharField(
                        choices=[
                            ("dcr", "DCR"),
                            ("non-dcr", "Non-DCR"),
                            ("both", "DCR + Non-DCR"),
                            ("hybrid", "Hybrid"),
                            ("customize", "Customize"),
                        ],
                        max_length=20,
                    ),
                ),
                ("panel_brand", models.CharField(blank=True, max_length=80)),
                ("panel_size", models.CharField(blank=True, max_length=40)),
                ("panel_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("dcr_panel_brand", models.CharField(blank=True, max_length=80)),
                ("dcr_panel_size", models.CharField(blank=True, max_length=40)),
                ("dcr_panel_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("non_dcr_panel_brand", models.CharField(blank=True, max_length=80)),
                ("non_dcr_panel_size", models.CharField(blank=True, max_length=40)),
                ("non_dcr_panel_quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("inverter_type", models.CharField(blank=True, max_length=40)),
                ("inverter_brand", models.CharField(blank=True, max_length=80)),
                ("inverter_size", models.CharField(blank=True, max_length=40)),
                ("structure_type", models.CharField(blank=True, max_length=40)),
                ("structure_size", models.CharField(blank=True, max_length=40)),
                ("meter_brand", models.CharField(blank=True, max_length=80)),
                ("ac_cable_brand", models.CharField(blank=True, max_length=80)),
                ("ac_cable_size", models.CharField(blank=True, max_length=40)),
                ("dc_cable_brand", models.CharField(blank=True, max_length=80)),
                ("dc_cable_size", models.CharField(blank=True, max_length=40)),
                ("acdb", models.CharField(blank=True, max_length=40)),
                ("dcdb", models.CharField(blank=True, max_length=40)),
                ("hybrid_inverter", models.CharField(blank=True, max_length=80)),
                ("battery_capacity", models.CharField(blank=True, max_length=40)),
                ("system_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("central_subsidy", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("state_subsidy", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("panel_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("inverter_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("structure_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("cable_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("meter_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("acdb_dcdb_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("battery_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "quotation",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="products",
                        to="quotations.quotation",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="CustomPanel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("brand", models.CharField(max_length=80)),
                ("size", models.CharField(max_length=40)),
                ("quantity", models.PositiveIntegerField()),
                ("panel_type", models.CharField(blank=True, max_length=20)),
                ("price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="custom_panels",
                        to="quotations.quotationproduct",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="QuotationDraft",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "step",
                    models.CharField(
                        choices=[
                            ("customer", "Customer details"),
                            ("products", "Product selection"),
                            ("confirmation", "Confirmation"),
                        ],
                        default="customer",
                        max_length=20,
                    ),
                ),
                ("customer_data", models.JSONField(blank=True, default=dict)),
                ("products_data", models.JSONField(blank=True, default=dict)),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "dealer",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="quotation_draft",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
    ]
