import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CatalogItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("panel", "Panel"),
                            ("inverter", "Inverter"),
                            ("structure", "Structure"),
                            ("meter", "Meter"),
                            ("cable", "Cable"),
                            ("acdb", "ACDB"),
                            ("dcdb", "DCDB"),
                            ("battery", "Battery"),
                        ],
                        db_index=True,
                        max_length=20,
                    ),
                ),
                ("brand", models.CharField(blank=True, max_length=80)),
                ("size", models.CharField(blank=True, max_length=40)),
                ("item_type", models.CharField(blank=True, max_length=40)),
                ("normalized_brand", models.CharField(blank=True, db_index=True, max_length=80)),
                ("normalized_size", models.CharField(blank=True, max_length=40)),
                ("price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["category", "brand", "size"],
                "indexes": [
                    models.Index(fields=["category", "normalized_brand"], name="catalog_category_brand_idx"),
                ],
            },
        ),
    ]
