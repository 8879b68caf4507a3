from django.core.management.base import BaseCommand

from apps.catalog.models import CatalogCategory, CatalogItem

DEFAULT_CATALOG = {
    CatalogCategory.PANEL: [
        {"brand": brand, "size": size}
        for brand in ["Adani", "Waaree", "Tata Power Solar", "Vikram Solar"]
        for size in ["440W", "545W", "550W"]
    ],
    CatalogCategory.INVERTER: [
        {"brand": brand, "size": size, "item_type": item_type}
        for brand in ["Growatt", "Sungrow", "Luminous"]
        for size in ["3kW", "5kW", "10kW"]
        for item_type in ["String Inverter", "Hybrid"]
    ],
    CatalogCategory.STRUCTURE: [
        {"size": size, "item_type": item_type}
        for size in ["3kW", "5kW", "10kW"]
        for item_type in ["GI Structure", "Aluminium Structure"]
    ],
    CatalogCategory.METER: [{"brand": "L&T"}, {"brand": "HPL"}, {"brand": "Genus"}],
    CatalogCategory.CABLE: [
        {"brand": brand, "size": size} for brand in ["Polycab", "Havells"] for size in ["4 sq mm", "6 sq mm"]
    ],
    CatalogCategory.ACDB: [{"size": "1 String"}, {"size": "2 String"}],
    CatalogCategory.DCDB: [{"size": "1 String"}, {"size": "2 String"}],
    CatalogCategory.BATTERY: [{"brand": "Exide", "size": "5kWh"}, {"brand": "Luminous", "size": "10kWh"}],
}


class Command(BaseCommand):
    help = "Seed the default solar component catalog (brands, sizes and types)."

    def handle(self, *args, **options):
        created_items = 0
        for category, entries in DEFAULT_CATALOG.items():
            for entry in entries:
                _, created = CatalogItem.objects.get_or_create(
                    category=category,
                    brand=entry.get("brand", ""),
                    size=entry.get("size", ""),
                    item_type=entry.get("item_type", ""),
                )
                if created:
                    created_items += 1

        self.stdout.write(self.style.SUCCESS(f"Seed catalog completed. items_created={created_items}"))
