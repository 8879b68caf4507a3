import logging

from django.db import transaction

from apps.audit.services import record_audit
from apps.catalog.models import CatalogCategory, CatalogItem

logger = logging.getLogger(__name__)


def _distinct(values):
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def build_product_catalog():
    """Active catalog grouped the way the quotation wizard renders its dropdowns."""
    items = list(CatalogItem.objects.active())
    by_category = {choice: [item for item in items if item.category == choice] for choice in CatalogCategory.values}

    def brands(category):
        return _distinct(item.brand for item in by_category[category])

    def sizes(category):
        return _distinct(item.size for item in by_category[category])

    def types(category):
        return _distinct(item.item_type for item in by_category[category])

    return {
        "panels": {"brands": brands("panel"), "sizes": sizes("panel")},
        "inverters": {"types": types("inverter"), "brands": brands("inverter"), "sizes": sizes("inverter")},
        "structures": {"types": types("structure"), "sizes": sizes("structure")},
        "meters": {"brands": brands("meter")},
        "cables": {"brands": brands("cable"), "sizes": sizes("cable")},
        "acdb": {"options": _distinct(item.size or item.item_type for item in by_category["acdb"])},
        "dcdb": {"options": _distinct(item.size or item.item_type for item in by_category["dcdb"])},
        "batteries": {"brands": brands("battery"), "sizes": sizes("battery")},
    }


@transaction.atomic
def replace_category(*, category, items, actor):
    previous = CatalogItem.objects.for_category(category).count()
    CatalogItem.objects.for_category(category).delete()
    created = [CatalogItem.objects.create(**{**item, "category": category}) for item in items]
    record_audit(
        actor=actor,
        action="catalog.items.replace",
        entity_type="catalog_category",
        entity_id=category,
        payload={"removed": previous, "created": len(created)},
    )
    logger.info("Catalog category %s replaced: removed=%s created=%s", category, previous, len(created))
    return created
