import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from apps.audit.services import record_audit
from apps.catalog.models import CatalogItem
from apps.common.exceptions import ResourceNotFoundError, ServiceError, flatten_errors
from apps.common.permissions import has_capability
from apps.customers.models import Customer
from apps.customers.serializers import CustomerSerializer
from apps.quotations.models import CustomPanel, Quotation, QuotationProduct
from apps.quotations.pricing import apply_discount, compute_component_prices, resolve_pricing
from apps.quotations.serializers import ProductSelectionSerializer, QuotationCreateSerializer

logger = logging.getLogger(__name__)

MONEY_FIELDS = (
    "subtotal",
    "central_subsidy",
    "state_subsidy",
    "total_subsidy",
    "amount_after_subsidy",
    "discount_amount",
    "total_amount",
    "final_amount",
)


def catalog_lookup(category, brand="", size="", item_type=""):
    return CatalogItem.objects.lookup_price(category, brand=brand, size=size, item_type=item_type)


def can_see_all(user):
    return has_capability(user, "quotations.view.all")


def scoped_quotations(user):
    queryset = Quotation.objects.select_related("dealer", "customer", "products").prefetch_related(
        "products__custom_panels"
    )
    if not can_see_all(user):
        queryset = queryset.filter(dealer=user)
    return queryset


def next_quotation_id():
    sequence = Quotation.objects.count() + 1
    candidate = f"QT-{sequence:06d}"
    while Quotation.objects.filter(pk=candidate).exists():
        sequence += 1
        candidate = f"QT-{sequence:06d}"
    return candidate


def _snapshot(quotation):
    data = {name: str(getattr(quotation, name)) for name in MONEY_FIELDS}
    data.update(
        {
            "discount": str(quotation.discount),
            "status": quotation.status,
            "dealer_id": quotation.dealer_id,
            "customer_id": str(quotation.customer_id),
            "system_type": quotation.system_type,
        }
    )
    return data


def resolve_customer(actor, customer_id=None, customer_data=None):
    if customer_data and not customer_id:
        serializer = CustomerSerializer(data=customer_data, context={"dealer": actor})
        serializer.is_valid(raise_exception=True)
        return serializer.save()

    if not customer_id:
        raise ServiceError(
            "Customer ID or customer object is required",
            code="VAL_007",
            details=[{"field": "customerId", "message": "Send customerId or a customer object"}],
        )

    queryset = Customer.objects.all() if can_see_all(actor) else Customer.objects.filter(dealer=actor)
    try:
        customer = queryset.filter(pk=customer_id).first()
    except (ValueError, DjangoValidationError):
        customer = None
    if customer is None:
        raise ResourceNotFoundError("Customer not found")
    return customer


def validate_product_selection(products):
    serializer = ProductSelectionSerializer(data=products or {})
    if not serializer.is_valid():
        raise ServiceError(
            "Invalid product selection",
            code="VAL_005",
            details=flatten_errors(serializer.errors, "products"),
        )
    return serializer.validated_data


def save_product_selection(quotation, selection, components, central_subsidy, state_subsidy):
    fields = {key: value for key, value in selection.items() if key != "custom_panels"}
    fields.update(
        {
            "central_subsidy": central_subsidy,
            "state_subsidy": state_subsidy,
            "panel_price": components.panel,
            "inverter_price": components.inverter,
            "structure_price": components.structure,
            "cable_price": components.cable,
            "meter_price": components.meter,
            "acdb_dcdb_price": components.acdb_dcdb,
            "battery_price": components.battery,
        }
    )
    product, _ = QuotationProduct.objects.update_or_create(quotation=quotation, defaults=fields)
    product.custom_panels.all().delete()
    CustomPanel.objects.bulk_create(
        [CustomPanel(product=product, **panel) for panel in selection.get("custom_panels") or []]
    )
    return product


@transaction.atomic
def create_quotation(*, actor, payload):
    request = QuotationCreateSerializer(data=payload)
    request.is_valid(raise_exception=True)
    data = request.validated_data

    customer = resolve_customer(actor, data.get("customerId"), data.get("customer"))
    selection = validate_product_selection(data["products"])
    pricing = resolve_pricing(payload, catalog_lookup=catalog_lookup)

    now = timezone.now()
    quotation = Quotation.objects.create(
        id=next_quotation_id(),
        dealer=actor,
        customer=customer,
        system_type=selection["system_type"],
        discount=data["discount"],
        created_at=now,
        valid_until=now + timedelta(days=settings.QUOTATION_VALIDITY_DAYS),
        **pricing.model_fields(),
    )
    save_product_selection(quotation, selection, pricing.components, pricing.central_subsidy, pricing.state_subsidy)

    record_audit(
        actor=actor,
        action="quotations.quotation.create",
        entity_type="quotation",
        entity_id=quotation.id,
        payload={
            "customer_id": str(customer.id),
            "system_type": quotation.system_type,
            "subtotal": str(quotation.subtotal),
            "total_amount": str(quotation.total_amount),
            "sources": pricing.sources,
        },
    )
    logger.info(
        "Quotation %s created by %s: subtotal=%s final=%s total=%s",
        quotation.id,
        actor.username,
        quotation.subtotal,
        quotation.final_amount,
        quotation.total_amount,
    )
    return quotation


@transaction.atomic
def update_discount(quotation, discount, actor):
    before = _snapshot(quotation)
    quotation.discount = discount
    quotation.discount_amount, quotation.total_amount = apply_discount(quotation.final_amount, discount)
    quotation.save(update_fields=["discount", "discount_amount", "total_amount", "updated_at"])
    record_audit(
        actor=actor,
        action="quotations.quotation.discount",
        entity_type="quotation",
        entity_id=quotation.id,
        payload={"before": before, "after": _snapshot(quotation)},
    )
    return quotation


@transaction.atomic
def update_pricing(quotation, changes, actor):
    before = _snapshot(quotation)
    subtotal = changes.get("subtotal", quotation.subtotal)
    central = changes.get("centralSubsidy", quotation.central_subsidy)
    state = changes.get("stateSubsidy", quotation.state_subsidy)
    discount = changes.get("discount", quotation.discount)

    quotation.subtotal = subtotal
    quotation.central_subsidy = central
    quotation.state_subsidy = state
    quotation.total_subsidy = central + state
    quotation.final_amount = changes.get("finalAmount", subtotal - quotation.total_subsidy)
    quotation.amount_after_subsidy = quotation.final_amount
    quotation.discount = discount
    quotation.discount_amount, quotation.total_amount = apply_discount(quotation.final_amount, discount)
    quotation.save()

    record_audit(
        actor=actor,
        action="quotations.quotation.pricing",
        entity_type="quotation",
        entity_id=quotation.id,
        payload={"before": before, "after": _snapshot(quotation)},
    )
    return quotation


@transaction.atomic
def update_products(quotation, products, actor):
    selection = validate_product_selection(products)
    components = compute_component_prices(products, catalog_lookup=catalog_lookup)
    quotation.system_type = selection["system_type"]
    quotation.save(update_fields=["system_type", "updated_at"])
    save_product_selection(quotation, selection, components, quotation.central_subsidy, quotation.state_subsidy)
    record_audit(
        actor=actor,
        action="quotations.quotation.products",
        entity_type="quotation",
        entity_id=quotation.id,
        payload={"system_type": quotation.system_type, "components": {k: str(v) for k, v in components.as_dict().items()}},
    )
    return quotation


@transaction.atomic
def admin_update(quotation, changes, actor):
    before = _snapshot(quotation)
    for name, value in changes.items():
        setattr(quotation, name, value)

    # A discount edit re-derives the payable amount unless the totals were overwritten in the same call.
    if "discount" in changes and not {"discount_amount", "total_amount"} & changes.keys():
        quotation.discount_amount, quotation.total_amount = apply_discount(quotation.final_amount, quotation.discount)
    quotation.save()

    record_audit(
        actor=actor,
        action="quotations.quotation.admin_update",
        entity_type="quotation",
        entity_id=quotation.id,
        payload={"fields": sorted(changes.keys()), "before": before, "after": _snapshot(quotation)},
    )
    return quotation


def set_status(quotation, status, actor):
    previous = quotation.status
    quotation.status = status
    quotation.save(update_fields=["status", "updated_at"])
    record_audit(
        actor=actor,
        action="quotations.quotation.status",
        entity_type="quotation",
        entity_id=quotation.id,
        payload={"from": previous, "to": status},
    )
    logger.info("Quotation %s status %s -> %s by %s", quotation.id, previous, status, actor.username)
    return quotation
