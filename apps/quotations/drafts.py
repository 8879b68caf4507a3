"""Server-side quotation wizard.

One draft per dealer walks ``customer -> products -> confirmation``. Each
forward step validates only its own input; going back keeps whatever was
entered and validates nothing.
"""

import logging

from django.db import transaction

from apps.common.exceptions import InvalidStateError
from apps.customers.serializers import CustomerSerializer
from apps.quotations.models import DRAFT_STEP_ORDER, DraftStep, QuotationDraft
from apps.quotations.pricing import build_pricing_payload
from apps.quotations.services import catalog_lookup, create_quotation, resolve_customer, validate_product_selection

logger = logging.getLogger(__name__)


def get_draft(dealer):
    draft, _ = QuotationDraft.objects.get_or_create(dealer=dealer)
    return draft


def discard_draft(dealer):
    QuotationDraft.objects.filter(dealer=dealer).delete()


def _require_step(draft, allowed, message):
    if draft.step not in allowed:
        raise InvalidStateError(
            message,
            details=[{"field": "step", "message": f"Current step is {draft.step}"}],
        )


def save_customer_step(dealer, data):
    data = dict(data or {})
    if data.get("customerId"):
        customer = resolve_customer(dealer, data["customerId"])
        stored = {"customerId": str(customer.id)}
    else:
        serializer = CustomerSerializer(data=data.get("customer", data), context={"dealer": dealer})
        serializer.is_valid(raise_exception=True)
        stored = {"customer": serializer.initial_data}

    draft = get_draft(dealer)
    draft.customer_data = stored
    draft.step = DraftStep.PRODUCTS
    draft.save(update_fields=["customer_data", "step", "updated_at"])
    return draft


def save_products_step(dealer, products, discount):
    draft = get_draft(dealer)
    _require_step(
        draft,
        (DraftStep.PRODUCTS, DraftStep.CONFIRMATION),
        "Enter the customer details before choosing products",
    )
    validate_product_selection(products)
    draft.products_data = products
    draft.discount = discount
    draft.step = DraftStep.CONFIRMATION
    draft.save(update_fields=["products_data", "discount", "step", "updated_at"])
    return draft


def step_back(dealer):
    draft = get_draft(dealer)
    index = DRAFT_STEP_ORDER.index(draft.step)
    if index > 0:
        draft.step = DRAFT_STEP_ORDER[index - 1]
        draft.save(update_fields=["step", "updated_at"])
    return draft


@transaction.atomic
def confirm_draft(dealer):
    draft = get_draft(dealer)
    _require_step(draft, (DraftStep.CONFIRMATION,), "Choose the products before confirming the quotation")

    payload = build_pricing_payload(draft.products_data, draft.discount, catalog_lookup=catalog_lookup)
    payload.update(draft.customer_data)
    quotation = create_quotation(actor=dealer, payload=payload)
    draft.delete()
    logger.info("Draft of %s confirmed as quotation %s", dealer.username, quotation.id)
    return quotation
