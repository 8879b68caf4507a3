"""Quotation pricing: component breakdown and layered resolution of the money fields.

Clients have sent pricing at different nesting levels over time (top level,
a ``pricing`` object, or inside ``products``), so each field is resolved from
an ordered list of candidate providers and the first valid value wins.
Nothing in this module touches the database; catalog prices come in through
an injected ``catalog_lookup(category, brand=, size=, item_type=)`` callable.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from django.conf import settings

from apps.common.exceptions import ServiceError

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
# Largest value a max_digits=12, decimal_places=2 money column holds.
MAX_AMOUNT = Decimal("9999999999.99")

DEFAULT_RATES = {
    "panel_per_watt": 25,
    "inverter_per_kw": 8000,
    "structure_per_kw": 5000,
    "cable": 15000,
    "meter": 8000,
    "acdb_dcdb": 12000,
}

SIZE_RE = re.compile(r"([0-9]+(?:\.[0-9]+)?)\s*(k?w)?", re.IGNORECASE)


class PricingValidationError(ServiceError):
    default_detail = "Invalid pricing"


def _to_decimal(value):
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite() or abs(number) > MAX_AMOUNT:
        return None
    return number


def _quantize(amount):
    if amount is None:
        return None
    return amount.quantize(Decimal("0.01"))


def is_positive_amount(value):
    number = _to_decimal(value)
    return number is not None and number > 0


def is_non_negative_amount(value):
    number = _to_decimal(value)
    return number is not None and number >= 0


def parse_watts(size):
    """'545W' -> 545, '0.55kW' -> 550."""
    match = SIZE_RE.search(str(size or ""))
    if not match:
        return ZERO
    value = _to_decimal(match.group(1)) or ZERO
    unit = (match.group(2) or "w").lower()
    return value * 1000 if unit == "kw" else value


def parse_kilowatts(size):
    """'5kW' -> 5, '5000W' -> 5. Bare numbers are kW."""
    match = SIZE_RE.search(str(size or ""))
    if not match:
        return ZERO
    value = _to_decimal(match.group(1)) or ZERO
    unit = (match.group(2) or "kw").lower()
    return value / 1000 if unit == "w" else value


def _quantity(value):
    number = _to_decimal(value)
    if number is None or number < 0:
        return ZERO
    return number


@dataclass(frozen=True)
class ComponentPrices:
    panel: Decimal = ZERO
    inverter: Decimal = ZERO
    structure: Decimal = ZERO
    cable: Decimal = ZERO
    meter: Decimal = ZERO
    acdb_dcdb: Decimal = ZERO
    battery: Decimal = ZERO

    @property
    def subtotal(self):
        return _quantize(
            self.panel + self.inverter + self.structure + self.cable + self.meter + self.acdb_dcdb + self.battery
        )

    def as_dict(self):
        return {
            "panelPrice": self.panel,
            "inverterPrice": self.inverter,
            "structurePrice": self.structure,
            "cablePrice": self.cable,
            "meterPrice": self.meter,
            "acdbDcdbPrice": self.acdb_dcdb,
            "batteryPrice": self.battery,
        }


def _no_catalog(category, brand="", size="", item_type=""):
    return None


class ComponentPricer:
    def __init__(self, catalog_lookup=None, rates=None):
        self.lookup = catalog_lookup or _no_catalog
        self.rates = {key: Decimal(str(value)) for key, value in (rates or _configured_rates()).items()}

    def panel_group(self, brand, size, quantity, unit_price=None):
        qty = _quantity(quantity)
        explicit = _to_decimal(unit_price)
        if explicit is not None and explicit > 0:
            return explicit * qty
        catalog_price = self.lookup("panel", brand=brand or "", size=size or "") if (brand or size) else None
        if catalog_price is not None:
            return catalog_price * qty
        return parse_watts(size) * qty * self.rates["panel_per_watt"]

    def panels(self, products):
        system_type = products.get("systemType")
        if system_type == "both":
            return self.panel_group(
                products.get("dcrPanelBrand"), products.get("dcrPanelSize"), products.get("dcrPanelQuantity")
            ) + self.panel_group(
                products.get("nonDcrPanelBrand"), products.get("nonDcrPanelSize"), products.get("nonDcrPanelQuantity")
            )
        if system_type == "customize":
            return sum(
                (
                    self.panel_group(panel.get("brand"), panel.get("size"), panel.get("quantity"), panel.get("price"))
                    for panel in products.get("customPanels") or []
                ),
                ZERO,
            )
        return self.panel_group(products.get("panelBrand"), products.get("panelSize"), products.get("panelQuantity"))

    def inverter(self, products):
        size = products.get("inverterSize")
        if not size:
            return ZERO
        catalog_price = self.lookup(
            "inverter",
            brand=products.get("inverterBrand") or "",
            size=size,
            item_type=products.get("inverterType") or "",
        )
        if catalog_price is not None:
            return catalog_price
        return parse_kilowatts(size) * self.rates["inverter_per_kw"]

    def structure(self, products):
        size = products.get("structureSize") or products.get("inverterSize")
        if not size:
            return ZERO
        catalog_price = self.lookup("structure", size=size, item_type=products.get("structureType") or "")
        if catalog_price is not None:
            return catalog_price
        return parse_kilowatts(size) * self.rates["structure_per_kw"]

    def cable(self, products):
        brand = products.get("acCableBrand") or ""
        size = products.get("acCableSize") or ""
        catalog_price = self.lookup("cable", brand=brand, size=size) if (brand or size) else None
        return catalog_price if catalog_price is not None else self.rates["cable"]

    def meter(self, products):
        brand = products.get("meterBrand") or ""
        catalog_price = self.lookup("meter", brand=brand) if brand else None
        return catalog_price if catalog_price is not None else self.rates["meter"]

    def acdb_dcdb(self, products):
        acdb = products.get("acdb") or ""
        dcdb = products.get("dcdb") or ""
        acdb_price = self.lookup("acdb", size=acdb) if acdb else None
        dcdb_price = self.lookup("dcdb", size=dcdb) if dcdb else None
        if acdb_price is not None and dcdb_price is not None:
            return acdb_price + dcdb_price
        return self.rates["acdb_dcdb"]

    def battery(self, products):
        price = _to_decimal(products.get("batteryPrice"))
        return price if price is not None and price > 0 else ZERO

    def price(self, products):
        products = products or {}
        prices = {
            "panel": self.panels(products),
            "inverter": self.inverter(products),
            "structure": self.structure(products),
            "cable": self.cable(products),
            "meter": self.meter(products),
            "acdb_dcdb": self.acdb_dcdb(products),
            "battery": self.battery(products),
        }
        oversized = [name for name, amount in prices.items() if amount > MAX_AMOUNT]
        if oversized:
            message = "Component price exceeds the maximum amount"
            raise PricingValidationError(
                message,
                code="VAL_005",
                details=[{"field": f"products.{name}", "message": message} for name in oversized],
            )
        return ComponentPrices(**{name: _quantize(amount) for name, amount in prices.items()})


def _configured_rates():
    return {**DEFAULT_RATES, **getattr(settings, "QUOTATION_COMPONENT_RATES", {})}


def compute_component_prices(products, catalog_lookup=None, rates=None):
    return ComponentPricer(catalog_lookup=catalog_lookup, rates=rates).price(products)


# Candidate providers: each takes the request payload and returns a raw value or None.


def from_body(name):
    return f"body.{name}", lambda payload: payload.get(name)


def from_pricing(name):
    return f"pricing.{name}", lambda payload: (payload.get("pricing") or {}).get(name)


def from_products(name):
    return f"products.{name}", lambda payload: (payload.get("products") or {}).get(name)


def constant(label, value):
    return label, lambda payload: value


def first_valid(payload, candidates, is_valid):
    """Return (value, source, inspected) for the first candidate accepted by ``is_valid``."""
    inspected = {}
    for label, provider in candidates:
        raw = provider(payload)
        inspected[label] = raw
        if is_valid(raw):
            return _quantize(_to_decimal(raw)), label, inspected
    return None, None, inspected


def apply_discount(final_amount, discount):
    """(discountAmount, totalAmount) for a percentage discount on the post-subsidy amount."""
    discount_amount = _quantize(final_amount * Decimal(str(discount)) / HUNDRED)
    return discount_amount, _quantize(final_amount - discount_amount)


def derive_totals(subtotal, total_subsidy, discount):
    final_amount = _quantize(Decimal(str(subtotal)) - Decimal(str(total_subsidy)))
    discount_amount, total_amount = apply_discount(final_amount, discount)
    return {
        "final_amount": final_amount,
        "discount_amount": discount_amount,
        "total_amount": total_amount,
    }


@dataclass(frozen=True)
class ResolvedPricing:
    subtotal: Decimal
    central_subsidy: Decimal
    state_subsidy: Decimal
    total_subsidy: Decimal
    amount_after_subsidy: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    final_amount: Decimal
    components: ComponentPrices
    sources: dict = field(default_factory=dict)

    def model_fields(self):
        return {
            "subtotal": self.subtotal,
            "central_subsidy": self.central_subsidy,
            "state_subsidy": self.state_subsidy,
            "total_subsidy": self.total_subsidy,
            "amount_after_subsidy": self.amount_after_subsidy,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
            "final_amount": self.final_amount,
        }

    def as_dict(self):
        return {
            "subtotal": self.subtotal,
            "centralSubsidy": self.central_subsidy,
            "stateSubsidy": self.state_subsidy,
            "totalSubsidy": self.total_subsidy,
            "amountAfterSubsidy": self.amount_after_subsidy,
            "discountAmount": self.discount_amount,
            "totalAmount": self.total_amount,
            "finalAmount": self.final_amount,
            "components": self.components.as_dict(),
            "sources": dict(self.sources),
        }


def _resolution_error(code, field_name, message, inspected):
    return PricingValidationError(
        message,
        code=code,
        details=[
            {
                "field": field_name,
                "message": message,
                "receivedValues": {label: value for label, value in inspected.items()},
            }
        ],
    )


def resolve_pricing(payload, catalog_lookup=None, rates=None):
    """Resolve every monetary field of a quotation request.

    Raises ``PricingValidationError`` with VAL_001 (subtotal), VAL_002
    (totalAmount) or VAL_003 (finalAmount), checked in that order.
    """
    payload = payload or {}
    components = compute_component_prices(payload.get("products") or {}, catalog_lookup=catalog_lookup, rates=rates)
    sources = {}

    subtotal, sources["subtotal"], inspected = first_valid(
        payload,
        [
            from_body("subtotal"),
            from_pricing("subtotal"),
            from_products("systemPrice"),
            from_products("subtotal"),
            from_products("totalAmount"),
            constant("computed", components.subtotal),
        ],
        is_positive_amount,
    )
    if subtotal is None:
        logger.warning("Quotation pricing rejected: no positive subtotal in %s", inspected)
        raise _resolution_error("VAL_001", "subtotal", "Subtotal is required and must be greater than 0", inspected)

    total_amount, sources["totalAmount"], inspected = first_valid(
        payload,
        [from_body("totalAmount"), from_pricing("totalAmount"), from_products("totalAmount")],
        is_non_negative_amount,
    )
    if total_amount is None:
        raise _resolution_error(
            "VAL_002", "totalAmount", "Total amount (amount after discount) is required", inspected
        )

    final_amount, sources["finalAmount"], inspected = first_valid(
        payload,
        [from_body("finalAmount"), from_pricing("finalAmount"), from_products("finalAmount")],
        is_non_negative_amount,
    )
    if final_amount is None:
        raise _resolution_error("VAL_003", "finalAmount", "Final amount (subtotal - subsidy) is required", inspected)

    central_subsidy, sources["centralSubsidy"], _ = first_valid(
        payload,
        [
            from_body("centralSubsidy"),
            from_pricing("centralSubsidy"),
            from_products("centralSubsidy"),
            constant("default", ZERO),
        ],
        is_non_negative_amount,
    )
    state_subsidy, sources["stateSubsidy"], _ = first_valid(
        payload,
        [
            from_body("stateSubsidy"),
            from_pricing("stateSubsidy"),
            from_products("stateSubsidy"),
            constant("default", ZERO),
        ],
        is_non_negative_amount,
    )
    total_subsidy, sources["totalSubsidy"], inspected = first_valid(
        payload,
        [
            from_body("totalSubsidy"),
            from_pricing("totalSubsidy"),
            constant("computed", central_subsidy + state_subsidy),
        ],
        is_non_negative_amount,
    )
    if total_subsidy is None:
        raise _resolution_error("VAL_004", "totalSubsidy", "Total subsidy exceeds the maximum amount", inspected)
    amount_after_subsidy, sources["amountAfterSubsidy"], _ = first_valid(
        payload,
        [from_body("amountAfterSubsidy"), from_pricing("amountAfterSubsidy"), constant("finalAmount", final_amount)],
        is_non_negative_amount,
    )
    discount_amount, sources["discountAmount"], _ = first_valid(
        payload,
        [from_body("discountAmount"), from_pricing("discountAmount"), constant("default", ZERO)],
        is_non_negative_amount,
    )

    return ResolvedPricing(
        subtotal=subtotal,
        central_subsidy=central_subsidy,
        state_subsidy=state_subsidy,
        total_subsidy=total_subsidy,
        amount_after_subsidy=amount_after_subsidy,
        discount_amount=discount_amount,
        total_amount=total_amount,
        final_amount=final_amount,
        components=components,
        sources=sources,
    )


def build_pricing_payload(products, discount, catalog_lookup=None, rates=None):
    """Assemble a resolver payload from a bare product selection, as the quotation wizard does on confirm."""
    products = products or {}
    components = compute_component_prices(products, catalog_lookup=catalog_lookup, rates=rates)
    central = _to_decimal(products.get("centralSubsidy")) or ZERO
    state = _to_decimal(products.get("stateSubsidy")) or ZERO
    subtotal = _to_decimal(products.get("systemPrice")) or components.subtotal
    totals = derive_totals(subtotal, central + state, discount)
    return {
        "products": products,
        "discount": discount,
        "pricing": {
            "subtotal": subtotal,
            "centralSubsidy": central,
            "stateSubsidy": state,
            "totalSubsidy": central + state,
            "amountAfterSubsidy": totals["final_amount"],
            "discountAmount": totals["discount_amount"],
            "totalAmount": totals["total_amount"],
            "finalAmount": totals["final_amount"],
        },
    }


PAYMENT_PHASES = (
    ("deposit", "Deposit", Decimal("20")),
    ("progress", "Installation progress", Decimal("60")),
    ("final", "Final settlement", Decimal("20")),
)


def payment_schedule(total_amount):
    """Instalment split of the payable amount; the last phase absorbs rounding."""
    total = _quantize(Decimal(str(total_amount)))
    phases = []
    allocated = ZERO
    for index, (key, label, percent) in enumerate(PAYMENT_PHASES):
        if index == len(PAYMENT_PHASES) - 1:
            amount = _quantize(total - allocated)
        else:
            amount = _quantize(total * percent / HUNDRED)
            allocated += amount
        phases.append({"phase": key, "label": label, "percent": percent, "amount": amount})
    return phases
