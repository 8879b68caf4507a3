from decimal import Decimal

from rest_framework import serializers

from apps.accounts.models import User, UserRole
from apps.catalog.models import CatalogItem, normalize_catalog_label
from apps.customers.models import Customer
from apps.customers.serializers import CustomerSerializer
from apps.quotations.models import CustomPanel, Quotation, QuotationDraft, QuotationProduct, QuotationStatus, SystemType
from apps.quotations.pricing import payment_schedule


def money(**kwargs):
    kwargs.setdefault("max_digits", 12)
    kwargs.setdefault("decimal_places", 2)
    return serializers.DecimalField(coerce_to_string=False, **kwargs)


def _text(source=None):
    kwargs = {"source": source} if source else {}
    return serializers.CharField(required=False, allow_blank=True, default="", **kwargs)


def _quantity(source):
    return serializers.IntegerField(source=source, required=False, allow_null=True, min_value=0, default=None)


def discount_field(**kwargs):
    return serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=Decimal("100"),
        coerce_to_string=False,
        **kwargs,
    )


PANEL_FIELDS = ("panelBrand", "panelSize", "panelQuantity")
DCR_FIELDS = ("dcrPanelBrand", "dcrPanelSize", "dcrPanelQuantity")
NON_DCR_FIELDS = ("nonDcrPanelBrand", "nonDcrPanelSize", "nonDcrPanelQuantity")
INVERTER_FIELDS = ("inverterType", "inverterBrand", "inverterSize")

REQUIRED_BY_SYSTEM_TYPE = {
    SystemType.DCR: PANEL_FIELDS + INVERTER_FIELDS,
    SystemType.NON_DCR: PANEL_FIELDS + INVERTER_FIELDS,
    SystemType.HYBRID: PANEL_FIELDS + INVERTER_FIELDS,
    SystemType.BOTH: DCR_FIELDS + NON_DCR_FIELDS + INVERTER_FIELDS,
    SystemType.CUSTOMIZE: (),
}


class CustomPanelSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source="panel_type", required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)
    price = money(required=False, allow_null=True, min_value=Decimal("0"))

    class Meta:
        model = CustomPanel
        fields = ["brand", "size", "quantity", "type", "price"]


class ProductSelectionSerializer(serializers.ModelSerializer):
    systemType = serializers.ChoiceField(source="system_type", choices=SystemType.choices)
    panelBrand = _text("panel_brand")
    panelSize = _text("panel_size")
    panelQuantity = _quantity("panel_quantity")
    dcrPanelBrand = _text("dcr_panel_brand")
    dcrPanelSize = _text("dcr_panel_size")
    dcrPanelQuantity = _quantity("dcr_panel_quantity")
    nonDcrPanelBrand = _text("non_dcr_panel_brand")
    nonDcrPanelSize = _text("non_dcr_panel_size")
    nonDcrPanelQuantity = _quantity("non_dcr_panel_quantity")
    inverterType = _text("inverter_type")
    inverterBrand = _text("inverter_brand")
    inverterSize = _text("inverter_size")
    structureType = _text("structure_type")
    structureSize = _text("structure_size")
    meterBrand = _text("meter_brand")
    acCableBrand = _text("ac_cable_brand")
    acCableSize = _text("ac_cable_size")
    dcCableBrand = _text("dc_cable_brand")
    dcCableSize = _text("dc_cable_size")
    acdb = _text()
    dcdb = _text()
    hybridInverter = _text("hybrid_inverter")
    batteryCapacity = _text("battery_capacity")
    batteryPrice = money(source="battery_price", required=False, allow_null=True, min_value=Decimal("0"))
    systemPrice = money(source="system_price", required=False, allow_null=True, min_value=Decimal("0"))
    centralSubsidy = money(source="central_subsidy", required=False, allow_null=True, min_value=Decimal("0"))
    stateSubsidy = money(source="state_subsidy", required=False, allow_null=True, min_value=Decimal("0"))
    customPanels = CustomPanelSerializer(source="custom_panels", many=True, required=False)
    panelPrice = money(source="panel_price", read_only=True)
    inverterPrice = money(source="inverter_price", read_only=True)
    structurePrice = money(source="structure_price", read_only=True)
    cablePrice = money(source="cable_price", read_only=True)
    meterPrice = money(source="meter_price", read_only=True)
    acdbDcdbPrice = money(source="acdb_dcdb_price", read_only=True)

    class Meta:
        model = QuotationProduct
        fields = [
            "systemType",
            "panelBrand",
            "panelSize",
            "panelQuantity",
            "dcrPanelBrand",
            "dcrPanelSize",
            "dcrPanelQuantity",
            "nonDcrPanelBrand",
            "nonDcrPanelSize",
            "nonDcrPanelQuantity",
            "inverterType",
            "inverterBrand",
            "inverterSize",
            "structureType",
            "structureSize",
            "meterBrand",
            "acCableBrand",
            "acCableSize",
            "dcCableBrand",
            "dcCableSize",
            "acdb",
            "dcdb",
            "hybridInverter",
            "batteryCapacity",
            "batteryPrice",
            "systemPrice",
            "centralSubsidy",
            "stateSubsidy",
            "customPanels",
            "panelPrice",
            "inverterPrice",
            "structurePrice",
            "cablePrice",
            "meterPrice",
            "acdbDcdbPrice",
        ]

    def validate(self, attrs):
        errors = {}
        system_type = attrs["system_type"]
        for name in REQUIRED_BY_SYSTEM_TYPE[system_type]:
            value = attrs.get(self.fields[name].source)
            if value in (None, "", 0):
                errors[name] = "This field is required for the selected system type."

        if system_type == SystemType.CUSTOMIZE and not attrs.get("custom_panels"):
            errors["customPanels"] = "Add at least one custom panel."

        errors.update(self._check_catalog(attrs))
        if errors:
            raise serializers.ValidationError(errors)
        return attrs

    def _check_catalog(self, attrs):
        errors = {}
        checks = {
            "panel": [
                ("panelBrand", attrs.get("panel_brand")),
                ("dcrPanelBrand", attrs.get("dcr_panel_brand")),
                ("nonDcrPanelBrand", attrs.get("non_dcr_panel_brand")),
            ]
            + [
                (f"customPanels[{index}].brand", panel.get("brand"))
                for index, panel in enumerate(attrs.get("custom_panels") or [])
            ],
            "inverter": [("inverterBrand", attrs.get("inverter_brand"))],
        }
        for category, chosen in checks.items():
            known = set(
                CatalogItem.objects.active()
                .for_category(category)
                .exclude(normalized_brand="")
                .values_list("normalized_brand", flat=True)
            )
            if not known:
                continue
            for name, brand in chosen:
                if brand and normalize_catalog_label(brand) not in known:
                    errors[name] = f"'{brand}' is not an active {category} brand."
        return errors


class PricingSerializer(serializers.Serializer):
    subtotal = money(read_only=True)
    centralSubsidy = money(source="central_subsidy", read_only=True)
    stateSubsidy = money(source="state_subsidy", read_only=True)
    totalSubsidy = money(source="total_subsidy", read_only=True)
    amountAfterSubsidy = money(source="amount_after_subsidy", read_only=True)
    discountAmount = money(source="discount_amount", read_only=True)
    totalAmount = money(source="total_amount", read_only=True)
    finalAmount = money(source="final_amount", read_only=True)


class QuotationSerializer(serializers.ModelSerializer):
    dealerId = serializers.IntegerField(source="dealer_id", read_only=True)
    dealerName = serializers.CharField(source="dealer.display_name", read_only=True)
    customerId = serializers.UUIDField(source="customer_id", read_only=True)
    customer = CustomerSerializer(read_only=True)
    systemType = serializers.CharField(source="system_type", read_only=True)
    discount = discount_field(read_only=True)
    pricing = PricingSerializer(source="*", read_only=True)
    products = ProductSelectionSerializer(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    validUntil = serializers.DateTimeField(source="valid_until", read_only=True)

    class Meta:
        model = Quotation
        fields = [
            "id",
            "dealerId",
            "dealerName",
            "customerId",
            "customer",
            "systemType",
            "status",
            "discount",
            "pricing",
            "products",
            "createdAt",
            "validUntil",
        ]
        read_only_fields = fields


class QuotationCreateSerializer(serializers.Serializer):
    customerId = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    customer = serializers.DictField(required=False, allow_null=True)
    products = serializers.DictField()
    discount = discount_field(required=False, default=Decimal("0"))


class DiscountUpdateSerializer(serializers.Serializer):
    discount = discount_field()


class ProductsUpdateSerializer(serializers.Serializer):
    products = serializers.DictField()


class PricingUpdateSerializer(serializers.Serializer):
    subtotal = money(required=False, min_value=Decimal("0.01"))
    centralSubsidy = money(required=False, min_value=Decimal("0"))
    stateSubsidy = money(required=False, min_value=Decimal("0"))
    discount = discount_field(required=False)
    finalAmount = money(required=False, min_value=Decimal("0"))

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide at least one pricing field to update.")
        quotation = self.context["quotation"]
        subtotal = attrs.get("subtotal", quotation.subtotal)
        total_subsidy = attrs.get("centralSubsidy", quotation.central_subsidy) + attrs.get(
            "stateSubsidy", quotation.state_subsidy
        )
        if total_subsidy > subtotal:
            raise serializers.ValidationError({"centralSubsidy": "Total subsidy cannot exceed the subtotal."})
        return attrs


class AdminQuotationUpdateSerializer(serializers.Serializer):
    dealerId = serializers.PrimaryKeyRelatedField(
        source="dealer",
        queryset=User.objects.filter(role__in=[UserRole.DEALER, UserRole.ADMIN]),
        required=False,
    )
    customerId = serializers.PrimaryKeyRelatedField(source="customer", queryset=Customer.objects.all(), required=False)
    systemType = serializers.ChoiceField(source="system_type", choices=SystemType.choices, required=False)
    status = serializers.ChoiceField(choices=QuotationStatus.choices, required=False)
    discount = discount_field(required=False)
    subtotal = money(required=False, min_value=Decimal("0"))
    centralSubsidy = money(source="central_subsidy", required=False, min_value=Decimal("0"))
    stateSubsidy = money(source="state_subsidy", required=False, min_value=Decimal("0"))
    totalSubsidy = money(source="total_subsidy", required=False, min_value=Decimal("0"))
    amountAfterSubsidy = money(source="amount_after_subsidy", required=False)
    discountAmount = money(source="discount_amount", required=False, min_value=Decimal("0"))
    totalAmount = money(source="total_amount", required=False)
    finalAmount = money(source="final_amount", required=False)
    validUntil = serializers.DateTimeField(source="valid_until", required=False)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=QuotationStatus.choices)


class PaymentScheduleQuotationSerializer(QuotationSerializer):
    paymentSchedule = serializers.SerializerMethodField()

    class Meta(QuotationSerializer.Meta):
        fields = QuotationSerializer.Meta.fields + ["paymentSchedule"]
        read_only_fields = fields

    def get_paymentSchedule(self, obj):
        return payment_schedule(obj.total_amount)


class QuotationDraftSerializer(serializers.ModelSerializer):
    customer = serializers.JSONField(source="customer_data", read_only=True)
    products = serializers.JSONField(source="products_data", read_only=True)
    discount = discount_field(read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = QuotationDraft
        fields = ["step", "customer", "products", "discount", "updatedAt"]
        read_only_fields = fields


class DraftProductsSerializer(serializers.Serializer):
    products = serializers.DictField()
    discount = discount_field(required=False, default=Decimal("0"))
