from decimal import Decimal

from rest_framework import serializers

from apps.catalog.models import CatalogCategory, CatalogItem


class CatalogItemSerializer(serializers.ModelSerializer):
    itemType = serializers.CharField(source="item_type", required=False, allow_blank=True)
    isActive = serializers.BooleanField(source="is_active", required=False, default=True)
    price = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True, min_value=Decimal("0.00")
    )

    class Meta:
        model = CatalogItem
        fields = ["id", "category", "brand", "size", "itemType", "price", "isActive"]
        read_only_fields = ["id"]

    def validate(self, attrs):
        if not attrs.get("brand") and not attrs.get("size") and not attrs.get("item_type"):
            raise serializers.ValidationError("Catalog entries need a brand, size or type")
        return attrs


class CatalogReplaceSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=CatalogCategory.choices)
    items = CatalogItemSerializer(many=True)

    def validate(self, attrs):
        for item in attrs["items"]:
            if item.get("category") != attrs["category"]:
                raise serializers.ValidationError({"items": "Every item must belong to the replaced category"})
        return attrs
