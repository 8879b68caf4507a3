from rest_framework import serializers

from apps.accounts.serializers import AddressSerializer, validate_mobile
from apps.customers.models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name", max_length=150)
    lastName = serializers.CharField(source="last_name", max_length=150)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    address = AddressSerializer(source="*")
    dealerId = serializers.IntegerField(source="dealer_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Customer
        fields = ["id", "firstName", "lastName", "mobile", "email", "address", "dealerId", "createdAt", "updatedAt"]
        read_only_fields = ["id", "dealerId", "createdAt", "updatedAt"]
        validators = []

    def validate_mobile(self, value):
        return validate_mobile(value)

    def validate(self, attrs):
        if self.instance is not None and "mobile" in attrs:
            clash = Customer.objects.filter(dealer=self.instance.dealer, mobile=attrs["mobile"]).exclude(pk=self.instance.pk)
            if clash.exists():
                raise serializers.ValidationError({"mobile": "Another customer already uses this mobile number"})
        return attrs

    def create(self, validated_data):
        customer, _ = Customer.get_or_create_by_mobile(self.context["dealer"], **validated_data)
        return customer
