import re

from django.db import transaction
from rest_framework import serializers

from apps.accounts.models import DealerProfile, User, UserRole, VisitorProfile
from apps.accounts.services import create_user_with_role

MOBILE_RE = re.compile(r"^\d{10}$")
PINCODE_RE = re.compile(r"^\d{6}$")


def validate_mobile(value):
    value = str(value or "").strip()
    if not MOBILE_RE.match(value):
        raise serializers.ValidationError("Please enter a valid 10-digit mobile number")
    return value


def validate_pincode(value):
    value = str(value or "").strip()
    if not PINCODE_RE.match(value):
        raise serializers.ValidationError("Please enter a valid 6-digit pincode")
    return value


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField()
    city = serializers.CharField()
    state = serializers.CharField()
    pincode = serializers.CharField()

    def validate_pincode(self, value):
        return validate_pincode(value)


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)


class RefreshSerializer(serializers.Serializer):
    refreshToken = serializers.CharField()


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(trim_whitespace=False)
    newPassword = serializers.CharField(trim_whitespace=False, min_length=6)


class ResetPasswordSerializer(serializers.Serializer):
    username = serializers.CharField()
    oldPassword = serializers.CharField(trim_whitespace=False)
    newPassword = serializers.CharField(trim_whitespace=False, min_length=6)


class ForgotPasswordSerializer(serializers.Serializer):
    username = serializers.CharField()
    dateOfBirth = serializers.DateField()
    newPassword = serializers.CharField(trim_whitespace=False, min_length=6)


class PasswordSerializer(serializers.Serializer):
    newPassword = serializers.CharField(trim_whitespace=False, min_length=6)


class UserSummarySerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name", read_only=True)
    lastName = serializers.CharField(source="last_name", read_only=True)
    role = serializers.CharField(source="role_slug", read_only=True)
    isActive = serializers.BooleanField(source="is_active", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "role", "firstName", "lastName", "email", "mobile", "isActive"]
        read_only_fields = fields


class DealerSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name")
    role = serializers.CharField(source="role_slug", read_only=True)
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)
    gender = serializers.CharField(source="dealer_profile.gender", required=False, allow_blank=True)
    dateOfBirth = serializers.DateField(source="dealer_profile.date_of_birth", required=False, allow_null=True)
    fatherName = serializers.CharField(source="dealer_profile.father_name", required=False, allow_blank=True)
    fatherContact = serializers.CharField(source="dealer_profile.father_contact", required=False, allow_blank=True)
    governmentIdType = serializers.CharField(source="dealer_profile.government_id_type", required=False, allow_blank=True)
    governmentIdNumber = serializers.CharField(
        source="dealer_profile.government_id_number", required=False, allow_blank=True
    )
    address = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "role",
            "firstName",
            "lastName",
            "email",
            "mobile",
            "gender",
            "dateOfBirth",
            "fatherName",
            "fatherContact",
            "governmentIdType",
            "governmentIdNumber",
            "address",
            "isActive",
            "createdAt",
        ]
        read_only_fields = ["id", "username", "role", "isActive", "createdAt"]

    def get_address(self, obj):
        profile = getattr(obj, "dealer_profile", None)
        if profile is None:
            return None
        return {"street": profile.street, "city": profile.city, "state": profile.state, "pincode": profile.pincode}

    def validate_mobile(self, value):
        return validate_mobile(value)

    def update(self, instance, validated_data):
        profile_data = validated_data.pop("dealer_profile", {})
        address = self.initial_data.get("address") if isinstance(self.initial_data, dict) else None
        if address:
            address_serializer = AddressSerializer(data=address)
            address_serializer.is_valid(raise_exception=True)
            profile_data.update(address_serializer.validated_data)

        with transaction.atomic():
            instance = super().update(instance, validated_data)
            profile, _ = DealerProfile.objects.get_or_create(user=instance)
            for field, value in profile_data.items():
                setattr(profile, field, value)
            profile.save()
        return instance


class DealerRegistrationSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(trim_whitespace=False, min_length=6)
    firstName = serializers.CharField()
    lastName = serializers.CharField()
    email = serializers.EmailField()
    mobile = serializers.CharField()
    gender = serializers.CharField(required=False, allow_blank=True, default="")
    dateOfBirth = serializers.DateField()
    fatherName = serializers.CharField(required=False, allow_blank=True, default="")
    fatherContact = serializers.CharField(required=False, allow_blank=True, default="")
    governmentIdType = serializers.CharField()
    governmentIdNumber = serializers.CharField()
    address = AddressSerializer()

    def validate_username(self, value):
        value = value.strip()
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("Username already exists")
        return value

    def validate_mobile(self, value):
        return validate_mobile(value)

    def create(self, validated_data):
        address = validated_data["address"]
        return create_user_with_role(
            role=UserRole.DEALER,
            password=validated_data["password"],
            username=validated_data["username"],
            first_name=validated_data["firstName"],
            last_name=validated_data["lastName"],
            email=validated_data["email"],
            mobile=validated_data["mobile"],
            profile_data={
                "gender": validated_data["gender"],
                "date_of_birth": validated_data["dateOfBirth"],
                "father_name": validated_data["fatherName"],
                "father_contact": validated_data["fatherContact"],
                "government_id_type": validated_data["governmentIdType"],
                "government_id_number": validated_data["governmentIdNumber"],
                "street": address["street"],
                "city": address["city"],
                "state": address["state"],
                "pincode": address["pincode"],
            },
        )


class VisitorSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name")
    employeeId = serializers.CharField(source="visitor_profile.employee_id", required=False, allow_blank=True)
    isActive = serializers.BooleanField(source="is_active", required=False)
    password = serializers.CharField(write_only=True, required=False, trim_whitespace=False, min_length=6)
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "password", "firstName", "lastName", "email", "mobile", "employeeId", "isActive", "createdAt"]
        read_only_fields = ["id", "createdAt"]

    def validate_username(self, value):
        value = value.strip()
        queryset = User.objects.filter(username=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("Username already exists")
        return value

    def validate_mobile(self, value):
        return validate_mobile(value)

    def validate(self, attrs):
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": "Password is required"})
        return attrs

    def create(self, validated_data):
        profile_data = validated_data.pop("visitor_profile", {})
        password = validated_data.pop("password")
        return create_user_with_role(
            role=UserRole.VISITOR,
            password=password,
            profile_data=profile_data,
            created_by=self.context["request"].user,
            **validated_data,
        )

    def update(self, instance, validated_data):
        profile_data = validated_data.pop("visitor_profile", {})
        validated_data.pop("password", None)
        with transaction.atomic():
            instance = super().update(instance, validated_data)
            if profile_data:
                profile, _ = VisitorProfile.objects.get_or_create(user=instance)
                for field, value in profile_data.items():
                    setattr(profile, field, value)
                profile.save()
        return instance


class AccountManagerSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name")
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    password = serializers.CharField(write_only=True, required=False, trim_whitespace=False, min_length=6)
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "password", "firstName", "lastName", "email", "mobile", "isActive", "createdAt"]
        read_only_fields = ["id", "isActive", "createdAt"]

    def validate_username(self, value):
        value = value.strip()
        queryset = User.objects.filter(username=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("Username already exists")
        return value

    def validate_mobile(self, value):
        return validate_mobile(value)

    def validate(self, attrs):
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": "Password is required"})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop("password")
        return create_user_with_role(
            role=UserRole.ACCOUNT_MANAGER,
            password=password,
            created_by=self.context["request"].user,
            **validated_data,
        )

    def update(self, instance, validated_data):
        validated_data.pop("password", None)
        return super().update(instance, validated_data)
