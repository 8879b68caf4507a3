from rest_framework import serializers

from apps.accounts.models import User, UserRole
from apps.visits.models import Visit


class VisitAssignmentInputSerializer(serializers.Serializer):
    visitorId = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(role=UserRole.VISITOR, is_active=True),
    )
    visitorName = serializers.CharField(required=False, allow_blank=True, default="")


class VisitSerializer(serializers.ModelSerializer):
    quotationId = serializers.CharField(source="quotation_id", read_only=True)
    locationLink = serializers.CharField(source="location_link", read_only=True)
    rejectionReason = serializers.CharField(source="rejection_reason", read_only=True)
    length = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True)
    width = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True)
    height = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True)
    images = serializers.SerializerMethodField()
    visitors = serializers.SerializerMethodField()
    createdBy = serializers.IntegerField(source="created_by_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Visit
        fields = [
            "id",
            "quotationId",
            "date",
            "time",
            "location",
            "locationLink",
            "notes",
            "status",
            "feedback",
            "rejectionReason",
            "length",
            "width",
            "height",
            "images",
            "visitors",
            "createdBy",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields

    def get_images(self, obj):
        return [image.image.url for image in obj.images.all()]

    def get_visitors(self, obj):
        return [
            {"visitorId": assignment.visitor_id, "visitorName": assignment.visitor_name}
            for assignment in obj.assignments.all()
        ]


class AssignedVisitSerializer(VisitSerializer):
    quotation = serializers.SerializerMethodField()

    class Meta(VisitSerializer.Meta):
        fields = VisitSerializer.Meta.fields + ["quotation"]
        read_only_fields = fields

    def get_quotation(self, obj):
        quotation = obj.quotation
        customer = quotation.customer
        return {
            "id": quotation.id,
            "systemType": quotation.system_type,
            "status": quotation.status,
            "dealerName": quotation.dealer.display_name,
            "customerName": customer.full_name,
            "customerMobile": customer.mobile,
            "address": {
                "street": customer.street,
                "city": customer.city,
                "state": customer.state,
                "pincode": customer.pincode,
            },
        }


class VisitCreateSerializer(serializers.Serializer):
    quotationId = serializers.CharField()
    date = serializers.DateField()
    time = serializers.TimeField()
    location = serializers.CharField(max_length=255)
    locationLink = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    visitors = VisitAssignmentInputSerializer(many=True)

    def validate_visitors(self, value):
        if not value:
            raise serializers.ValidationError("Assign at least one visitor")
        seen = set()
        for entry in value:
            if entry["visitorId"].pk in seen:
                raise serializers.ValidationError("A visitor can only be assigned once")
            seen.add(entry["visitorId"].pk)
        return value
