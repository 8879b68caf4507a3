from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.permissions import RolePermission, has_capability
from apps.customers.models import Customer, normalize_mobile
from apps.customers.serializers import CustomerSerializer


class CustomerViewSet(viewsets.ModelViewSet):
    serializer_class = CustomerSerializer
    permission_classes = [RolePermission]
    http_method_names = ["get", "post", "patch", "head", "options"]
    capability_map = {
        "list": ["customers.view"],
        "retrieve": ["customers.view"],
        "create": ["customers.manage"],
        "partial_update": ["customers.manage"],
    }

    def get_queryset(self):
        queryset = Customer.objects.select_related("dealer")
        if not has_capability(self.request.user, "customers.view.all"):
            queryset = queryset.filter(dealer=self.request.user)

        mobile = self.request.query_params.get("mobile")
        if mobile:
            queryset = queryset.filter(mobile=normalize_mobile(mobile))

        query = self.request.query_params.get("q")
        if query:
            query = query.strip()
            queryset = queryset.filter(
                Q(first_name__icontains=query)
                | Q(last_name__icontains=query)
                | Q(mobile__icontains=query)
                | Q(email__icontains=query)
                | Q(city__icontains=query)
            )
        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["dealer"] = self.request.user
        return context

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        existed = Customer.objects.filter(
            dealer=request.user, mobile=normalize_mobile(serializer.validated_data["mobile"])
        ).exists()
        customer = serializer.save()
        if not existed:
            record_audit(
                actor=request.user,
                action="customers.customer.create",
                entity_type="customer",
                entity_id=customer.id,
                payload={"mobile": customer.mobile},
            )
        return Response(
            self.get_serializer(customer).data,
            status=status.HTTP_200_OK if existed else status.HTTP_201_CREATED,
        )

    def perform_update(self, serializer):
        customer = serializer.save()
        record_audit(
            actor=self.request.user,
            action="customers.customer.update",
            entity_type="customer",
            entity_id=customer.id,
            payload={"fields": sorted(serializer.validated_data.keys())},
        )
