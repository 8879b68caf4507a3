from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.exceptions import ServiceError
from apps.common.permissions import RolePermission
from apps.quotations import drafts
from apps.quotations.models import Quotation, QuotationStatus
from apps.quotations.serializers import (
    AdminQuotationUpdateSerializer,
    DiscountUpdateSerializer,
    DraftProductsSerializer,
    PaymentScheduleQuotationSerializer,
    PricingUpdateSerializer,
    ProductsUpdateSerializer,
    QuotationDraftSerializer,
    QuotationSerializer,
    StatusUpdateSerializer,
)
from apps.quotations.services import (
    admin_update,
    create_quotation,
    scoped_quotations,
    set_status,
    update_discount,
    update_pricing,
    update_products,
)
from apps.visits.serializers import VisitSerializer
from apps.visits.services import visit_status_summary


def filter_quotations(queryset, params):
    status_filter = params.get("status")
    if status_filter:
        queryset = queryset.filter(status=status_filter.strip().lower())

    dealer_id = params.get("dealerId")
    if dealer_id:
        queryset = queryset.filter(dealer_id=dealer_id)

    start_date = params.get("startDate")
    if start_date:
        queryset = queryset.filter(created_at__date__gte=start_date)
    end_date = params.get("endDate")
    if end_date:
        queryset = queryset.filter(created_at__date__lte=end_date)

    query = params.get("q")
    if query:
        query = query.strip()
        queryset = queryset.filter(
            Q(id__icontains=query)
            | Q(customer__first_name__icontains=query)
            | Q(customer__last_name__icontains=query)
            | Q(customer__mobile__icontains=query)
            | Q(dealer__username__icontains=query)
        )
    return queryset


class QuotationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = QuotationSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["quotations.view"],
        "retrieve": ["quotations.view"],
        "create": ["quotations.create"],
        "discount": ["quotations.edit"],
        "products": ["quotations.edit"],
        "pricing": ["quotations.edit"],
        "visits": ["visits.view"],
        "visit_status": ["quotations.view"],
    }

    def get_queryset(self):
        return filter_quotations(scoped_quotations(self.request.user), self.request.query_params)

    def create(self, request, *args, **kwargs):
        quotation = create_quotation(actor=request.user, payload=request.data)
        return Response(self.get_serializer(quotation).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"])
    def discount(self, request, pk=None):
        quotation = self.get_object()
        serializer = DiscountUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quotation = update_discount(quotation, serializer.validated_data["discount"], request.user)
        return Response(self.get_serializer(quotation).data, status=200)

    @action(detail=True, methods=["patch"])
    def products(self, request, pk=None):
        quotation = self.get_object()
        serializer = ProductsUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quotation = update_products(quotation, serializer.validated_data["products"], request.user)
        quotation.refresh_from_db()
        return Response(self.get_serializer(quotation).data, status=200)

    @action(detail=True, methods=["patch"])
    def pricing(self, request, pk=None):
        quotation = self.get_object()
        serializer = PricingUpdateSerializer(data=request.data, context={"quotation": quotation})
        serializer.is_valid(raise_exception=True)
        quotation = update_pricing(quotation, serializer.validated_data, request.user)
        return Response(self.get_serializer(quotation).data, status=200)

    @action(detail=True, methods=["get"])
    def visits(self, request, pk=None):
        quotation = self.get_object()
        visits = quotation.visits.prefetch_related("assignments", "images").order_by("date", "time", "created_at")
        return Response(VisitSerializer(visits, many=True).data, status=200)

    @action(detail=False, methods=["get"], url_path="visit-status")
    def visit_status(self, request):
        ids = [value.strip() for value in request.query_params.get("ids", "").split(",") if value.strip()]
        if not ids:
            raise ServiceError(
                "Provide quotation ids",
                details=[{"field": "ids", "message": "Comma-separated quotation ids are required"}],
            )
        quotations = scoped_quotations(request.user).filter(pk__in=ids)
        summary = visit_status_summary(quotations)
        return Response([summary[pk] for pk in ids if pk in summary], status=200)


class QuotationDraftView(APIView):
    permission_classes = [RolePermission]
    capability_map = {"get": ["quotations.create"], "delete": ["quotations.create"]}

    def get(self, request):
        return Response(QuotationDraftSerializer(drafts.get_draft(request.user)).data, status=200)

    def delete(self, request):
        drafts.discard_draft(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class QuotationDraftCustomerView(APIView):
    permission_classes = [RolePermission]
    capability_map = {"post": ["quotations.create"]}

    def post(self, request):
        draft = drafts.save_customer_step(request.user, request.data)
        return Response(QuotationDraftSerializer(draft).data, status=200)


class QuotationDraftProductsView(APIView):
    permission_classes = [RolePermission]
    capability_map = {"post": ["quotations.create"]}

    def post(self, request):
        serializer = DraftProductsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        draft = drafts.save_products_step(
            request.user,
            serializer.validated_data["products"],
            serializer.validated_data["discount"],
        )
        return Response(QuotationDraftSerializer(draft).data, status=200)


class QuotationDraftBackView(APIView):
    permission_classes = [RolePermission]
    capability_map = {"post": ["quotations.create"]}

    def post(self, request):
        return Response(QuotationDraftSerializer(drafts.step_back(request.user)).data, status=200)


class QuotationDraftConfirmView(APIView):
    permission_classes = [RolePermission]
    capability_map = {"post": ["quotations.create"]}

    def post(self, request):
        quotation = drafts.confirm_draft(request.user)
        return Response(QuotationSerializer(quotation).data, status=status.HTTP_201_CREATED)


class AdminQuotationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = QuotationSerializer
    permission_classes = [RolePermission]
    http_method_names = ["get", "patch", "head", "options"]
    capability_map = {
        "list": ["quotations.view.all"],
        "retrieve": ["quotations.view.all"],
        "partial_update": ["quotations.edit"],
        "status": ["quotations.status"],
    }

    def get_queryset(self):
        return filter_quotations(scoped_quotations(self.request.user), self.request.query_params)

    def partial_update(self, request, *args, **kwargs):
        quotation = self.get_object()
        serializer = AdminQuotationUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        quotation = admin_update(quotation, serializer.validated_data, request.user)
        return Response(self.get_serializer(quotation).data, status=200)

    @action(detail=True, methods=["patch"], url_path="status")
    def status(self, request, pk=None):
        quotation = self.get_object()
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quotation = set_status(quotation, serializer.validated_data["status"], request.user)
        return Response(self.get_serializer(quotation).data, status=200)


class AccountManagementQuotationViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PaymentScheduleQuotationSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["quotations.view.approved"],
        "retrieve": ["quotations.view.approved"],
    }

    def get_queryset(self):
        queryset = Quotation.objects.filter(status=QuotationStatus.APPROVED).select_related(
            "dealer", "customer", "products"
        )
        params = self.request.query_params.copy()
        params.pop("status", None)
        return filter_quotations(queryset.prefetch_related("products__custom_panels"), params)
