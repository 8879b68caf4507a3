from decimal import Decimal

from django.db.models import Count, DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce
from rest_framework import generics, serializers
from rest_framework.response import Response

from apps.accounts.models import User, UserRole
from apps.common.permissions import RolePermission
from apps.customers.models import Customer
from apps.quotations.models import Quotation, QuotationStatus
from apps.visits.models import Visit
from apps.visits.services import status_counts


def _money_sum(field, **kwargs):
    return Coalesce(Sum(field, **kwargs), Value(Decimal("0.00")), output_field=DecimalField(max_digits=16, decimal_places=2))


class QuotationMetricsQuerySerializer(serializers.Serializer):
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)

    def validate(self, attrs):
        start_date = attrs.get("startDate")
        end_date = attrs.get("endDate")
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({"startDate": "startDate must be before or equal to endDate."})
        return attrs


class QuotationMetricsMixin:
    permission_classes = [RolePermission]

    @staticmethod
    def _apply_date_range(queryset, start_date, end_date):
        if start_date:
            queryset = queryset.filter(created_at__date__gte=start_date)
        if end_date:
            queryset = queryset.filter(created_at__date__lte=end_date)
        return queryset

    @staticmethod
    def _summary_for(quotations):
        return quotations.aggregate(
            totalQuotations=Count("id"),
            totalValue=_money_sum("total_amount"),
            totalSubtotal=_money_sum("subtotal"),
            totalSubsidy=_money_sum("total_subsidy"),
            approvedValue=_money_sum("total_amount", filter=Q(status=QuotationStatus.APPROVED)),
        )

    @staticmethod
    def _by_status(quotations):
        counts = {choice: 0 for choice in QuotationStatus.values}
        for row in quotations.values("status").annotate(total=Count("id")).order_by():
            counts[row["status"]] = row["total"]
        return counts

    def _build_payload(self, quotations, params):
        start_date = params.get("startDate")
        end_date = params.get("endDate")
        quotations = self._apply_date_range(quotations, start_date, end_date)
        return {
            **self._summary_for(quotations),
            "range": {"startDate": start_date, "endDate": end_date},
            "byStatus": self._by_status(quotations),
            "visits": status_counts(Visit.objects.filter(quotation__in=quotations)),
        }, quotations


class DealerStatisticsView(QuotationMetricsMixin, generics.GenericAPIView):
    capability_map = {"get": ["metrics.view.own"]}

    def get(self, request, *args, **kwargs):
        query_serializer = QuotationMetricsQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        payload, _ = self._build_payload(
            Quotation.objects.filter(dealer=request.user),
            query_serializer.validated_data,
        )
        payload["totalCustomers"] = Customer.objects.filter(dealer=request.user).count()
        return Response(payload)


class AdminStatisticsView(QuotationMetricsMixin, generics.GenericAPIView):
    capability_map = {"get": ["metrics.view"]}

    @staticmethod
    def _by_dealer(quotations):
        return list(
            quotations.values("dealer_id", "dealer__username")
            .annotate(quotationCount=Count("id"), totalValue=_money_sum("total_amount"))
            .order_by("-totalValue", "dealer__username")
        )

    def get(self, request, *args, **kwargs):
        query_serializer = QuotationMetricsQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        payload, quotations = self._build_payload(Quotation.objects.all(), query_serializer.validated_data)
        payload.update(
            {
                "byDealer": self._by_dealer(quotations),
                "totalCustomers": Customer.objects.count(),
                "accounts": {
                    "dealers": User.objects.filter(role=UserRole.DEALER).count(),
                    "activeDealers": User.objects.filter(role=UserRole.DEALER, is_active=True).count(),
                    "visitors": User.objects.filter(role=UserRole.VISITOR).count(),
                    "accountManagers": User.objects.filter(role=UserRole.ACCOUNT_MANAGER).count(),
                },
            }
        )
        return Response(payload)
