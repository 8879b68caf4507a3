from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.quotations.views import (
    AccountManagementQuotationViewSet,
    AdminQuotationViewSet,
    QuotationDraftBackView,
    QuotationDraftConfirmView,
    QuotationDraftCustomerView,
    QuotationDraftProductsView,
    QuotationDraftView,
    QuotationViewSet,
)
from apps.quotations.views_metrics import AdminStatisticsView, DealerStatisticsView

router = DefaultRouter()
router.register("quotations", QuotationViewSet, basename="quotation")
router.register("admin/quotations", AdminQuotationViewSet, basename="admin-quotation")
router.register(
    "account-management/quotations",
    AccountManagementQuotationViewSet,
    basename="account-management-quotation",
)

urlpatterns = [
    path("quotations/draft/", QuotationDraftView.as_view(), name="quotation-draft"),
    path("quotations/draft/customer/", QuotationDraftCustomerView.as_view(), name="quotation-draft-customer"),
    path("quotations/draft/products/", QuotationDraftProductsView.as_view(), name="quotation-draft-products"),
    path("quotations/draft/back/", QuotationDraftBackView.as_view(), name="quotation-draft-back"),
    path("quotations/draft/confirm/", QuotationDraftConfirmView.as_view(), name="quotation-draft-confirm"),
    path("dealers/me/statistics/", DealerStatisticsView.as_view(), name="dealer-statistics"),
    path("admin/statistics/", AdminStatisticsView.as_view(), name="admin-statistics"),
]
urlpatterns += router.urls
