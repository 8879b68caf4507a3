from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.visits.views import VisitorStatisticsView, VisitorVisitListView, VisitViewSet

router = DefaultRouter()
router.register("visits", VisitViewSet, basename="visit")

urlpatterns = [
    path("visitors/me/visits/", VisitorVisitListView.as_view(), name="visitor-visits"),
    path("visitors/me/statistics/", VisitorStatisticsView.as_view(), name="visitor-statistics"),
]
urlpatterns += router.urls
