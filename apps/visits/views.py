from django.db.models import Q
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import MethodNotAllowed
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.permissions import RolePermission, has_capability
from apps.visits.models import Visit
from apps.visits.serializers import (
    AssignedVisitSerializer,
    VisitCreateSerializer,
    VisitSerializer,
)
from apps.visits.services import create_visit, delete_visit, status_counts, transition_visit

TRANSITION_ACTIONS = ("approve", "reject", "complete", "incomplete", "reschedule")


def filter_visits(queryset, params):
    status_filter = params.get("status")
    if status_filter:
        queryset = queryset.filter(status=status_filter.strip().lower())

    start_date = params.get("startDate")
    if start_date:
        queryset = queryset.filter(date__gte=start_date)
    end_date = params.get("endDate")
    if end_date:
        queryset = queryset.filter(date__lte=end_date)

    quotation_id = params.get("quotationId")
    if quotation_id:
        queryset = queryset.filter(quotation_id=quotation_id)

    query = params.get("search")
    if query:
        query = query.strip()
        queryset = queryset.filter(
            Q(location__icontains=query)
            | Q(quotation__id__icontains=query)
            | Q(quotation__customer__first_name__icontains=query)
            | Q(quotation__customer__last_name__icontains=query)
            | Q(quotation__customer__mobile__icontains=query)
        )
    return queryset


class VisitViewSet(viewsets.ModelViewSet):
    serializer_class = VisitSerializer
    permission_classes = [RolePermission]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]
    capability_map = {
        "list": ["visits.view"],
        "retrieve": ["visits.view"],
        "create": ["visits.manage"],
        "destroy": ["visits.manage"],
        "partial_update": ["visits.manage"],
        "approve": ["visits.transition"],
        "reject": ["visits.transition"],
        "complete": ["visits.transition"],
        "incomplete": ["visits.transition"],
        "reschedule": ["visits.transition"],
    }

    def get_queryset(self):
        queryset = Visit.objects.select_related("quotation").prefetch_related("assignments", "images")
        if self.action in TRANSITION_ACTIONS:
            return queryset
        if not has_capability(self.request.user, "quotations.view.all"):
            queryset = queryset.filter(quotation__dealer=self.request.user)
        return filter_visits(queryset, self.request.query_params).order_by("-date", "-time")

    def create(self, request, *args, **kwargs):
        serializer = VisitCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        visit = create_visit(actor=request.user, data=serializer.validated_data)
        return Response(VisitSerializer(visit).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        raise MethodNotAllowed(request.method, detail="Visit status changes through its transition actions")

    def perform_destroy(self, instance):
        delete_visit(instance, self.request.user)

    def _transition(self, request, name):
        visit = transition_visit(self.get_object(), name, request.data, request.user)
        return Response(VisitSerializer(visit).data, status=200)

    @action(detail=True, methods=["patch", "post"])
    def approve(self, request, pk=None):
        return self._transition(request, "approve")

    @action(detail=True, methods=["patch", "post"])
    def reject(self, request, pk=None):
        return self._transition(request, "reject")

    @action(detail=True, methods=["patch", "post"])
    def complete(self, request, pk=None):
        return self._transition(request, "complete")

    @action(detail=True, methods=["patch", "post"])
    def incomplete(self, request, pk=None):
        return self._transition(request, "incomplete")

    @action(detail=True, methods=["patch", "post"])
    def reschedule(self, request, pk=None):
        return self._transition(request, "reschedule")


class VisitorVisitListView(generics.ListAPIView):
    serializer_class = AssignedVisitSerializer
    permission_classes = [RolePermission]
    capability_map = {"get": ["visits.assigned"]}

    def get_queryset(self):
        queryset = (
            Visit.objects.assigned_to(self.request.user)
            .select_related("quotation__customer", "quotation__dealer")
            .prefetch_related("assignments", "images")
        )
        return filter_visits(queryset, self.request.query_params).order_by("-date", "-time")


class VisitorStatisticsView(APIView):
    permission_classes = [RolePermission]
    capability_map = {"get": ["visits.assigned"]}

    def get(self, request):
        visits = Visit.objects.filter(assignments__visitor=request.user)
        visits = filter_visits(visits, request.query_params)
        return Response(status_counts(visits), status=200)
