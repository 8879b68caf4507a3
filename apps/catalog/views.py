from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.catalog.models import INDIAN_STATES, CatalogCategory, CatalogItem
from apps.catalog.serializers import CatalogItemSerializer, CatalogReplaceSerializer
from apps.catalog.services import build_product_catalog, replace_category
from apps.common.exceptions import ServiceError
from apps.common.permissions import RolePermission


class ProductConfigView(APIView):
    permission_classes = [RolePermission]
    capability_map = {"get": ["catalog.view"], "put": ["catalog.manage"]}

    def get(self, request):
        queryset = CatalogItem.objects.all()
        category = request.query_params.get("category")
        if category:
            if category not in CatalogCategory.values:
                raise ServiceError(
                    "Unknown catalog category",
                    details=[{"field": "category", "message": f"Expected one of {', '.join(CatalogCategory.values)}"}],
                )
            queryset = queryset.for_category(category)

        is_active = request.query_params.get("isActive")
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.strip().lower() in {"1", "true", "yes"})
        return Response(CatalogItemSerializer(queryset, many=True).data)

    def put(self, request):
        payload = request.data
        if isinstance(payload, dict) and isinstance(payload.get("items"), list):
            payload = {
                **payload,
                "items": [{"category": payload.get("category"), **item} for item in payload["items"]],
            }
        serializer = CatalogReplaceSerializer(data=payload)
        serializer.is_valid(raise_exception=True)
        items = [
            {key: value for key, value in item.items() if key != "category"}
            for item in serializer.validated_data["items"]
        ]
        created = replace_category(
            category=serializer.validated_data["category"],
            items=items,
            actor=request.user,
        )
        return Response(CatalogItemSerializer(created, many=True).data, status=status.HTTP_200_OK)


class ProductCatalogView(APIView):
    permission_classes = [RolePermission]
    capability_map = {"get": ["catalog.view"]}

    def get(self, request):
        return Response(build_product_catalog())


class StateListView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response(INDIAN_STATES)
