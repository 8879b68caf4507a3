from django.urls import path

from apps.catalog.views import ProductCatalogView, ProductConfigView, StateListView

urlpatterns = [
    path("config/products/", ProductConfigView.as_view(), name="config-products"),
    path("config/states/", StateListView.as_view(), name="config-states"),
    path("quotations/product-catalog/", ProductCatalogView.as_view(), name="quotation-product-catalog"),
]
