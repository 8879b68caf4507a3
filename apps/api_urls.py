from django.urls import include, path

urlpatterns = [
    path("", include("apps.accounts.urls")),
    path("", include("apps.catalog.urls")),
    path("", include("apps.customers.urls")),
    path("", include("apps.quotations.urls")),
    path("", include("apps.visits.urls")),
]
