from django.contrib import admin

from apps.catalog.models import CatalogItem


@admin.register(CatalogItem)
class CatalogItemAdmin(admin.ModelAdmin):
    list_display = ("category", "brand", "size", "item_type", "price", "is_active", "updated_at")
    list_filter = ("category", "is_active")
    search_fields = ("brand", "size", "item_type", "normalized_brand")
