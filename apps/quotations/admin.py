from django.contrib import admin

from apps.quotations.models import CustomPanel, Quotation, QuotationDraft, QuotationProduct


class QuotationProductInline(admin.StackedInline):
    model = QuotationProduct
    extra = 0
    can_delete = False


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = ("id", "dealer", "customer", "system_type", "status", "total_amount", "created_at", "valid_until")
    list_filter = ("status", "system_type")
    search_fields = ("id", "customer__first_name", "customer__last_name", "customer__mobile", "dealer__username")
    inlines = [QuotationProductInline]


@admin.register(CustomPanel)
class CustomPanelAdmin(admin.ModelAdmin):
    list_display = ("product", "brand", "size", "quantity", "panel_type", "price")


@admin.register(QuotationDraft)
class QuotationDraftAdmin(admin.ModelAdmin):
    list_display = ("dealer", "step", "discount", "updated_at")
