from django.contrib import admin

from apps.customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "mobile", "city", "state", "dealer", "updated_at")
    list_filter = ("state",)
    search_fields = ("first_name", "last_name", "mobile", "email", "dealer__username")
