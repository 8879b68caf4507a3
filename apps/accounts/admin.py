from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import DealerProfile, User, VisitorProfile


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    fieldsets = DjangoUserAdmin.fieldsets + (("Solar Quotation", {"fields": ("role", "mobile")}),)
    list_display = DjangoUserAdmin.list_display + ("role", "is_active")
    list_filter = DjangoUserAdmin.list_filter + ("role",)


@admin.register(DealerProfile)
class DealerProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "city", "state", "government_id_type", "updated_at")
    search_fields = ("user__username", "user__first_name", "user__last_name", "city")
    autocomplete_fields = ("user",)


@admin.register(VisitorProfile)
class VisitorProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "employee_id", "created_by", "created_at")
    search_fields = ("user__username", "employee_id")
    autocomplete_fields = ("user", "created_by")
