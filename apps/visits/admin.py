from django.contrib import admin

from apps.visits.models import Visit, VisitAssignment, VisitImage


class VisitAssignmentInline(admin.TabularInline):
    model = VisitAssignment
    extra = 0


class VisitImageInline(admin.TabularInline):
    model = VisitImage
    extra = 0


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ("quotation", "date", "time", "location", "status", "created_by")
    list_filter = ("status", "date")
    search_fields = ("quotation__id", "location")
    inlines = [VisitAssignmentInline, VisitImageInline]
