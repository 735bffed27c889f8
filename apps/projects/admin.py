from django.contrib import admin

from .models import Deliverable, Project


class DeliverableInline(admin.TabularInline):
    model = Deliverable
    extra = 0
    fields = ("id", "name", "estimated_completion_week", "status")
    readonly_fields = ("id",)


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("project_number", "client", "status", "proposal", "created_at")
    search_fields = ("project_number", "client__email", "inquiry__inquiry_number")
    list_filter = ("status",)
    inlines = [DeliverableInline]


@admin.register(Deliverable)
class DeliverableAdmin(admin.ModelAdmin):
    list_display = ("name", "project", "status", "estimated_completion_week")
    search_fields = ("name", "project__project_number")
    list_filter = ("status",)
