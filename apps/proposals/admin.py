from django.contrib import admin

from .models import Inquiry, Proposal


@admin.register(Inquiry)
class InquiryAdmin(admin.ModelAdmin):
    list_display = ("inquiry_number", "contact_name", "contact_email", "status", "converted_project", "created_at")
    search_fields = ("inquiry_number", "contact_email", "contact_name", "company_name")
    list_filter = ("status",)


@admin.register(Proposal)
class ProposalAdmin(admin.ModelAdmin):
    list_display = ("id", "inquiry", "status", "currency", "total_price", "advance_amount", "balance_amount")
    search_fields = ("inquiry__inquiry_number", "inquiry__contact_email")
    list_filter = ("status", "currency")
