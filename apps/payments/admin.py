from django.contrib import admin

from .models import Payment, PaymentWebhookLog


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("razorpay_order_id", "payment_type", "amount", "currency", "status", "confirmed_via", "project", "paid_at")
    search_fields = ("razorpay_order_id", "razorpay_payment_id", "project__project_number")
    list_filter = ("status", "payment_type", "confirmed_via")
    readonly_fields = ("amount", "currency", "razorpay_order_id", "project", "created_at", "updated_at")


@admin.register(PaymentWebhookLog)
class PaymentWebhookLogAdmin(admin.ModelAdmin):
    list_display = ("event", "razorpay_event_id", "razorpay_order_id", "status", "signature_verified", "created_at")
    search_fields = ("razorpay_event_id", "razorpay_order_id", "razorpay_payment_id")
    list_filter = ("status", "signature_verified", "event")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
