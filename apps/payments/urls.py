from django.urls import path
from rest_framework.routers import SimpleRouter

from .views import (
    CreateOrderView,
    ManualCompleteView,
    PaymentVerifyView,
    PaymentViewSet,
    PaymentWebhookLogViewSet,
    RazorpayWebhookView,
)

router = SimpleRouter()
router.register("webhook-logs", PaymentWebhookLogViewSet, basename="payment-webhook-log")
router.register("", PaymentViewSet, basename="payment")

urlpatterns = [
    path("razorpay/webhook/", RazorpayWebhookView.as_view(), name="razorpay-webhook"),
    path("create-order/", CreateOrderView.as_view(), name="payment-create-order"),
    path("verify/", PaymentVerifyView.as_view(), name="payment-verify"),
    path("manual-complete/", ManualCompleteView.as_view(), name="payment-manual-complete"),
] + router.urls
