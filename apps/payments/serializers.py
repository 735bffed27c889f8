from rest_framework import serializers

from .models import Payment, PaymentWebhookLog


class PaymentSerializer(serializers.ModelSerializer):
    project_number = serializers.CharField(source="project.project_number", read_only=True, allow_null=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "proposal",
            "project",
            "project_number",
            "payment_type",
            "amount",
            "currency",
            "status",
            "razorpay_order_id",
            "razorpay_payment_id",
            "payment_method",
            "failure_reason",
            "confirmed_via",
            "paid_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PaymentWebhookLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentWebhookLog
        fields = [
            "id",
            "event",
            "razorpay_event_id",
            "razorpay_order_id",
            "razorpay_payment_id",
            "payload",
            "signature_verified",
            "status",
            "error",
            "ip_address",
            "payment",
            "processed_at",
            "created_at",
        ]
        read_only_fields = fields


class CreateOrderSerializer(serializers.Serializer):
    proposalId = serializers.UUIDField()
    paymentType = serializers.ChoiceField(choices=[choice for choice, _ in Payment.PAYMENT_TYPE_CHOICES])


class VerifyPaymentSerializer(serializers.Serializer):
    """
    Payload posted by the browser once Razorpay Checkout reports success.
    """

    paymentId = serializers.UUIDField()
    razorpayOrderId = serializers.CharField(required=False, allow_blank=True)
    razorpayPaymentId = serializers.CharField()
    razorpaySignature = serializers.CharField(required=False, allow_blank=True)


class ManualCompleteSerializer(serializers.Serializer):
    paymentId = serializers.UUIDField()
