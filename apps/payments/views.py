import logging
import time

from django.conf import settings
from django.db.models import Q
from rest_framework import permissions, status, views, viewsets
from rest_framework.response import Response

from apps.authentication.permissions import IsAdmin, IsAdminOrClient
from apps.proposals.models import Proposal
from core.utils import get_client_ip

from . import ledger
from .exceptions import (
    OrderGatewayError,
    PayloadParseError,
    PaymentNotFound,
    ProcessingError,
    SignatureInvalid,
)
from .gateway import create_payment_order
from .models import Payment, PaymentWebhookLog
from .serializers import (
    CreateOrderSerializer,
    ManualCompleteSerializer,
    PaymentSerializer,
    PaymentWebhookLogSerializer,
    VerifyPaymentSerializer,
)
from .services import confirm_payment, get_payment
from .signatures import require_webhook_signature, verify_checkout_signature
from .webhooks import event_type, parse_payload, payment_entity, process_delivery


logger = logging.getLogger(__name__)


class RazorpayWebhookView(views.APIView):
    """
    Authoritative payment confirmation from Razorpay.

    Every outcome except a bad signature or an unparsable body is
    acknowledged with 200 so Razorpay stops retrying; failures are kept in
    the webhook ledger for manual reconciliation.
    """

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []
    throttle_classes: list = []

    def post(self, request, *args, **kwargs):
        started = time.monotonic()

        secret = settings.RAZORPAY_WEBHOOK_SECRET
        if not secret:
            logger.error("RAZORPAY_WEBHOOK_SECRET is not configured")
            return Response({"error": "Webhook not configured"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        # Signature is computed over the body exactly as received.
        raw_body = request.body
        signature = request.headers.get("x-razorpay-signature", "")
        event_id = request.headers.get("x-razorpay-event-id") or None
        ip_address = get_client_ip(request)

        try:
            payload = parse_payload(raw_body)
        except PayloadParseError as exc:
            logger.warning("Rejected Razorpay webhook with unparsable body from %s", ip_address)
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        event = event_type(payload)
        entity = payment_entity(payload)
        logger.info(
            "Razorpay webhook received: event=%s event_id=%s order=%s ip=%s",
            event,
            event_id,
            entity.get("order_id"),
            ip_address,
        )

        try:
            require_webhook_signature(raw_body, signature, secret)
        except SignatureInvalid as exc:
            logger.error("Razorpay webhook signature verification failed (event_id=%s)", event_id)
            ledger.log_webhook_safely(
                event=event,
                event_id=event_id,
                order_id=entity.get("order_id") or "",
                razorpay_payment_id=entity.get("id"),
                payload=payload,
                raw_body=raw_body.decode("utf-8", errors="replace"),
                signature=signature,
                signature_verified=False,
                status="FAILED",
                error=str(exc),
                ip_address=ip_address,
            )
            return Response({"error": "Invalid signature"}, status=status.HTTP_401_UNAUTHORIZED)

        if event_id:
            try:
                if ledger.is_event_processed(event_id):
                    logger.info("Razorpay event %s already processed", event_id)
                    return Response({"status": "already_processed"}, status=status.HTTP_200_OK)
            except Exception:  # noqa: BLE001
                # Processing is idempotent, so a failed lookup falls through to it.
                logger.exception("Idempotency lookup failed for event %s", event_id)

        try:
            result = process_delivery(
                payload=payload,
                raw_body=raw_body.decode("utf-8", errors="replace"),
                signature=signature,
                event_id=event_id,
                ip_address=ip_address,
            )
        except ProcessingError as exc:
            return Response({"status": "error", "error": str(exc)}, status=status.HTTP_200_OK)

        logger.info(
            "Razorpay webhook processed: event=%s event_id=%s success=%s changed=%s in %.0fms",
            event,
            event_id,
            result.success,
            result.changed,
            (time.monotonic() - started) * 1000,
        )
        return Response({"status": "ok", "event": event, "processed": result.success}, status=status.HTTP_200_OK)


class CreateOrderView(views.APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminOrClient]

    def post(self, request, *args, **kwargs):
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        proposal = Proposal.objects.select_related("inquiry").filter(pk=data["proposalId"]).first()
        if proposal is None:
            return Response({"detail": "Proposal not found"}, status=status.HTTP_404_NOT_FOUND)

        user = request.user
        if not getattr(user, "is_portal_admin", False) and proposal.inquiry.contact_email.lower() != user.email.lower():
            return Response({"detail": "Proposal not found"}, status=status.HTTP_404_NOT_FOUND)

        try:
            payment = create_payment_order(proposal, data["paymentType"])
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except OrderGatewayError as exc:
            logger.error("Order creation failed for proposal %s: %s", proposal.id, exc)
            return Response(
                {"detail": "Failed to contact payment provider. Please try again.", "error": str(exc)},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        body = PaymentSerializer(payment).data
        body["razorpay_key_id"] = settings.RAZORPAY_KEY_ID
        return Response(body, status=status.HTTP_201_CREATED)


class PaymentVerifyView(views.APIView):
    """
    Optimistic confirmation posted by the browser after Razorpay Checkout.

    Exists for a responsive UI; the webhook remains the authority and both
    converge on the same state transition.
    """

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            payment = get_payment(data["paymentId"])
        except PaymentNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

        order_id = data.get("razorpayOrderId") or payment.razorpay_order_id
        if order_id != payment.razorpay_order_id:
            return Response({"detail": "Order does not match payment"}, status=status.HTTP_400_BAD_REQUEST)

        key_secret = settings.RAZORPAY_KEY_SECRET
        if key_secret and not verify_checkout_signature(
            order_id,
            data["razorpayPaymentId"],
            data.get("razorpaySignature", ""),
            key_secret,
        ):
            logger.warning("Checkout signature mismatch for payment %s (order %s)", payment.id, order_id)
            return Response({"detail": "Signature verification failed"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            confirm_payment(
                source="verify",
                order_id=order_id,
                razorpay_payment_id=data["razorpayPaymentId"],
                razorpay_signature=data.get("razorpaySignature") or None,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Client verify failed for payment %s", payment.id)
            return Response(
                {"detail": "Failed to confirm payment.", "error": str(exc)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        payment.refresh_from_db()
        return Response(PaymentSerializer(payment).data, status=status.HTTP_200_OK)


class ManualCompleteView(views.APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def post(self, request, *args, **kwargs):
        serializer = ManualCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            payment = get_payment(serializer.validated_data["paymentId"])
        except PaymentNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

        try:
            result = confirm_payment(source="manual", payment_id=payment.pk)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Manual completion failed for payment %s", payment.id)
            return Response(
                {"detail": "Failed to complete payment.", "error": str(exc)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        logger.info("Payment %s manually completed by %s (changed=%s)", payment.id, request.user.email, result.changed)
        payment.refresh_from_db()
        return Response(PaymentSerializer(payment).data, status=status.HTTP_200_OK)


class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminOrClient]
    filterset_fields = ["proposal", "project", "status", "payment_type"]
    search_fields = ["razorpay_order_id", "razorpay_payment_id", "project__project_number"]
    ordering_fields = ["created_at", "amount", "paid_at"]

    def get_queryset(self):
        user = self.request.user
        qs = Payment.objects.select_related("project", "proposal")
        if getattr(user, "is_portal_admin", False):
            return qs
        if getattr(user, "role", None) == "client":
            return qs.filter(Q(project__client=user) | Q(proposal__inquiry__contact_email__iexact=user.email))
        return qs.none()


class PaymentWebhookLogViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PaymentWebhookLogSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdmin]
    queryset = PaymentWebhookLog.objects.all()
    filterset_fields = ["status", "event", "razorpay_event_id", "razorpay_order_id", "signature_verified"]
    ordering_fields = ["created_at"]
