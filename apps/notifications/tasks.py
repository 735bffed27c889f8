import logging
from datetime import timedelta
from decimal import Decimal

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from apps.authentication.models import ADMIN_ROLES, User
from apps.payments.exceptions import NotificationError
from apps.payments.ledger import failed_entries
from apps.payments.models import Payment
from apps.projects.models import Project

from .models import Notification


logger = logging.getLogger(__name__)


def format_amount(amount: int) -> str:
    return f"{Decimal(amount) / Decimal('100'):.2f}"


def _portal_url(path: str) -> str:
    return f"{settings.FRONTEND_BASE_URL.rstrip('/')}{path}"


def _deliver(subject: str, body: str, recipients: list[str]) -> None:
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, recipients, fail_silently=False)
    except Exception as exc:  # noqa: BLE001
        raise NotificationError(f"Failed to send '{subject}' to {', '.join(recipients)}") from exc


@shared_task
def send_payment_success_email(payment_id: str) -> bool:
    payment = (
        Payment.objects.select_related("project__client", "proposal__inquiry")
        .filter(pk=payment_id)
        .first()
    )
    if payment is None:
        logger.warning("Payment %s vanished before its receipt could be sent", payment_id)
        return False

    project = payment.project or Project.objects.select_related("client").filter(proposal_id=payment.proposal_id).first()
    inquiry = payment.proposal.inquiry
    if project and project.client:
        recipient, client_name = project.client.email, project.client.full_name
    else:
        recipient, client_name = inquiry.contact_email, inquiry.contact_name
    if not recipient:
        logger.warning("No recipient for payment %s receipt", payment.id)
        return False

    project_number = project.project_number if project else "your project"
    body = (
        f"Hi {client_name or 'there'},\n\n"
        f"We received your {payment.payment_type} payment of "
        f"{payment.currency} {format_amount(payment.amount)} for {project_number}.\n\n"
        f"Track progress in your portal: {_portal_url('/#/portal/projects')}\n"
    )
    try:
        _deliver(f"Payment received for {project_number}", body, [recipient])
    except NotificationError:
        logger.exception("Receipt for payment %s was not delivered", payment.id)
        return False
    return True


@shared_task
def send_payment_failure_alert(
    payment_id: str,
    order_id: str,
    error_code: str | None = None,
    error_description: str | None = None,
) -> bool:
    description = error_description or error_code or "Payment failed"
    message = f"Payment failed for order {order_id}. {description}"

    admins = User.objects.filter(role__in=ADMIN_ROLES, is_active=True)
    Notification.objects.bulk_create(
        [
            Notification(
                user=admin,
                type="payment_failed",
                title="Payment Failed",
                body=message,
                action_url="/#/admin/payments",
            )
            for admin in admins
        ]
    )

    body = (
        f"{message}\n\n"
        f"Payment: {payment_id}\n"
        f"Error code: {error_code or '-'}\n"
        f"Description: {error_description or '-'}\n"
    )
    try:
        _deliver(f"[Billing] Payment failed for order {order_id}", body, [settings.ADMIN_NOTIFICATION_EMAIL])
    except NotificationError:
        logger.exception("Failure alert for order %s was not delivered", order_id)
        return False
    return True


@shared_task
def alert_on_failed_webhooks(window_minutes: int = 60) -> int:
    """Email operators a digest of webhook deliveries that need manual reconciliation."""
    since = timezone.now() - timedelta(minutes=window_minutes)
    entries = list(failed_entries(since=since).filter(signature_verified=True))
    if not entries:
        return 0

    lines = [
        f"- {entry.created_at:%Y-%m-%d %H:%M} {entry.event} order={entry.razorpay_order_id or '-'} "
        f"log={entry.id}: {entry.error or 'unknown error'}"
        for entry in entries
    ]
    body = (
        f"{len(entries)} webhook deliveries failed in the last {window_minutes} minutes.\n"
        "Replay with: python manage.py replay_webhook <log id>\n\n" + "\n".join(lines)
    )
    try:
        _deliver("[Billing] Failed Razorpay webhooks", body, [settings.ADMIN_NOTIFICATION_EMAIL])
    except NotificationError:
        logger.exception("Failed webhook digest was not delivered")
    return len(entries)
