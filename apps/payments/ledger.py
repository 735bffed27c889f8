from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from .models import PaymentWebhookLog


logger = logging.getLogger(__name__)


def is_event_processed(event_id: str | None) -> bool:
    if not event_id:
        return False
    return PaymentWebhookLog.objects.filter(
        razorpay_event_id=event_id,
        signature_verified=True,
        status__in=PaymentWebhookLog.TERMINAL_STATUSES,
    ).exists()


def log_webhook(
    *,
    event: str,
    event_id: str | None,
    order_id: str,
    razorpay_payment_id: str | None,
    payload: Any,
    raw_body: str,
    signature: str,
    signature_verified: bool,
    status: str,
    error: str | None = None,
    ip_address: str | None = None,
    payment_id=None,
) -> PaymentWebhookLog:
    return PaymentWebhookLog.objects.create(
        event=event or "",
        razorpay_event_id=event_id or None,
        razorpay_order_id=order_id or "",
        razorpay_payment_id=razorpay_payment_id,
        payload=payload,
        raw_body=raw_body,
        signature=signature or "",
        signature_verified=signature_verified,
        status=status,
        error=error,
        ip_address=ip_address,
        payment_id=payment_id,
        processed_at=timezone.now() if status == "PROCESSED" else None,
    )


def log_webhook_safely(**kwargs) -> PaymentWebhookLog | None:
    """Ledger write for paths where a logging failure must not change the response."""
    try:
        with transaction.atomic():
            return log_webhook(**kwargs)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to write webhook ledger entry for event %s", kwargs.get("event_id"))
        return None


def failed_entries(since: datetime | None = None) -> QuerySet[PaymentWebhookLog]:
    qs = PaymentWebhookLog.objects.filter(status="FAILED").select_related("payment")
    if since is not None:
        qs = qs.filter(created_at__gte=since)
    return qs
