"""
Payment state transitions.

Every transition is a single conditional UPDATE whose WHERE clause acts as
an optimistic lock: whichever confirmation channel (webhook, client verify,
admin) changes the row first wins, and everyone else observes an
idempotent no-op. Provisioning runs in the same transaction as the winning
transition, so a failure there leaves the payment exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.notifications.services import notify_payment_completed, notify_payment_failed
from apps.projects.services import provision_project_for_payment

from .exceptions import PaymentNotFound
from .models import Payment


logger = logging.getLogger(__name__)

# A payment in one of these states can no longer be completed or failed.
FINAL_STATUSES = ("completed", "refunded")

PAYMENT_NOT_FOUND = "Payment not found"


@dataclass
class TransitionResult:
    success: bool
    payment_id: Optional[str] = None
    error: Optional[str] = None
    changed: bool = False


def get_payment(payment_id) -> Payment:
    payment = Payment.objects.filter(pk=payment_id).first()
    if payment is None:
        raise PaymentNotFound(PAYMENT_NOT_FOUND)
    return payment


def _lookup(order_id: str | None, payment_id) -> dict:
    if payment_id:
        return {"pk": payment_id}
    if order_id:
        return {"razorpay_order_id": order_id}
    raise ValueError("Either order_id or payment_id is required")


def confirm_payment(
    *,
    source: str,
    order_id: str | None = None,
    payment_id=None,
    razorpay_payment_id: str | None = None,
    razorpay_signature: str | None = None,
    payment_method: str | None = None,
) -> TransitionResult:
    """
    Move a payment to ``completed`` and provision its project.

    Shared by the webhook, the client verify call and the admin
    manual-complete call. Returns ``changed=True`` only for the call that
    actually performed the transition.
    """
    lookup = _lookup(order_id, payment_id)
    now = timezone.now()
    updates = {
        "status": "completed",
        "confirmed_via": source,
        "paid_at": now,
        "updated_at": now,
    }
    if razorpay_payment_id:
        updates["razorpay_payment_id"] = razorpay_payment_id
    if razorpay_signature:
        updates["razorpay_signature"] = razorpay_signature
    if payment_method:
        updates["payment_method"] = payment_method.upper()

    with transaction.atomic():
        changed = Payment.objects.filter(**lookup).exclude(status__in=FINAL_STATUSES).update(**updates)
        payment = Payment.objects.filter(**lookup).first()

        if payment is None:
            logger.warning("confirm_payment(%s): no payment for %s", source, lookup)
            return TransitionResult(success=False, error=PAYMENT_NOT_FOUND)

        if not changed:
            logger.info(
                "confirm_payment(%s): payment %s already %s, nothing to do",
                source,
                payment.id,
                payment.status,
            )
            return TransitionResult(success=True, payment_id=str(payment.id))

        if payment.payment_type == "advance" and payment.project_id is None:
            provision_project_for_payment(payment)

        notify_payment_completed(payment.id)

    logger.info("Payment %s completed via %s", payment.id, source)
    return TransitionResult(success=True, payment_id=str(payment.id), changed=True)


def fail_payment(
    *,
    source: str,
    order_id: str | None = None,
    payment_id=None,
    error_code: str | None = None,
    error_description: str | None = None,
) -> TransitionResult:
    """
    Move a payment to ``failed`` unless it already completed.

    A late or duplicate failure event (common with retried UPI attempts)
    never regresses a completed payment.
    """
    lookup = _lookup(order_id, payment_id)
    reason = error_description or error_code or "Payment failed"

    with transaction.atomic():
        changed = (
            Payment.objects.filter(**lookup)
            .exclude(status__in=FINAL_STATUSES)
            .update(status="failed", failure_reason=reason, updated_at=timezone.now())
        )
        payment = Payment.objects.filter(**lookup).first()

        if not changed:
            if payment is not None:
                logger.info("fail_payment(%s): payment %s is %s, ignoring failure", source, payment.id, payment.status)
            else:
                logger.info("fail_payment(%s): no payment for %s", source, lookup)
            return TransitionResult(success=True, payment_id=str(payment.id) if payment else None)

        notify_payment_failed(
            payment.id,
            order_id=payment.razorpay_order_id,
            error_code=error_code,
            error_description=error_description,
        )

    logger.info("Payment %s marked failed via %s: %s", payment.id, source, reason)
    return TransitionResult(success=True, payment_id=str(payment.id), changed=True)
