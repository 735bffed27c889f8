from __future__ import annotations

import logging

from django.db import transaction

from .tasks import send_payment_failure_alert, send_payment_success_email


logger = logging.getLogger(__name__)


def _enqueue(task, *args) -> None:
    try:
        task.delay(*args)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to enqueue %s%r", task.name, args)


def notify_payment_completed(payment_id) -> None:
    transaction.on_commit(lambda: _enqueue(send_payment_success_email, str(payment_id)))


def notify_payment_failed(
    payment_id,
    order_id: str,
    error_code: str | None = None,
    error_description: str | None = None,
) -> None:
    transaction.on_commit(
        lambda: _enqueue(
            send_payment_failure_alert,
            str(payment_id),
            order_id,
            error_code,
            error_description,
        )
    )
