"""
Razorpay webhook event handlers.

Handlers are registered per event type and receive the parsed webhook
body. Event types without a handler are acknowledged without touching any
payment, so Razorpay does not keep retrying them.
"""

from __future__ import annotations

import json
import logging
from typing import Callable

from django.db import transaction

from .exceptions import PayloadParseError, ProcessingError
from .ledger import log_webhook, log_webhook_safely
from .services import TransitionResult, confirm_payment, fail_payment


logger = logging.getLogger(__name__)


WEBHOOK_HANDLERS: dict[str, Callable[[dict], TransitionResult]] = {}


def register_handler(*event_types: str) -> Callable:
    def decorator(func: Callable[[dict], TransitionResult]) -> Callable:
        for name in event_types:
            WEBHOOK_HANDLERS[name] = func
        return func

    return decorator


def event_type(payload: dict) -> str:
    event = payload.get("event")
    return event if isinstance(event, str) else ""


def payment_entity(payload: dict) -> dict:
    # Any level that is not an object means there is no entity.
    node = payload
    for key in ("payload", "payment", "entity"):
        node = node.get(key) if isinstance(node, dict) else None
    return node if isinstance(node, dict) else {}


def parse_payload(raw_body: bytes) -> dict:
    try:
        payload = json.loads(raw_body)
    except ValueError as exc:
        raise PayloadParseError("Invalid JSON payload") from exc
    if not isinstance(payload, dict):
        raise PayloadParseError("Invalid JSON payload")
    return payload


@register_handler("payment.captured", "order.paid")
def handle_payment_captured(payload: dict) -> TransitionResult:
    entity = payment_entity(payload)
    if not entity.get("order_id"):
        return TransitionResult(success=False, error="No payment entity in payload")

    return confirm_payment(
        source="webhook",
        order_id=entity["order_id"],
        razorpay_payment_id=entity.get("id"),
        payment_method=entity.get("method"),
    )


@register_handler("payment.failed")
def handle_payment_failed(payload: dict) -> TransitionResult:
    entity = payment_entity(payload)
    if not entity.get("order_id"):
        return TransitionResult(success=False, error="No payment entity in payload")

    return fail_payment(
        source="webhook",
        order_id=entity["order_id"],
        error_code=entity.get("error_code"),
        error_description=entity.get("error_description"),
    )


def dispatch_webhook(payload: dict) -> TransitionResult:
    event = event_type(payload)
    handler = WEBHOOK_HANDLERS.get(event)
    if handler is None:
        logger.info("Unhandled Razorpay webhook event type: %s", event)
        return TransitionResult(success=True)
    return handler(payload)


def process_delivery(
    *,
    payload: dict,
    raw_body: str,
    signature: str,
    event_id: str | None,
    ip_address: str | None = None,
) -> TransitionResult:
    """
    Apply a verified webhook delivery and record it in the ledger.

    The state change and its ledger row commit together. If anything
    raises, the transaction is rolled back, a FAILED row is written on its
    own and ``ProcessingError`` is raised for the caller to acknowledge.
    """
    entity = payment_entity(payload)
    ledger_fields = {
        "event": event_type(payload),
        "event_id": event_id,
        "order_id": entity.get("order_id") or "",
        "razorpay_payment_id": entity.get("id"),
        "payload": payload,
        "raw_body": raw_body,
        "signature": signature,
        "signature_verified": True,
        "ip_address": ip_address,
    }

    try:
        with transaction.atomic():
            result = dispatch_webhook(payload)
            log_webhook(
                **ledger_fields,
                status="PROCESSED" if result.success else "FAILED",
                error=result.error,
                payment_id=result.payment_id,
            )
    except Exception as exc:  # noqa: BLE001
        message = str(exc) or exc.__class__.__name__
        logger.exception("Webhook %s (%s) failed to process", ledger_fields["event"], event_id)
        log_webhook_safely(**ledger_fields, status="FAILED", error=message)
        raise ProcessingError(message) from exc

    return result
