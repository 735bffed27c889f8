from __future__ import annotations

import logging
import uuid

import requests
from django.conf import settings

from apps.proposals.models import Proposal

from .exceptions import OrderGatewayError
from .models import Payment


logger = logging.getLogger(__name__)

RAZORPAY_API_BASE = "https://api.razorpay.com/v1"


def create_razorpay_order(amount: int, currency: str, receipt: str, notes: dict | None = None) -> dict:
    """
    Create an order with Razorpay's Orders API.

    Without API keys (local development) an order is simulated so the rest
    of the checkout flow can still be exercised.
    """
    key_id = settings.RAZORPAY_KEY_ID
    key_secret = settings.RAZORPAY_KEY_SECRET
    if not key_id or not key_secret:
        return {
            "id": f"order_test_{uuid.uuid4().hex[:14]}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
        }

    try:
        resp = requests.post(
            f"{RAZORPAY_API_BASE}/orders",
            auth=(key_id, key_secret),
            json={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
            timeout=15,
        )
    except requests.RequestException as exc:
        raise OrderGatewayError(f"Razorpay order request failed: {exc}") from exc

    if resp.status_code not in (200, 201):
        raise OrderGatewayError(f"Razorpay order error: {resp.text}")

    data = resp.json() or {}
    if not data.get("id"):
        raise OrderGatewayError("Razorpay order response did not include an id")
    return data


def create_payment_order(proposal: Proposal, payment_type: str) -> Payment:
    if proposal.status != "accepted":
        raise ValueError("Proposal must be accepted before payment")

    if Payment.objects.filter(proposal=proposal, payment_type=payment_type, status="completed").exists():
        raise ValueError(f"The {payment_type} payment for this proposal is already completed")

    amount = proposal.amount_for(payment_type)
    if amount <= 0:
        raise ValueError(f"Proposal has no {payment_type} amount to collect")

    receipt = f"rcpt_{payment_type}_{uuid.uuid4().hex[:12]}"
    order = create_razorpay_order(
        amount=amount,
        currency=proposal.currency,
        receipt=receipt,
        notes={"proposal_id": str(proposal.id), "payment_type": payment_type},
    )

    payment = Payment.objects.create(
        proposal=proposal,
        payment_type=payment_type,
        amount=amount,
        currency=proposal.currency,
        status="pending",
        razorpay_order_id=order["id"],
    )
    logger.info(
        "Created %s payment %s for proposal %s (order %s, %s %s)",
        payment_type,
        payment.id,
        proposal.id,
        payment.razorpay_order_id,
        proposal.currency,
        amount,
    )
    return payment
