import json
import uuid

import pytest
from django.conf import settings
from rest_framework.test import APIClient

from apps.authentication.models import User
from apps.payments.models import Payment
from apps.payments.signatures import compute_signature
from apps.proposals.models import Inquiry, Proposal


DELIVERABLE_IDS = [
    "0f8fad5b-d9cb-469f-a165-70867728950e",
    "7c9e6679-7425-40de-944b-e07fc1f90ae7",
]


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="ops@studio.test",
        password="pass12345",
        full_name="Ops Admin",
        role="super_admin",
    )


@pytest.fixture
def inquiry(db):
    return Inquiry.objects.create(
        inquiry_number=f"INQ-{uuid.uuid4().hex[:8]}",
        contact_name="Asha Rao",
        contact_email="Asha@Example.com",
        company_name="Rao Textiles",
        status="accepted",
    )


@pytest.fixture
def proposal(inquiry):
    return Proposal.objects.create(
        inquiry=inquiry,
        description="Brand refresh",
        status="accepted",
        currency="INR",
        total_price=100000,
        advance_percentage=50,
        advance_amount=50000,
        balance_amount=50000,
        deliverables=[
            {
                "id": DELIVERABLE_IDS[0],
                "name": "Logo",
                "description": "Primary mark and variants",
                "estimatedCompletionWeek": 2,
            },
            {
                "id": DELIVERABLE_IDS[1],
                "name": "Brand guide",
                "description": "",
                "estimatedCompletionWeek": 4,
            },
        ],
    )


@pytest.fixture
def make_payment(proposal):
    def _make(payment_type="advance", status="pending", order_id=None, **extra):
        return Payment.objects.create(
            proposal=proposal,
            payment_type=payment_type,
            amount=proposal.amount_for(payment_type),
            currency=proposal.currency,
            status=status,
            razorpay_order_id=order_id or f"order_{uuid.uuid4().hex[:14]}",
            **extra,
        )

    return _make


@pytest.fixture
def advance_payment(make_payment):
    return make_payment(order_id="order_ADV001")


@pytest.fixture
def razorpay_event():
    """Build a Razorpay webhook body for a payment event."""

    def _build(event, order_id, payment_id="pay_TEST001", **entity):
        return {
            "entity": "event",
            "event": event,
            "payload": {
                "payment": {
                    "entity": {
                        "id": payment_id,
                        "order_id": order_id,
                        "method": "upi",
                        **entity,
                    }
                }
            },
        }

    return _build


@pytest.fixture
def post_webhook(api_client):
    """Post a body to the webhook endpoint, signed with the test secret unless told otherwise."""

    def _post(payload, event_id=None, signature=None, raw_body=None, **extra):
        body = raw_body if raw_body is not None else json.dumps(payload).encode("utf-8")
        if signature is None:
            signature = compute_signature(body, settings.RAZORPAY_WEBHOOK_SECRET)
        headers = {"HTTP_X_RAZORPAY_SIGNATURE": signature, **extra}
        if event_id:
            headers["HTTP_X_RAZORPAY_EVENT_ID"] = event_id
        return api_client.post(
            "/api/payments/razorpay/webhook/",
            data=body,
            content_type="application/json",
            **headers,
        )

    return _post
