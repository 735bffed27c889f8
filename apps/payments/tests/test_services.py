import uuid
from unittest import mock

import pytest

from apps.payments.exceptions import PaymentNotFound, ProvisioningError
from apps.payments.services import PAYMENT_NOT_FOUND, confirm_payment, fail_payment, get_payment
from apps.projects.models import Project

pytestmark = pytest.mark.django_db


class TestGetPayment:
    def test_returns_payment(self, advance_payment):
        assert get_payment(advance_payment.pk) == advance_payment

    def test_unknown_payment(self, db):
        with pytest.raises(PaymentNotFound, match=PAYMENT_NOT_FOUND):
            get_payment(uuid.uuid4())


class TestConfirmPayment:
    def test_completes_pending_advance_and_provisions_project(self, advance_payment):
        result = confirm_payment(
            source="webhook",
            order_id="order_ADV001",
            razorpay_payment_id="pay_1",
            payment_method="upi",
        )

        assert result.success and result.changed
        assert result.payment_id == str(advance_payment.id)
        advance_payment.refresh_from_db()
        assert advance_payment.status == "completed"
        assert advance_payment.confirmed_via == "webhook"
        assert advance_payment.razorpay_payment_id == "pay_1"
        assert advance_payment.payment_method == "UPI"
        assert advance_payment.paid_at is not None
        assert advance_payment.project is not None
        assert advance_payment.project.proposal_id == advance_payment.proposal_id

    def test_lookup_by_payment_id(self, advance_payment):
        result = confirm_payment(source="manual", payment_id=advance_payment.pk)

        assert result.changed
        advance_payment.refresh_from_db()
        assert advance_payment.confirmed_via == "manual"

    def test_second_confirmation_is_a_no_op(self, advance_payment):
        first = confirm_payment(source="verify", order_id="order_ADV001", razorpay_payment_id="pay_1")
        second = confirm_payment(source="webhook", order_id="order_ADV001", razorpay_payment_id="pay_2")

        assert first.changed
        assert second.success and not second.changed
        advance_payment.refresh_from_db()
        assert advance_payment.confirmed_via == "verify"
        assert advance_payment.razorpay_payment_id == "pay_1"
        assert Project.objects.count() == 1

    def test_failed_payment_can_still_complete(self, make_payment):
        payment = make_payment(status="failed", failure_reason="UPI timeout")

        result = confirm_payment(source="webhook", order_id=payment.razorpay_order_id)

        assert result.changed
        payment.refresh_from_db()
        assert payment.status == "completed"

    def test_refunded_payment_is_not_completed_again(self, make_payment):
        payment = make_payment(status="refunded")

        result = confirm_payment(source="webhook", order_id=payment.razorpay_order_id)

        assert result.success and not result.changed
        payment.refresh_from_db()
        assert payment.status == "refunded"
        assert not Project.objects.exists()

    def test_unknown_order(self, db):
        result = confirm_payment(source="webhook", order_id="order_missing")

        assert not result.success
        assert result.error == PAYMENT_NOT_FOUND

    def test_requires_a_lookup_key(self, db):
        with pytest.raises(ValueError):
            confirm_payment(source="webhook")

    def test_balance_payment_does_not_provision(self, make_payment):
        payment = make_payment(payment_type="balance")

        result = confirm_payment(source="webhook", order_id=payment.razorpay_order_id)

        assert result.changed
        payment.refresh_from_db()
        assert payment.status == "completed"
        assert payment.project_id is None
        assert not Project.objects.exists()

    def test_provisioning_failure_rolls_back_the_transition(self, advance_payment):
        with mock.patch(
            "apps.payments.services.provision_project_for_payment",
            side_effect=ProvisioningError("deliverables malformed"),
        ):
            with pytest.raises(ProvisioningError):
                confirm_payment(source="webhook", order_id="order_ADV001", razorpay_payment_id="pay_1")

        advance_payment.refresh_from_db()
        assert advance_payment.status == "pending"
        assert advance_payment.razorpay_payment_id is None
        assert advance_payment.paid_at is None

    def test_notifies_only_on_the_winning_transition(self, advance_payment):
        with mock.patch("apps.payments.services.notify_payment_completed") as notify:
            confirm_payment(source="verify", order_id="order_ADV001")
            confirm_payment(source="webhook", order_id="order_ADV001")

        notify.assert_called_once_with(advance_payment.id)


class TestFailPayment:
    def test_marks_pending_payment_failed(self, advance_payment):
        result = fail_payment(
            source="webhook",
            order_id="order_ADV001",
            error_code="BAD_REQUEST_ERROR",
            error_description="Payment was cancelled by the user",
        )

        assert result.success and result.changed
        advance_payment.refresh_from_db()
        assert advance_payment.status == "failed"
        assert advance_payment.failure_reason == "Payment was cancelled by the user"

    def test_falls_back_to_error_code_then_default(self, make_payment):
        coded = make_payment()
        bare = make_payment()

        fail_payment(source="webhook", order_id=coded.razorpay_order_id, error_code="GATEWAY_ERROR")
        fail_payment(source="webhook", order_id=bare.razorpay_order_id)

        coded.refresh_from_db()
        bare.refresh_from_db()
        assert coded.failure_reason == "GATEWAY_ERROR"
        assert bare.failure_reason == "Payment failed"

    def test_never_regresses_a_completed_payment(self, advance_payment):
        confirm_payment(source="webhook", order_id="order_ADV001")

        with mock.patch("apps.payments.services.notify_payment_failed") as notify:
            result = fail_payment(source="webhook", order_id="order_ADV001", error_code="LATE")

        assert result.success and not result.changed
        assert result.payment_id == str(advance_payment.id)
        notify.assert_not_called()
        advance_payment.refresh_from_db()
        assert advance_payment.status == "completed"
        assert advance_payment.failure_reason is None

    def test_unknown_order_is_a_successful_no_op(self, db):
        result = fail_payment(source="webhook", order_id="order_missing")

        assert result.success and not result.changed
        assert result.payment_id is None

    def test_repeated_failure_updates_reason(self, advance_payment):
        fail_payment(source="webhook", order_id="order_ADV001", error_description="first")
        result = fail_payment(source="webhook", order_id="order_ADV001", error_description="second")

        assert result.changed
        advance_payment.refresh_from_db()
        assert advance_payment.failure_reason == "second"
