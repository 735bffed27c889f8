import pytest

pytestmark = pytest.mark.django_db


class TestPayment:
    def test_amount_is_immutable(self, advance_payment):
        advance_payment.amount = 1

        with pytest.raises(ValueError, match="amount"):
            advance_payment.save()

    def test_currency_is_immutable(self, advance_payment):
        advance_payment.currency = "USD"

        with pytest.raises(ValueError, match="currency"):
            advance_payment.save()

    def test_other_fields_can_change(self, advance_payment):
        advance_payment.payment_method = "CARD"
        advance_payment.save()

        advance_payment.refresh_from_db()
        assert advance_payment.payment_method == "CARD"


class TestProposalAmounts:
    def test_amount_for_payment_type(self, proposal):
        assert proposal.amount_for("advance") == 50000
        assert proposal.amount_for("balance") == 50000

    def test_unknown_payment_type(self, proposal):
        with pytest.raises(ValueError):
            proposal.amount_for("deposit")
