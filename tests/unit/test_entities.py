"""
Unit Tests for ledger records and their stored shape
"""

from decimal import Decimal

import pytest

from fund_ledger.core.errors import ValidationError
from fund_ledger.domain.models import (
    ClientProfile,
    Fund,
    KycStatus,
    Transaction,
    TransactionType,
)


class TestTransaction:

    def test_cash_delta_must_match_type(self):
        with pytest.raises(ValidationError):
            Transaction(
                id="t", type=TransactionType.DEPOSIT, amount=Decimal("5"), cash_delta=Decimal("-5"), timestamp=""
            )

    def test_trade_requires_fund_and_shares(self):
        with pytest.raises(ValidationError):
            Transaction(id="t", type=TransactionType.BUY, amount=Decimal("5"), cash_delta=Decimal("-5"), timestamp="")

    def test_legacy_record_without_cash_delta(self):
        tx = Transaction.from_dict({
            "id": "t1",
            "type": "buy",
            "amount": 240,
            "fundId": "fund_a",
            "fundName": "A",
            "fundSymbol": "A",
            "shares": 2,
            "pricePerShare": 120,
            "timestamp": "2024-01-01T00:00:00.000Z",
            "status": "completed",
        })

        assert tx.cash_delta == Decimal("-240")

    def test_stored_shape(self):
        tx = Transaction(
            id="t1",
            type=TransactionType.DEPOSIT,
            amount=Decimal("10"),
            cash_delta=Decimal("10"),
            timestamp="2024-01-01T00:00:00.000Z",
            note="wire",
        )

        assert tx.to_dict() == {
            "id": "t1",
            "type": "deposit",
            "amount": 10.0,
            "cashDelta": 10.0,
            "timestamp": "2024-01-01T00:00:00.000Z",
            "status": "completed",
            "note": "wire",
        }

    def test_transactions_are_immutable(self):
        tx = Transaction(id="t", type=TransactionType.DEPOSIT, amount=Decimal("1"), cash_delta=Decimal("1"), timestamp="")

        with pytest.raises(AttributeError):
            tx.amount = Decimal("2")


class TestFund:

    def test_current_price_defaults_to_initial(self):
        fund = Fund.from_dict({"id": "fund_a", "name": "A", "symbol": "A", "initialPrice": 50})

        assert fund.current_price == Decimal("50")
        assert fund.nav == Decimal("50")

    def test_rejects_non_positive_initial_price(self):
        with pytest.raises(ValidationError):
            Fund.from_dict({"id": "fund_a", "name": "A", "symbol": "A", "initialPrice": 0})

    @pytest.mark.parametrize("price", ["0", "-1"])
    def test_rejects_non_positive_current_price(self, price):
        with pytest.raises(ValidationError) as exc_info:
            Fund(id="fund_a", name="A", symbol="A", initial_price=Decimal("50"), current_price=Decimal(price))

        assert exc_info.value.message == "Invalid price"

    def test_stored_zero_current_price_is_rejected(self):
        with pytest.raises(ValidationError):
            Fund.from_dict({"id": "fund_a", "name": "A", "symbol": "A", "initialPrice": 50, "currentPrice": 0})


class TestClientProfile:

    def test_round_trip_through_stored_shape(self):
        data = {
            "id": "client-1",
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": "ada@example.com",
            "cashBalance": 740,
            "status": "active",
            "kyc": "verified",
            "availableFunds": ["fund_a", "fund_a", "fund_b"],
            "investments": [
                {"fundId": "fund_a", "fundName": "A", "fundSymbol": "A", "shares": 3, "averagePrice": 100, "currentValue": 360}
            ],
            "transactions": [],
            "portfolioHistory": [{"timestamp": "2024-01-01T00:00:00.000Z", "value": 360}],
        }

        profile = ClientProfile.from_dict(data)

        assert profile.kyc == KycStatus.VERIFIED
        assert profile.available_funds == ["fund_a", "fund_b"]
        assert profile.find_position("fund_a").shares == Decimal("3")
        assert profile.to_dict()["investments"][0]["currentValue"] == 360.0

    def test_negative_cash_rejected(self):
        with pytest.raises(ValidationError):
            ClientProfile(id="c", first_name="A", last_name="B", email="a@b.c", cash_balance=Decimal("-1"))
