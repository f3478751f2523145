"""Tests for payment positions, overpayment detection and the caller-side amount check."""

from decimal import Decimal

import pytest

from ledger_config.schema import LedgerConfig
from ledger_engines.classifier import SettlementState
from ledger_engines.reducer import PaymentPosition
from ledger_kernel.exceptions import InvalidPaymentAmountError, OverpaymentAttemptError
from ledger_kernel.selectors.source_selector import InMemorySourceReader
from ledger_services.payment_ledger_service import (
    PaymentLedgerService,
    check_payment_amount,
    compute_payment_ledger,
    expected_totals_from_lines,
    find_overpayments,
)


def _position(outstanding: str) -> PaymentPosition:
    value = Decimal(outstanding)
    return PaymentPosition(
        account_key="10",
        expected_total=value,
        paid_total=Decimal(0),
        balance=value,
        outstanding=value,
        overpaid=Decimal(0),
    )


class TestExpectedTotals:
    def test_sums_lines_per_supply(self):
        totals = expected_totals_from_lines([
            {"supply_id": 10, "unit_price": "2.50", "accepted_qty": 400},
            {"supply_id": 10, "unit_price": "1.25", "accepted_qty": 8},
            {"supply_id": "11", "unit_price": 10, "accepted_qty": 3},
        ])
        assert totals == {"10": Decimal("1010.00"), "11": Decimal(30)}

    def test_unusable_values_count_as_zero(self):
        totals = expected_totals_from_lines([
            {"supply_id": 10, "unit_price": None, "accepted_qty": 5},
            {"supply_id": 10, "unit_price": "abc", "accepted_qty": 5},
            {"supply_id": None, "unit_price": 1, "accepted_qty": 1},
        ])
        assert totals == {"10": Decimal(0)}


class TestCheckPaymentAmount:
    def test_accepts_amount_within_outstanding(self):
        assert check_payment_amount(_position("600"), "600") == Decimal(600)

    @pytest.mark.parametrize("amount", [None, "", "abc", 0, -10, float("nan")])
    def test_rejects_non_positive(self, amount):
        with pytest.raises(InvalidPaymentAmountError) as exc_info:
            check_payment_amount(_position("600"), amount)
        assert exc_info.value.code == "INVALID_PAYMENT_AMOUNT"

    def test_rejects_overpayment(self):
        with pytest.raises(OverpaymentAttemptError) as exc_info:
            check_payment_amount(_position("600"), "600.01")
        assert exc_info.value.outstanding == Decimal(600)
        assert exc_info.value.account_key == "10"

    def test_settled_account_accepts_nothing(self):
        with pytest.raises(OverpaymentAttemptError):
            check_payment_amount(_position("0"), 1)


class TestComputePaymentLedger:
    def test_positions(self, payment_collections):
        result = compute_payment_ledger(payment_collections)
        assert list(result.positions) == ["10", "11", "12"]

        overpaid = result.positions["10"]
        assert overpaid.position.expected_total == Decimal("1000.00")
        assert overpaid.position.paid_total == Decimal("1050.00")
        assert overpaid.position.outstanding == Decimal(0)
        assert overpaid.position.overpaid == Decimal(50)
        assert overpaid.status.state is SettlementState.SETTLED

        untouched = result.positions["11"]
        assert untouched.position.outstanding == Decimal(300)
        assert untouched.status.state is SettlementState.UNPAID

        assert result.positions["12"].status.is_settled

    def test_running_balance(self, payment_collections):
        ledger = compute_payment_ledger(payment_collections).ledgers["10"]
        assert [e.balance_after for e in ledger.entries] == [Decimal(600), Decimal(-50)]

    def test_overpayment_reported(self, payment_collections):
        result = compute_payment_ledger(payment_collections)

        (error,) = result.overpayments
        assert error.payment_id == "payment-2"
        assert error.amount == Decimal("650.00")
        assert error.outstanding == Decimal("600.00")
        assert result.errors == result.overpayments

    def test_find_overpayments_on_clean_ledger(self, payment_collections):
        ledger = compute_payment_ledger(payment_collections).ledgers["12"]
        assert find_overpayments(ledger) == ()

    def test_explicit_expected_totals(self, payment_collections):
        result = compute_payment_ledger(
            payment_collections, expected_totals={"10": Decimal(2000)}
        )
        assert set(result.positions) == {"10", "11", "12"}
        assert result.positions["10"].status.state is SettlementState.PARTIAL
        assert result.positions["11"].status.state is SettlementState.NO_ACTIVITY
        # Supply 12 has a payment but nothing expected
        assert result.positions["12"].position.overpaid == Decimal(100)

    def test_partial_payment(self, payment_collections):
        payment_collections["supply_payments"].append(
            {"id": 4, "supply_id": 11, "amount": "120.50", "paid_at": "2025-03-13T09:00:00Z"}
        )
        position = compute_payment_ledger(payment_collections).positions["11"]
        assert position.status.state is SettlementState.PARTIAL
        assert position.position.outstanding == Decimal("179.50")

    def test_no_activity(self):
        result = compute_payment_ledger(
            {"supplies": [{"id": 1}]}, expected_totals={"1": Decimal(0)}
        )
        assert result.positions["1"].status.state is SettlementState.NO_ACTIVITY

    def test_supply_without_lines_or_payments(self, payment_collections):
        payment_collections["supplies"].append({"id": 13, "doc_no": "SUP-013"})
        result = compute_payment_ledger(payment_collections)

        assert list(result.positions) == ["10", "11", "12", "13"]
        untouched = result.positions["13"]
        assert untouched.status.state is SettlementState.NO_ACTIVITY
        assert untouched.position.expected_total == Decimal(0)
        assert result.ledgers["13"].entries == ()

    def test_exact_payment_of_sub_cent_total_not_flagged(self):
        result = compute_payment_ledger({
            "supplies": [{"id": 1}],
            "supply_lines": [{"id": 1, "supply_id": 1, "unit_price": "1.234", "accepted_qty": 1}],
            "supply_payments": [
                {"id": 1, "supply_id": 1, "amount": "1.234", "paid_at": "2025-03-10T09:00:00Z"},
            ],
        })

        assert result.overpayments == ()
        assert result.positions["1"].status.state is SettlementState.SETTLED
        assert result.positions["1"].position.overpaid == Decimal(0)

    def test_sub_cent_overpayment_rounding_to_a_cent_flagged(self):
        result = compute_payment_ledger({
            "supplies": [{"id": 1}],
            "supply_payments": [
                {"id": 1, "supply_id": 1, "amount": "1.239", "paid_at": "2025-03-10T09:00:00Z"},
            ],
        }, expected_totals={"1": Decimal("1.234")})

        (error,) = result.overpayments
        assert error.amount == Decimal("1.24")
        assert error.outstanding == Decimal("1.23")
        assert result.positions["1"].position.overpaid == Decimal("0.01")

    def test_malformed_amount_recorded(self, payment_collections):
        payment_collections["supply_payments"].append(
            {"id": 5, "supply_id": 11, "amount": "lots", "paid_at": "2025-03-13T09:00:00Z"}
        )
        result = compute_payment_ledger(payment_collections)

        assert result.positions["11"].position.paid_total == Decimal(0)
        assert len(result.errors_for("supply_payments")) == 2


class TestPaymentLedgerService:
    def test_compute_from_reader(self, payment_collections):
        service = PaymentLedgerService(InMemorySourceReader(payment_collections), LedgerConfig())
        result = service.compute()

        assert result.positions["11"].status.state is SettlementState.UNPAID
        assert len(result.overpayments) == 1
