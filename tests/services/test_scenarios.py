"""
End-to-end scenarios from raw collections to positions.

Covers:
- Out-of-order receipts with a malformed quantity
- Reorder point configured vs unconfigured
- Expected total, a partial payment and an overpayment
- An empty warehouse lookup degrading every account to the unassigned bucket
"""

from decimal import Decimal

import pytest

from ledger_engines.classifier import SettlementState
from ledger_kernel.exceptions import MalformedTransactionError, OverpaymentAttemptError
from ledger_services.payment_ledger_service import check_payment_amount, compute_payment_ledger
from ledger_services.stock_ledger_service import compute_stock_ledger


def _receipts_collections(reorder_point=None) -> dict[str, list[dict]]:
    return {
        "products": [{"id": 1, "name": "Walnuts", "reorder_point": reorder_point}],
        "warehouses": [{"id": 1, "name": "Main Store"}],
        "units": [{"id": 1, "symbol": "kg"}],
        "supplies": [{"id": 1, "warehouse_id": 1}],
        # Newest first in the input
        "supply_batches": [
            {"id": 3, "supply_id": 1, "product_id": 1, "unit_id": 1,
             "accepted_qty": -20, "quality_status": "PASSED",
             "created_at": "2025-03-03T08:00:00Z"},
            {"id": 2, "supply_id": 1, "product_id": 1, "unit_id": 1,
             "accepted_qty": 50, "quality_status": "PASSED",
             "created_at": "2025-03-02T08:00:00Z"},
            {"id": 1, "supply_id": 1, "product_id": 1, "unit_id": 1,
             "accepted_qty": 100, "quality_status": "PASSED",
             "created_at": "2025-03-01T08:00:00Z"},
        ],
    }


class TestReceiptsOutOfOrder:
    def test_running_balance_sorted(self):
        result = compute_stock_ledger(_receipts_collections())
        ledger = result.ledgers["1:1"]

        assert [e.transaction.id for e in ledger.entries] == ["receipt-1", "receipt-2", "receipt-3"]
        assert [e.balance_after for e in ledger.entries] == [
            Decimal(100), Decimal(150), Decimal(150),
        ]
        assert ledger.position.on_hand == Decimal(150)

    def test_invalid_quantity_reported(self):
        result = compute_stock_ledger(_receipts_collections())

        (error,) = result.errors
        assert isinstance(error, MalformedTransactionError)
        assert error.record_id == "3"
        assert error.field == "accepted_qty"
        assert result.dropped == {}


class TestReorderPoint:
    @pytest.mark.parametrize("reorder_point, expected", [
        (200, True),
        (0, False),
        (None, False),
        (150, False),
    ])
    def test_below_reorder(self, reorder_point, expected):
        classified = compute_stock_ledger(_receipts_collections(reorder_point)).positions["1:1"]

        assert classified.position.available == Decimal(150)
        assert classified.status.is_below_reorder is expected


class TestPaymentsAgainstExpectedTotal:
    def setup_method(self):
        self.collections = {
            "supplies": [{"id": 1, "doc_no": "SUP-001"}],
            "supply_payments": [
                {"id": 2, "supply_id": 1, "amount": 650, "paid_at": "2025-03-11T09:00:00Z"},
                {"id": 1, "supply_id": 1, "amount": 400, "paid_at": "2025-03-10T09:00:00Z"},
            ],
        }
        self.expected = {"1": Decimal(1000)}

    def test_reducer_reports_everything_paid(self):
        result = compute_payment_ledger(self.collections, expected_totals=self.expected)
        ledger = result.ledgers["1"]

        assert [e.balance_after for e in ledger.entries] == [Decimal(600), Decimal(-50)]
        assert ledger.position.paid_total == Decimal(1050)
        assert ledger.position.outstanding == Decimal(0)
        assert ledger.position.overpaid == Decimal(50)
        assert result.positions["1"].status.state is SettlementState.SETTLED

    def test_second_payment_flagged(self):
        result = compute_payment_ledger(self.collections, expected_totals=self.expected)
        (error,) = result.overpayments
        assert error.payment_id == "payment-2"

    def test_caller_check_rejects_second_payment(self):
        first_only = {
            "supplies": self.collections["supplies"],
            "supply_payments": self.collections["supply_payments"][1:],
        }
        position = compute_payment_ledger(first_only, expected_totals=self.expected).positions["1"]

        assert position.status.state is SettlementState.PARTIAL
        with pytest.raises(OverpaymentAttemptError):
            check_payment_amount(position.position, 650)


class TestEmptyWarehouseLookup:
    def test_every_account_kept_unassigned(self, stock_collections):
        complete = compute_stock_ledger(stock_collections)
        stock_collections["warehouses"] = []
        degraded = compute_stock_ledger(stock_collections)

        assert set(degraded.positions) == {"1:none", "2:none"}
        assert all(c.position.is_unassigned for c in degraded.positions.values())
        assert degraded.dropped == {}
        assert sum(len(ledger.entries) for ledger in degraded.ledgers.values()) == sum(
            len(ledger.entries) for ledger in complete.ledgers.values()
        )

    def test_product_totals_preserved(self, stock_collections):
        stock_collections["warehouses"] = []
        degraded = compute_stock_ledger(stock_collections)

        assert degraded.positions["1:none"].position.on_hand == Decimal(70)
        # 300 received, 40 shipped; the transfer nets to zero in one bucket
        assert degraded.positions["2:none"].position.on_hand == Decimal(260)
