"""Tests for the display-row projections."""

from decimal import Decimal

from ledger_engines.classifier import SettlementState
from ledger_kernel.domain.transaction import TransactionKind
from ledger_services.payment_ledger_service import compute_payment_ledger
from ledger_services.projector import (
    UNASSIGNED_WAREHOUSE_NAME,
    MovementFamily,
    count_low_stock,
    needs_attention,
    project_movement_rows,
    project_payment_history,
    project_payment_rows,
    project_stock_rows,
)
from ledger_services.stock_ledger_service import compute_stock_ledger


class TestStockRows:
    def test_sorted_by_product_then_warehouse(self, stock_collections):
        rows = project_stock_rows(compute_stock_ledger(stock_collections))
        assert [(r.product_name, r.warehouse_name) for r in rows] == [
            ("Almonds", "Cold Room"),
            ("Almonds", "Main Store"),
            ("Dried Apricots", "Main Store"),
        ]

    def test_row_carries_position_and_status(self, stock_collections):
        rows = project_stock_rows(compute_stock_ledger(stock_collections))
        apricots = rows[-1]

        assert apricots.account_key == "1:1"
        assert apricots.available == Decimal(50)
        assert apricots.reorder_point == Decimal(200)
        assert apricots.low_stock_reason == "Below reorder point"
        assert apricots.days_of_cover == Decimal("5.00")
        assert apricots.needs_attention

    def test_attention_filter_and_count(self, stock_collections):
        result = compute_stock_ledger(stock_collections)
        flagged = needs_attention(project_stock_rows(result))

        assert [r.account_key for r in flagged] == ["1:1"]
        assert count_low_stock(result) == 1

    def test_sku_used_when_name_missing(self, stock_collections):
        stock_collections["products"][1]["name"] = None
        rows = project_stock_rows(compute_stock_ledger(stock_collections))
        assert {r.product_name for r in rows} == {"ALM-01", "Dried Apricots"}

    def test_unassigned_bucket_named(self, stock_collections):
        stock_collections["warehouses"] = []
        rows = project_stock_rows(compute_stock_ledger(stock_collections))
        assert {r.warehouse_name for r in rows} == {UNASSIGNED_WAREHOUSE_NAME}


class TestMovementRows:
    def test_newest_first(self, stock_collections):
        rows = project_movement_rows(compute_stock_ledger(stock_collections))

        assert len(rows) == 9
        assert [r.id for r in rows[:2]] == ["transfer-9-out", "transfer-9-in"]
        assert rows[-1].id == "hold-101"
        occurred = [r.occurred_at for r in rows]
        assert occurred == sorted(occurred, reverse=True)

    def test_labels_and_families(self, stock_collections):
        rows = {r.id: r for r in project_movement_rows(compute_stock_ledger(stock_collections))}

        process = rows["process-7"]
        assert process.kind is TransactionKind.PROCESS_CONSUMPTION
        assert process.label == "Sent to process"
        assert process.family is MovementFamily.PROCESS
        assert process.delta == Decimal(-100)
        assert process.balance_after == Decimal(70)
        assert process.source == "process_lot_runs #7"

        assert rows["shipment-item-500"].family is MovementFamily.OUTBOUND
        assert rows["transfer-9-in"].warehouse_name == "Main Store"
        assert rows["hold-101"].family is MovementFamily.QUALITY
        assert rows["receipt-100"].unit == "kg"


class TestPaymentRows:
    def test_rows_per_supply(self, payment_collections):
        rows = project_payment_rows(compute_payment_ledger(payment_collections))

        assert [(r.account_key, r.doc_no, r.state) for r in rows] == [
            ("10", "SUP-010", SettlementState.SETTLED),
            ("11", "SUP-011", SettlementState.UNPAID),
            ("12", "SUP-012", SettlementState.SETTLED),
        ]
        assert rows[0].overpaid == Decimal(50)
        assert not rows[1].is_settled

    def test_history(self, payment_collections):
        ledger = compute_payment_ledger(payment_collections).ledgers["10"]
        history = project_payment_history(ledger)

        assert [(h.id, h.amount, h.balance_after, h.reference) for h in history] == [
            ("payment-1", Decimal(400), Decimal(600), "TRX-1"),
            ("payment-2", Decimal(650), Decimal(-50), "TRX-2"),
        ]
