"""
Pytest fixtures for the ledger test suite.

Provides:
- Logging isolation between tests
- Raw source collections for a small supply chain (products, warehouses,
  supplies, batches, process runs, shipments, transfers, payments)
- Factories for canonical transactions
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from ledger_kernel.domain.transaction import SourceRef, Transaction, TransactionKind
from ledger_kernel.logging_config import LogContext, reset_logging

T0 = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def make_tx():
    """Factory for canonical transactions with sensible defaults."""

    def _make(
        tx_id: str,
        kind: TransactionKind = TransactionKind.IN_RECEIPT,
        quantity: str | int | Decimal = "0",
        *,
        account_key: str = "1:1",
        day: int = 0,
        hours: int = 0,
        occurred_at: datetime | None = None,
    ) -> Transaction:
        product_id, _, warehouse_id = account_key.partition(":")
        return Transaction(
            id=tx_id,
            account_key=account_key,
            occurred_at=occurred_at or T0 + timedelta(days=day, hours=hours),
            kind=kind,
            quantity=Decimal(str(quantity)),
            source_ref=SourceRef("test", tx_id),
            product_id=product_id,
            warehouse_id=None if warehouse_id in ("", "none") else warehouse_id,
        )

    return _make


@pytest.fixture
def dimensions() -> dict[str, list[dict]]:
    """Products, warehouses, units and supplies shared by the source fixtures."""
    return {
        "products": [
            {"id": 1, "name": "Dried Apricots", "sku": "APR-01",
             "reorder_point": 200, "safety_stock": 50, "average_daily_usage": 10},
            {"id": 2, "name": "Almonds", "sku": "ALM-01",
             "reorder_point": 0, "safety_stock": None},
        ],
        "warehouses": [
            {"id": 1, "name": "Main Store"},
            {"id": 2, "name": "Cold Room"},
        ],
        "units": [
            {"id": 1, "symbol": "kg", "name": "Kilogram"},
        ],
        "supplies": [
            {"id": 10, "warehouse_id": 1, "doc_no": "SUP-010",
             "received_at": "2025-03-01T08:00:00Z"},
            {"id": 11, "warehouse_id": 2, "doc_no": "SUP-011",
             "received_at": "2025-03-02T08:00:00Z"},
        ],
    }


@pytest.fixture
def stock_collections(dimensions) -> dict[str, list[dict]]:
    """A day of stock activity across every stock source."""
    return {
        **dimensions,
        "supply_batches": [
            {"id": 100, "supply_id": 10, "product_id": 1, "unit_id": 1, "lot_no": "L-100",
             "received_qty": 120, "accepted_qty": 100, "rejected_qty": 0,
             "quality_status": "PASSED", "created_at": "2025-03-01T09:00:00Z"},
            {"id": 101, "supply_id": 10, "product_id": 1, "unit_id": 1, "lot_no": "L-101",
             "received_qty": 80, "accepted_qty": 50, "rejected_qty": 10,
             "quality_status": "PENDING", "created_at": "2025-03-01T10:00:00Z"},
            {"id": 102, "supply_id": 11, "product_id": 2, "unit_id": 1, "lot_no": "L-102",
             "received_qty": 300, "accepted_qty": 300, "rejected_qty": 0,
             "quality_status": "PASSED", "created_at": "2025-03-02T09:00:00Z"},
        ],
        "process_lot_runs": [
            {"id": 7, "supply_batch_id": 100, "started_at": "2025-03-03T07:00:00Z"},
        ],
        "shipments": [
            {"id": 50, "status": "SHIPPED", "warehouse_id": 2, "doc_no": "SH-050",
             "shipped_at": "2025-03-04T12:00:00Z"},
            {"id": 51, "status": "DRAFT", "warehouse_id": 2, "doc_no": "SH-051",
             "shipped_at": None},
        ],
        "shipment_items": [
            {"id": 500, "shipment_id": 50, "product_id": 2, "unit_id": 1, "quantity": 40},
            {"id": 501, "shipment_id": 51, "product_id": 2, "unit_id": 1, "quantity": 999},
        ],
        "stock_transfers": [
            {"id": 9, "product_id": 2, "unit_id": 1, "quantity": 60,
             "from_warehouse_id": 2, "to_warehouse_id": 1,
             "transferred_at": "2025-03-05T10:00:00Z"},
        ],
    }


@pytest.fixture
def payment_collections() -> dict[str, list[dict]]:
    """Three supplies: overpaid, untouched, and fully paid."""
    return {
        "supplies": [
            {"id": 10, "doc_no": "SUP-010"},
            {"id": 11, "doc_no": "SUP-011"},
            {"id": 12, "doc_no": "SUP-012"},
        ],
        "supply_lines": [
            {"id": 1, "supply_id": 10, "unit_price": "2.50", "accepted_qty": 400},
            {"id": 2, "supply_id": 11, "unit_price": "10", "accepted_qty": 30},
            {"id": 3, "supply_id": 12, "unit_price": "5", "accepted_qty": 20},
        ],
        "supply_payments": [
            {"id": 1, "supply_id": 10, "amount": 400,
             "paid_at": "2025-03-10T09:00:00Z", "reference": "TRX-1"},
            {"id": 2, "supply_id": 10, "amount": 650,
             "paid_at": "2025-03-11T09:00:00Z", "reference": "TRX-2"},
            {"id": 3, "supply_id": 12, "amount": "100.00",
             "paid_at": "2025-03-12T09:00:00Z"},
        ],
    }
