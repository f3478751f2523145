"""
View Projector -- flat, display-ready rows for the dashboard tables.

A thin collaborator over the ledger results: it attaches product and
warehouse names, human movement labels and families, and sorts rows the
way the tables show them.  No computation beyond lookups and sorting.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from ledger_engines.classifier import ClassifiedStockPosition, SettlementState
from ledger_engines.reducer import PaymentLedger
from ledger_kernel.domain.lookup import Lookups
from ledger_kernel.domain.transaction import TransactionKind
from ledger_kernel.domain.values import natural_key
from ledger_services.payment_ledger_service import PaymentLedgerResult
from ledger_services.stock_ledger_service import StockLedgerResult

UNASSIGNED_WAREHOUSE_NAME = "Unassigned"


class MovementFamily(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"
    PROCESS = "process"
    QUALITY = "quality"
    TRANSFER = "transfer"


MOVEMENT_LABELS: dict[TransactionKind, str] = {
    TransactionKind.IN_RECEIPT: "Receipt",
    TransactionKind.QUALITY_HOLD: "Quality hold",
    TransactionKind.REJECTION: "Rejected",
    TransactionKind.OUT_SHIPMENT: "Shipment",
    TransactionKind.TRANSFER_OUT: "Transfer out",
    TransactionKind.TRANSFER_IN: "Transfer in",
    TransactionKind.PROCESS_CONSUMPTION: "Sent to process",
    TransactionKind.PAYMENT: "Payment",
}

MOVEMENT_FAMILIES: dict[TransactionKind, MovementFamily] = {
    TransactionKind.IN_RECEIPT: MovementFamily.INBOUND,
    TransactionKind.QUALITY_HOLD: MovementFamily.QUALITY,
    TransactionKind.REJECTION: MovementFamily.QUALITY,
    TransactionKind.OUT_SHIPMENT: MovementFamily.OUTBOUND,
    TransactionKind.TRANSFER_OUT: MovementFamily.TRANSFER,
    TransactionKind.TRANSFER_IN: MovementFamily.TRANSFER,
    TransactionKind.PROCESS_CONSUMPTION: MovementFamily.PROCESS,
}


def _product_name(lookups: Lookups, product_id: str | None) -> str:
    product = lookups.products.get(product_id)
    if product is None:
        return f"Product {product_id}"
    return product.get("name") or product.get("sku") or f"Product {product_id}"


def _warehouse_name(lookups: Lookups, warehouse_id: str | None) -> str:
    if warehouse_id is None:
        return UNASSIGNED_WAREHOUSE_NAME
    warehouse = lookups.warehouses.get(warehouse_id)
    if warehouse is None:
        return f"Warehouse {warehouse_id}"
    return warehouse.get("name") or f"Warehouse {warehouse_id}"


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StockRow:
    account_key: str
    product_id: str
    product_name: str
    warehouse_id: str | None
    warehouse_name: str
    on_hand: Decimal
    on_hold: Decimal
    available: Decimal
    reorder_point: Decimal | None
    safety_stock: Decimal | None
    low_stock_reason: str | None
    days_of_cover: Decimal | None
    needs_attention: bool


def _stock_row(lookups: Lookups, classified: ClassifiedStockPosition) -> StockRow:
    position = classified.position
    return StockRow(
        account_key=position.account_key,
        product_id=position.product_id,
        product_name=_product_name(lookups, position.product_id),
        warehouse_id=position.warehouse_id,
        warehouse_name=_warehouse_name(lookups, position.warehouse_id),
        on_hand=position.on_hand,
        on_hold=position.on_hold,
        available=position.available,
        reorder_point=classified.threshold.reorder_point,
        safety_stock=classified.threshold.safety_stock,
        low_stock_reason=classified.status.low_stock_reason,
        days_of_cover=classified.status.days_of_cover,
        needs_attention=classified.status.needs_attention,
    )


def project_stock_rows(result: StockLedgerResult) -> list[StockRow]:
    """One row per account, sorted by product name then warehouse name."""
    rows = [_stock_row(result.lookups, c) for c in result.positions.values()]
    return sorted(
        rows,
        key=lambda r: (
            r.product_name.lower(),
            r.warehouse_name.lower(),
            natural_key(r.account_key),
        ),
    )


def needs_attention(rows: Iterable[StockRow]) -> list[StockRow]:
    return [row for row in rows if row.needs_attention]


def count_low_stock(result: StockLedgerResult) -> int:
    """Accounts below their reorder point or safety stock."""
    return sum(
        1 for c in result.positions.values() if c.status.low_stock_reason is not None
    )


# ---------------------------------------------------------------------------
# Movements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MovementRow:
    id: str
    occurred_at: datetime
    kind: TransactionKind
    label: str
    family: MovementFamily
    product_name: str
    warehouse_name: str
    lot_no: str | None
    quantity: Decimal
    delta: Decimal
    balance_after: Decimal
    unit: str | None
    source: str


def project_movement_rows(result: StockLedgerResult) -> list[MovementRow]:
    """Every stock movement, newest first, with its running balance."""
    rows = []
    for ledger in result.ledgers.values():
        for entry in ledger.entries:
            tx = entry.transaction
            rows.append((tx.sort_key, MovementRow(
                id=tx.id,
                occurred_at=tx.occurred_at,
                kind=tx.kind,
                label=MOVEMENT_LABELS[tx.kind],
                family=MOVEMENT_FAMILIES[tx.kind],
                product_name=_product_name(result.lookups, tx.product_id),
                warehouse_name=_warehouse_name(result.lookups, tx.warehouse_id),
                lot_no=tx.lot_no,
                quantity=tx.quantity,
                delta=entry.delta,
                balance_after=entry.balance_after,
                unit=tx.unit,
                source=str(tx.source_ref),
            )))
    rows.sort(key=lambda pair: pair[0], reverse=True)
    return [row for _, row in rows]


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaymentRow:
    account_key: str
    doc_no: str | None
    expected_total: Decimal
    paid_total: Decimal
    outstanding: Decimal
    overpaid: Decimal
    state: SettlementState
    is_settled: bool
    last_paid_at: datetime | None


@dataclass(frozen=True)
class PaymentHistoryRow:
    id: str
    paid_at: datetime
    amount: Decimal
    balance_after: Decimal
    reference: str | None


def project_payment_rows(result: PaymentLedgerResult) -> list[PaymentRow]:
    """One row per supply document, in supply id order."""
    rows = []
    for key in sorted(result.positions, key=natural_key):
        classified = result.positions[key]
        position = classified.position
        supply = result.lookups.supplies.get(key) or {}
        rows.append(PaymentRow(
            account_key=key,
            doc_no=supply.get("doc_no"),
            expected_total=position.expected_total,
            paid_total=position.paid_total,
            outstanding=position.outstanding,
            overpaid=position.overpaid,
            state=classified.status.state,
            is_settled=classified.status.is_settled,
            last_paid_at=position.last_paid_at,
        ))
    return rows


def project_payment_history(ledger: PaymentLedger) -> list[PaymentHistoryRow]:
    """Payments of one supply in chronological order with the balance left after each."""
    return [
        PaymentHistoryRow(
            id=entry.transaction.id,
            paid_at=entry.transaction.occurred_at,
            amount=entry.transaction.amount,
            balance_after=entry.balance_after,
            reference=entry.transaction.note,
        )
        for entry in ledger.entries
    ]
