"""
Module: ledger_kernel.domain.transaction
Responsibility:
    The canonical ``Transaction`` value object every source collection is
    normalized into, its fixed set of kinds, and the sign convention the
    reducer applies to each kind.

Architecture position:
    Kernel > Domain.  Pure value types, zero I/O.

Invariants enforced:
    - ``quantity`` is a finite, non-negative Decimal magnitude; the sign is
      never stored on the transaction (``__post_init__`` rejects negatives).
    - ``account_key`` is never empty.
    - ``occurred_at`` is timezone-aware.
    - The sign table is fixed; kinds that do not move the primary balance
      (QUALITY_HOLD, REJECTION) have a zero sign.

Failure modes:
    - ValueError from ``Transaction.__post_init__`` when an adapter builds a
      transaction that breaks the invariants above.  Adapters coerce before
      constructing, so this only fires on programming errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.values import ZERO, natural_key


class TransactionKind(str, Enum):
    """Category of a ledger transaction."""

    IN_RECEIPT = "IN_RECEIPT"
    QUALITY_HOLD = "QUALITY_HOLD"
    REJECTION = "REJECTION"
    OUT_SHIPMENT = "OUT_SHIPMENT"
    TRANSFER_OUT = "TRANSFER_OUT"
    TRANSFER_IN = "TRANSFER_IN"
    PROCESS_CONSUMPTION = "PROCESS_CONSUMPTION"
    PAYMENT = "PAYMENT"


# Multiplier applied to the magnitude to obtain the primary-balance delta.
SIGN_CONVENTION: dict[TransactionKind, int] = {
    TransactionKind.IN_RECEIPT: 1,
    TransactionKind.TRANSFER_IN: 1,
    TransactionKind.OUT_SHIPMENT: -1,
    TransactionKind.TRANSFER_OUT: -1,
    TransactionKind.PROCESS_CONSUMPTION: -1,
    TransactionKind.QUALITY_HOLD: 0,
    TransactionKind.REJECTION: 0,
    TransactionKind.PAYMENT: -1,
}

INBOUND_KINDS = frozenset({TransactionKind.IN_RECEIPT, TransactionKind.TRANSFER_IN})
OUTBOUND_KINDS = frozenset({
    TransactionKind.OUT_SHIPMENT,
    TransactionKind.TRANSFER_OUT,
    TransactionKind.PROCESS_CONSUMPTION,
})


@dataclass(frozen=True)
class SourceRef:
    """Table name and id of the upstream record (drill-through only)."""

    table: str
    id: str

    def __str__(self) -> str:
        return f"{self.table} #{self.id}"


@dataclass(frozen=True)
class Transaction:
    """
    An immutable, dated event affecting exactly one account.

    Contract:
        Built by a per-source adapter in ``ledger_ingestion``; read-only
        for every later stage.
    Guarantees:
        - ``quantity >= 0`` and finite.
        - ``sort_key`` orders by ``(occurred_at, id)`` with numeric-aware
          id comparison and the raw id as last resort, independent of
          input order.
    Non-goals:
        - Does not validate that ``account_key`` matches the join
          dimensions; the keyer owns that.
    """

    id: str
    account_key: str
    occurred_at: datetime
    kind: TransactionKind
    quantity: Decimal
    source_ref: SourceRef

    # Join dimensions kept for drill-through views
    product_id: str | None = None
    warehouse_id: str | None = None
    supply_id: str | None = None
    lot_no: str | None = None
    unit: str | None = None
    note: str | None = None

    def __post_init__(self) -> None:
        if not self.account_key:
            raise ValueError(f"Transaction {self.id} has no account key")
        if not isinstance(self.quantity, Decimal) or not self.quantity.is_finite():
            raise ValueError(f"Transaction {self.id} quantity must be a finite Decimal")
        if self.quantity < ZERO:
            raise ValueError(f"Transaction {self.id} quantity cannot be negative")
        if self.occurred_at.tzinfo is None:
            raise ValueError(f"Transaction {self.id} occurred_at must be timezone-aware")

    @property
    def amount(self) -> Decimal:
        """Alias of ``quantity`` for payment transactions."""
        return self.quantity

    @property
    def sign(self) -> int:
        return SIGN_CONVENTION[self.kind]

    @property
    def delta(self) -> Decimal:
        """Signed effect on the primary balance."""
        return self.quantity * self.sign

    @property
    def sort_key(self) -> tuple:
        # natural_key("receipt-7") == natural_key("receipt-07"); the raw id breaks that tie
        return (self.occurred_at, natural_key(self.id), self.id)

    @property
    def is_inbound(self) -> bool:
        return self.kind in INBOUND_KINDS

    @property
    def is_outbound(self) -> bool:
        return self.kind in OUTBOUND_KINDS
