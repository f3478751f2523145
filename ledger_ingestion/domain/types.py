"""
ledger_ingestion.domain.types -- Pure frozen dataclasses for normalization.

ZERO I/O. Imports only from ledger_kernel.

Collection names are the table names of the backing store; the same names
tag every soft error a source produces.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ledger_kernel.domain.transaction import Transaction
from ledger_kernel.exceptions import LedgerKernelError

# =============================================================================
# Source collections
# =============================================================================

# Transaction sources
SUPPLY_BATCHES = "supply_batches"
PROCESS_LOT_RUNS = "process_lot_runs"
SHIPMENT_ITEMS = "shipment_items"
STOCK_TRANSFERS = "stock_transfers"
SUPPLY_PAYMENTS = "supply_payments"

# Dimension and header collections
PRODUCTS = "products"
WAREHOUSES = "warehouses"
UNITS = "units"
SUPPLIES = "supplies"
SHIPMENTS = "shipments"
SUPPLY_LINES = "supply_lines"

STOCK_COLLECTIONS = (
    PRODUCTS,
    WAREHOUSES,
    UNITS,
    SUPPLIES,
    SUPPLY_BATCHES,
    PROCESS_LOT_RUNS,
    SHIPMENTS,
    SHIPMENT_ITEMS,
    STOCK_TRANSFERS,
)

PAYMENT_COLLECTIONS = (
    SUPPLIES,
    SUPPLY_LINES,
    SUPPLY_PAYMENTS,
)


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class RecordOutcome:
    """What one source record turned into."""

    transactions: tuple[Transaction, ...] = ()
    errors: tuple[LedgerKernelError, ...] = ()
    dropped: bool = False

    @classmethod
    def drop(cls, *errors: LedgerKernelError) -> RecordOutcome:
        return cls(errors=tuple(errors), dropped=True)


@dataclass(frozen=True)
class NormalizationResult:
    """
    Canonical transactions of one invocation plus everything that went wrong.

    ``dropped`` counts records per source that produced no transaction
    because a required foreign key could not be resolved.
    """

    transactions: tuple[Transaction, ...]
    errors: tuple[LedgerKernelError, ...] = ()
    dropped: Mapping[str, int] = field(default_factory=dict)

    @property
    def dropped_total(self) -> int:
        return sum(self.dropped.values())

    def errors_for(self, source: str) -> tuple[LedgerKernelError, ...]:
        return tuple(e for e in self.errors if e.source == source)
