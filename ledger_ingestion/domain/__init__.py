"""Pure domain types for transaction normalization (no I/O)."""

from ledger_ingestion.domain.types import (
    PAYMENT_COLLECTIONS,
    STOCK_COLLECTIONS,
    NormalizationResult,
    RecordOutcome,
)

__all__ = [
    "PAYMENT_COLLECTIONS",
    "STOCK_COLLECTIONS",
    "NormalizationResult",
    "RecordOutcome",
]
