"""
Pure domain layer.

Value types and helpers with NO dependencies on:
- SQLAlchemy
- Database
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from ledger_kernel.domain.lookup import (
    Found,
    Lookup,
    Lookups,
    Missing,
    build_lookups,
    unwrap_one,
)
from ledger_kernel.domain.transaction import (
    SIGN_CONVENTION,
    SourceRef,
    Transaction,
    TransactionKind,
)
from ledger_kernel.domain.values import (
    EPOCH,
    ZERO,
    coerce_decimal,
    first_timestamp,
    natural_key,
    normalize_id,
    parse_decimal,
    parse_timestamp,
    round_output,
)

__all__ = [
    "Found",
    "Missing",
    "Lookup",
    "Lookups",
    "build_lookups",
    "unwrap_one",
    "SIGN_CONVENTION",
    "SourceRef",
    "Transaction",
    "TransactionKind",
    "EPOCH",
    "ZERO",
    "coerce_decimal",
    "first_timestamp",
    "natural_key",
    "normalize_id",
    "parse_decimal",
    "parse_timestamp",
    "round_output",
]
