"""Database layer - engine construction for the read-only source store."""

from ledger_kernel.db.engine import create_source_engine

__all__ = [
    "create_source_engine",
]
