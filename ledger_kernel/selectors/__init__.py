"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.source_selector import (
    InMemorySourceReader,
    SourceReader,
    SqlSourceReader,
)

__all__ = [
    "SourceReader",
    "SqlSourceReader",
    "InMemorySourceReader",
]
