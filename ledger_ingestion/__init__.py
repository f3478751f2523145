"""
Ledger Ingestion

Transaction Normalizer: converts rows from the heterogeneous source
collections (supply batches, process lot runs, shipment items, stock
transfers, supply payments) into canonical ``Transaction`` values.

Architecture: pure; imports ledger_kernel and ledger_engines keying only.
"""

from ledger_ingestion.adapters import PAYMENT_ADAPTERS, STOCK_ADAPTERS, AdapterContext
from ledger_ingestion.domain.types import NormalizationResult, RecordOutcome
from ledger_ingestion.normalizer import normalize

__all__ = [
    "AdapterContext",
    "NormalizationResult",
    "RecordOutcome",
    "PAYMENT_ADAPTERS",
    "STOCK_ADAPTERS",
    "normalize",
]
