"""
Transaction Normalizer: raw source collections in, one canonical
transaction list out.

Each adapter owns one source collection.  The normalizer runs every row
through its adapter, collects the soft errors, and counts the rows that
had to be dropped.  A row without an id is dropped before its adapter
sees it.  It never raises for bad data: a dashboard fed with
partial data must still render.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ledger_kernel.domain.transaction import Transaction
from ledger_kernel.domain.values import normalize_id
from ledger_kernel.exceptions import LedgerKernelError, MalformedTransactionError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_ingestion.adapters import STOCK_ADAPTERS
from ledger_ingestion.adapters.base import AdapterContext, TransactionAdapter
from ledger_ingestion.domain.types import NormalizationResult

logger = get_logger("ingestion.normalizer")


def normalize(
    collections: Mapping[str, Iterable[Mapping[str, Any]]],
    context: AdapterContext,
    adapters: Sequence[TransactionAdapter] = STOCK_ADAPTERS,
) -> NormalizationResult:
    """
    Normalize every collection an adapter is registered for.

    Collections without an adapter (dimensions, headers) are ignored here;
    they reach the adapters through ``context.lookups``.
    """
    transactions: list[Transaction] = []
    errors: list[LedgerKernelError] = []
    dropped: Counter[str] = Counter()

    for adapter in adapters:
        rows = collections.get(adapter.source, ())
        row_count = 0
        with LogContext.bind(source=adapter.source):
            for row in rows:
                row_count += 1
                if normalize_id(row.get("id")) is None:
                    # Transaction ids derive from the row id
                    errors.append(MalformedTransactionError(adapter.source, "?", "id", row.get("id")))
                    dropped[adapter.source] += 1
                    continue
                outcome = adapter.adapt(row, context)
                transactions.extend(outcome.transactions)
                errors.extend(outcome.errors)
                if outcome.dropped:
                    dropped[adapter.source] += 1

            logger.debug("source_normalized", extra={
                "row_count": row_count,
                "dropped_count": dropped[adapter.source],
            })

    if errors:
        logger.warning("normalization_soft_errors", extra={
            "error_count": len(errors),
            "error_codes": sorted({e.code for e in errors}),
        })
    logger.info("normalization_completed", extra={
        "transaction_count": len(transactions),
        "dropped_count": sum(dropped.values()),
    })
    return NormalizationResult(
        transactions=tuple(transactions),
        errors=tuple(errors),
        dropped=dict(dropped),
    )
