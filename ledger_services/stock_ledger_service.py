"""
StockLedgerService -- product+warehouse stock positions from raw sources.

Composes the pure pipeline (normalize -> key -> reduce -> classify) with
the concurrent source fetch.

Architecture: ledger_services -- imperative shell.
    ``compute_stock_ledger`` is pure over already-fetched collections;
    ``StockLedgerService.compute`` adds the fan-out fetch in front of it.

Invariants enforced:
    - Positions are recomputed from scratch on every call; nothing is
      cached between invocations.
    - Soft errors from every stage are returned next to the result, each
      tagged with its source collection.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from ledger_config import get_active_config
from ledger_config.schema import LedgerConfig
from ledger_engines.classifier import (
    ClassifiedStockPosition,
    StockThreshold,
    classify_stock_positions,
    threshold_errors,
)
from ledger_engines.reducer import StockLedger, reduce_stock_ledgers
from ledger_ingestion.adapters import STOCK_ADAPTERS, AdapterContext
from ledger_ingestion.domain.types import STOCK_COLLECTIONS
from ledger_ingestion.normalizer import normalize
from ledger_kernel.domain.lookup import Lookups
from ledger_kernel.exceptions import LedgerKernelError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.source_selector import SourceReader
from ledger_services.fetch import fan_out_fetch

logger = get_logger("services.stock_ledger")


@dataclass(frozen=True)
class StockLedgerResult:
    """Best-effort stock positions plus everything that degraded them."""

    positions: dict[str, ClassifiedStockPosition]
    ledgers: dict[str, StockLedger]
    lookups: Lookups
    errors: tuple[LedgerKernelError, ...] = ()
    dropped: Mapping[str, int] = field(default_factory=dict)

    @property
    def is_partial(self) -> bool:
        return bool(self.errors) or bool(self.dropped)

    def errors_for(self, source: str) -> tuple[LedgerKernelError, ...]:
        return tuple(e for e in self.errors if e.source == source)


def compute_stock_ledger(
    collections: Mapping[str, Iterable[Mapping[str, Any]]],
    config: LedgerConfig | None = None,
    *,
    fallback_time: datetime | None = None,
    fetch_errors: Iterable[LedgerKernelError] = (),
) -> StockLedgerResult:
    """Derive every stock position from already-fetched collections."""
    config = config or LedgerConfig()
    collections = {name: list(rows) for name, rows in collections.items()}

    context = AdapterContext.from_collections(
        collections,
        hold_policy=config.quality_hold.to_policy(),
        outbound_statuses=config.shipments.outbound_statuses,
        fallback_time=fallback_time,
    )
    normalized = normalize(collections, context, STOCK_ADAPTERS)
    ledgers = reduce_stock_ledgers(normalized.transactions)

    errors: list[LedgerKernelError] = [*fetch_errors, *normalized.errors]
    thresholds: dict[str, StockThreshold] = {}
    for ledger in ledgers.values():
        product_id = ledger.position.product_id
        if product_id in thresholds:
            continue
        threshold = StockThreshold.from_product(context.lookups.products.get(product_id))
        thresholds[product_id] = threshold
        errors.extend(threshold_errors(product_id, threshold))

    positions = classify_stock_positions(
        positions={key: ledger.position for key, ledger in ledgers.items()},
        thresholds=thresholds,
        coverage_window_days=config.coverage.window_days,
    )

    logger.info("stock_ledger_computed", extra={
        "account_count": len(positions),
        "error_count": len(errors),
        "dropped_count": normalized.dropped_total,
    })
    return StockLedgerResult(
        positions=positions,
        ledgers=ledgers,
        lookups=context.lookups,
        errors=tuple(errors),
        dropped=dict(normalized.dropped),
    )


class StockLedgerService:
    """Service that fetches the stock sources and derives positions.

    Contract:
        - ``compute()`` fetches every stock collection concurrently, then
          runs the pure pipeline over the snapshots.

    Non-goals:
        - Does NOT persist positions (there are no stored balances).
        - Does NOT retry failed fetches; a failed collection degrades
          the result and is reported in ``errors``.
    """

    def __init__(self, reader: SourceReader, config: LedgerConfig | None = None) -> None:
        self._reader = reader
        self._config = config or get_active_config()

    def compute(self, fallback_time: datetime | None = None) -> StockLedgerResult:
        with LogContext.bind(trace_id=str(uuid4())):
            fetched = fan_out_fetch(
                self._reader,
                STOCK_COLLECTIONS,
                max_workers=self._config.fetch.max_workers,
                timeout=self._config.fetch.timeout_seconds,
            )
            return compute_stock_ledger(
                fetched.collections,
                self._config,
                fallback_time=fallback_time,
                fetch_errors=fetched.errors,
            )
