"""
Process lot run adapter: sending a batch to processing consumes the
batch's accepted quantity from its product+warehouse account.

Row shape (``process_lot_runs``)::

    id, supply_batch_id, started_at, created_at

The batch may be embedded as ``supply_batches`` (and its supply as
``supplies`` inside it); otherwise both come from the lookups.  Runs whose
batch cannot be found are dropped.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ledger_kernel.domain.lookup import Missing
from ledger_kernel.domain.transaction import SourceRef, Transaction, TransactionKind
from ledger_kernel.domain.values import normalize_id
from ledger_kernel.exceptions import LedgerKernelError, UnresolvedJoinError
from ledger_ingestion.adapters.base import (
    AdapterContext,
    coerce_quantity,
    record_id,
    resolve_occurred_at,
    resolve_relation,
    unit_symbol,
)
from ledger_ingestion.domain.types import PROCESS_LOT_RUNS, SUPPLY_BATCHES, RecordOutcome


class ProcessLotRunAdapter:
    source = PROCESS_LOT_RUNS

    def adapt(self, row: Mapping[str, Any], context: AdapterContext) -> RecordOutcome:
        rec_id = record_id(row)
        batch = resolve_relation(
            row, "supply_batches", context.lookups.supply_batches, "supply_batch_id"
        )
        if isinstance(batch, Missing):
            return RecordOutcome.drop(UnresolvedJoinError(
                self.source, rec_id, SUPPLY_BATCHES, normalize_id(row.get("supply_batch_id"))
            ))
        batch_row = batch.value

        supply = resolve_relation(batch_row, "supplies", context.lookups.supplies, "supply_id")
        key = context.keyer.key_for_supply(
            self.source,
            rec_id,
            batch_row.get("product_id"),
            batch_row.get("supply_id"),
            supply=supply,
        )
        if isinstance(key, Missing):
            return RecordOutcome.drop()

        errors: list[LedgerKernelError] = list(key.errors)
        quantity = coerce_quantity(self.source, rec_id, batch_row, "accepted_qty", errors)
        occurred_at = resolve_occurred_at(
            self.source,
            rec_id,
            (row.get("started_at"), row.get("created_at")),
            context,
            errors,
        )

        transaction = Transaction(
            id=f"process-{rec_id}",
            account_key=key.account_key,
            occurred_at=occurred_at,
            kind=TransactionKind.PROCESS_CONSUMPTION,
            quantity=quantity,
            source_ref=SourceRef(self.source, rec_id),
            product_id=key.product_id,
            warehouse_id=key.warehouse_id,
            supply_id=normalize_id(batch_row.get("supply_id")),
            lot_no=batch_row.get("lot_no"),
            unit=unit_symbol(context, batch_row.get("unit_id")),
        )
        return RecordOutcome(transactions=(transaction,), errors=tuple(errors))
