"""
Supply batch adapter: one received batch becomes an inbound receipt, plus
a quality hold and a rejection when the batch carries them.

Row shape (``supply_batches``)::

    id, supply_id, product_id, unit_id, lot_no,
    received_qty, accepted_qty, rejected_qty, current_qty, quality_status,
    created_at

Timestamp: ``supplies.received_at``, then ``supply_batches.created_at``.
The supply comes from an embedded ``supplies`` relation when the row
carries one, else from the supplies lookup.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ledger_engines.quality_hold import infer_hold_quantity, receipt_quantity
from ledger_kernel.domain.lookup import Found, Missing
from ledger_kernel.domain.transaction import SourceRef, Transaction, TransactionKind
from ledger_kernel.domain.values import ZERO, normalize_id
from ledger_kernel.exceptions import LedgerKernelError
from ledger_ingestion.adapters.base import (
    AdapterContext,
    coerce_quantity,
    optional_quantity,
    record_id,
    resolve_occurred_at,
    resolve_relation,
    unit_symbol,
)
from ledger_ingestion.domain.types import SUPPLY_BATCHES, RecordOutcome


class SupplyBatchAdapter:
    source = SUPPLY_BATCHES

    def adapt(self, row: Mapping[str, Any], context: AdapterContext) -> RecordOutcome:
        rec_id = record_id(row)
        supply = resolve_relation(row, "supplies", context.lookups.supplies, "supply_id")
        key = context.keyer.key_for_supply(
            self.source, rec_id, row.get("product_id"), row.get("supply_id"), supply=supply
        )
        if isinstance(key, Missing):
            return RecordOutcome.drop()

        errors: list[LedgerKernelError] = list(key.errors)
        received = coerce_quantity(self.source, rec_id, row, "received_qty", errors)
        accepted = coerce_quantity(self.source, rec_id, row, "accepted_qty", errors)
        rejected = coerce_quantity(self.source, rec_id, row, "rejected_qty", errors)
        current = optional_quantity(self.source, rec_id, row, "current_qty", errors)
        status = row.get("quality_status")

        supply_row = supply.value if isinstance(supply, Found) else {}
        occurred_at = resolve_occurred_at(
            self.source,
            rec_id,
            (supply_row.get("received_at"), row.get("created_at")),
            context,
            errors,
        )

        common = dict(
            account_key=key.account_key,
            occurred_at=occurred_at,
            source_ref=SourceRef(self.source, rec_id),
            product_id=key.product_id,
            warehouse_id=key.warehouse_id,
            supply_id=normalize_id(row.get("supply_id")) or normalize_id(supply_row.get("id")),
            lot_no=row.get("lot_no"),
            unit=unit_symbol(context, row.get("unit_id")),
        )

        transactions = [
            Transaction(
                id=f"receipt-{rec_id}",
                kind=TransactionKind.IN_RECEIPT,
                quantity=receipt_quantity(
                    received, accepted, rejected, status, current, context.hold_policy
                ),
                **common,
            )
        ]

        held = infer_hold_quantity(received, accepted, rejected, status, context.hold_policy)
        if held > ZERO:
            transactions.append(Transaction(
                id=f"hold-{rec_id}",
                kind=TransactionKind.QUALITY_HOLD,
                quantity=held,
                note=str(status).strip().upper(),
                **common,
            ))

        if rejected > ZERO:
            transactions.append(Transaction(
                id=f"rejection-{rec_id}",
                kind=TransactionKind.REJECTION,
                quantity=rejected,
                **common,
            ))

        return RecordOutcome(transactions=tuple(transactions), errors=tuple(errors))
