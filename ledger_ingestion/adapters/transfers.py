"""
Stock transfer adapter: a transfer leaves one warehouse and enters another,
so it yields a TRANSFER_OUT on the source account and a TRANSFER_IN on the
target account with the same timestamp and quantity.

Row shape (``stock_transfers``)::

    id, product_id, unit_id, lot_no, quantity,
    from_warehouse_id, to_warehouse_id, transferred_at, created_at
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ledger_kernel.domain.lookup import Missing
from ledger_kernel.domain.transaction import SourceRef, Transaction, TransactionKind
from ledger_kernel.exceptions import LedgerKernelError
from ledger_ingestion.adapters.base import (
    AdapterContext,
    coerce_quantity,
    record_id,
    resolve_occurred_at,
    unit_symbol,
)
from ledger_ingestion.domain.types import STOCK_TRANSFERS, RecordOutcome

_LEGS = (
    ("out", "from_warehouse_id", TransactionKind.TRANSFER_OUT),
    ("in", "to_warehouse_id", TransactionKind.TRANSFER_IN),
)


class StockTransferAdapter:
    source = STOCK_TRANSFERS

    def adapt(self, row: Mapping[str, Any], context: AdapterContext) -> RecordOutcome:
        rec_id = record_id(row)
        errors: list[LedgerKernelError] = []

        keys = []
        for suffix, field, kind in _LEGS:
            key = context.keyer.key_for_warehouse(
                self.source, rec_id, row.get("product_id"), row.get(field)
            )
            if isinstance(key, Missing):
                return RecordOutcome.drop()
            errors.extend(key.errors)
            keys.append((suffix, kind, key))

        quantity = coerce_quantity(self.source, rec_id, row, "quantity", errors, required=True)
        occurred_at = resolve_occurred_at(
            self.source,
            rec_id,
            (row.get("transferred_at"), row.get("created_at")),
            context,
            errors,
        )
        unit = unit_symbol(context, row.get("unit_id"))

        transactions = tuple(
            Transaction(
                id=f"transfer-{rec_id}-{suffix}",
                account_key=key.account_key,
                occurred_at=occurred_at,
                kind=kind,
                quantity=quantity,
                source_ref=SourceRef(self.source, rec_id),
                product_id=key.product_id,
                warehouse_id=key.warehouse_id,
                lot_no=row.get("lot_no"),
                unit=unit,
            )
            for suffix, kind, key in keys
        )
        return RecordOutcome(transactions=transactions, errors=tuple(errors))
