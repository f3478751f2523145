"""
Shipment item adapter: items of a shipment that has left the warehouse
reduce stock.

Row shape (``shipment_items``)::

    id, shipment_id, product_id, unit_id, lot_no, quantity, warehouse_id

Header (``shipments``)::

    id, status, warehouse_id, shipped_at, created_at, doc_no

Only headers whose status is one of the configured outbound statuses count.
The item's own ``warehouse_id`` wins over the header's.  The header may be
embedded as ``shipments``.
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
from ledger_ingestion.domain.types import SHIPMENT_ITEMS, SHIPMENTS, RecordOutcome


class ShipmentItemAdapter:
    source = SHIPMENT_ITEMS

    def adapt(self, row: Mapping[str, Any], context: AdapterContext) -> RecordOutcome:
        rec_id = record_id(row)
        header = resolve_relation(row, "shipments", context.lookups.shipments, "shipment_id")
        if isinstance(header, Missing):
            return RecordOutcome.drop(UnresolvedJoinError(
                self.source, rec_id, SHIPMENTS, normalize_id(row.get("shipment_id"))
            ))
        shipment = header.value
        if not context.is_outbound(shipment.get("status")):
            # Draft or cancelled shipments have not moved any stock.
            return RecordOutcome()

        warehouse_id = row.get("warehouse_id")
        if normalize_id(warehouse_id) is None:
            warehouse_id = shipment.get("warehouse_id")
        key = context.keyer.key_for_warehouse(
            self.source, rec_id, row.get("product_id"), warehouse_id
        )
        if isinstance(key, Missing):
            return RecordOutcome.drop()

        errors: list[LedgerKernelError] = list(key.errors)
        quantity = coerce_quantity(self.source, rec_id, row, "quantity", errors, required=True)
        occurred_at = resolve_occurred_at(
            self.source,
            rec_id,
            (shipment.get("shipped_at"), shipment.get("created_at"), row.get("created_at")),
            context,
            errors,
        )

        transaction = Transaction(
            id=f"shipment-item-{rec_id}",
            account_key=key.account_key,
            occurred_at=occurred_at,
            kind=TransactionKind.OUT_SHIPMENT,
            quantity=quantity,
            source_ref=SourceRef(self.source, rec_id),
            product_id=key.product_id,
            warehouse_id=key.warehouse_id,
            lot_no=row.get("lot_no"),
            unit=unit_symbol(context, row.get("unit_id")),
            note=shipment.get("doc_no"),
        )
        return RecordOutcome(transactions=(transaction,), errors=tuple(errors))
