"""
Supply payment adapter: every payment reduces what is owed on its supply
document.

Row shape (``supply_payments``)::

    id, supply_id, amount, paid_at, created_at, reference, notes

A payment without a supply id has no account and is dropped.  A supply id
that is not in the supplies lookup still keys the account; the broken
join is reported.  An embedded ``supplies`` relation counts as the join.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ledger_engines.keying import payment_account_key
from ledger_kernel.domain.lookup import Found, Missing
from ledger_kernel.domain.transaction import SourceRef, Transaction, TransactionKind
from ledger_kernel.domain.values import normalize_id
from ledger_kernel.exceptions import LedgerKernelError, UnresolvedJoinError
from ledger_ingestion.adapters.base import (
    AdapterContext,
    coerce_quantity,
    record_id,
    resolve_occurred_at,
    resolve_relation,
)
from ledger_ingestion.domain.types import SUPPLIES, SUPPLY_PAYMENTS, RecordOutcome


class SupplyPaymentAdapter:
    source = SUPPLY_PAYMENTS

    def adapt(self, row: Mapping[str, Any], context: AdapterContext) -> RecordOutcome:
        rec_id = record_id(row)
        supply = resolve_relation(row, "supplies", context.lookups.supplies, "supply_id")
        supply_id = normalize_id(row.get("supply_id"))
        if supply_id is None and isinstance(supply, Found):
            supply_id = normalize_id(supply.value.get("id"))
        if supply_id is None:
            return RecordOutcome.drop(
                UnresolvedJoinError(self.source, rec_id, SUPPLIES, None)
            )

        errors: list[LedgerKernelError] = []
        if isinstance(supply, Missing):
            errors.append(UnresolvedJoinError(self.source, rec_id, SUPPLIES, supply_id))

        amount = coerce_quantity(self.source, rec_id, row, "amount", errors, required=True)
        occurred_at = resolve_occurred_at(
            self.source,
            rec_id,
            (row.get("paid_at"), row.get("created_at")),
            context,
            errors,
        )

        transaction = Transaction(
            id=f"payment-{rec_id}",
            account_key=payment_account_key(supply_id),
            occurred_at=occurred_at,
            kind=TransactionKind.PAYMENT,
            quantity=amount,
            source_ref=SourceRef(self.source, rec_id),
            supply_id=supply_id,
            note=row.get("reference") or row.get("notes"),
        )
        return RecordOutcome(transactions=(transaction,), errors=tuple(errors))
