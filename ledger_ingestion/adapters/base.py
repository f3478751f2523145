"""
Transaction adapter protocol and shared coercion helpers.

Contract:
    TransactionAdapter.adapt() turns one raw source row into a
    ``RecordOutcome``: zero or more canonical transactions, the soft errors
    met on the way, and whether the row was dropped.

Architecture: ledger_ingestion/adapters. Pure, no DB access; every join
goes through the lookups held by ``AdapterContext``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from ledger_engines.keying import AccountKeyer
from ledger_engines.quality_hold import HoldPolicy
from ledger_kernel.domain.lookup import Found, Lookup, Lookups, Missing, build_lookups, unwrap_one
from ledger_kernel.domain.values import (
    EPOCH,
    ZERO,
    first_timestamp,
    normalize_id,
    parse_decimal,
    parse_timestamp,
)
from ledger_kernel.exceptions import LedgerKernelError, MalformedTransactionError
from ledger_ingestion.domain.types import RecordOutcome

DEFAULT_OUTBOUND_STATUSES = frozenset({"SHIPPED", "DELIVERED"})


@dataclass(frozen=True)
class AdapterContext:
    """Read-only state shared by every adapter during one invocation."""

    lookups: Lookups
    keyer: AccountKeyer
    hold_policy: HoldPolicy = HoldPolicy()
    outbound_statuses: frozenset[str] = DEFAULT_OUTBOUND_STATUSES
    fallback_time: datetime | None = None

    @classmethod
    def from_collections(
        cls,
        collections: Mapping[str, Iterable[Mapping[str, Any]]],
        *,
        hold_policy: HoldPolicy | None = None,
        outbound_statuses: Iterable[str] | None = None,
        fallback_time: datetime | None = None,
    ) -> AdapterContext:
        """Build lookups and keyer once from the fetched collections."""
        lookups = build_lookups(collections)
        return cls(
            lookups=lookups,
            keyer=AccountKeyer(lookups),
            hold_policy=hold_policy or HoldPolicy(),
            outbound_statuses=(
                frozenset(s.strip().upper() for s in outbound_statuses)
                if outbound_statuses is not None
                else DEFAULT_OUTBOUND_STATUSES
            ),
            fallback_time=fallback_time,
        )

    def is_outbound(self, status: str | None) -> bool:
        return (status or "").strip().upper() in self.outbound_statuses


@runtime_checkable
class TransactionAdapter(Protocol):
    """Protocol for turning rows of one source collection into transactions."""

    source: str

    def adapt(self, row: Mapping[str, Any], context: AdapterContext) -> RecordOutcome:
        """Normalize a single row. Never raises for bad data."""
        ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def record_id(row: Mapping[str, Any]) -> str:
    """Normalized row id; the normalizer drops rows without one before they get here."""
    return normalize_id(row.get("id")) or "?"


def resolve_relation(
    row: Mapping[str, Any],
    relation: str,
    lookup: Lookup,
    foreign_key: str,
) -> Found | Missing:
    """
    Join target of ``row``: the embedded ``relation`` when the row carries
    one (a dict or a one-element list), else ``lookup`` by ``foreign_key``.
    """
    embedded = unwrap_one(row.get(relation))
    if isinstance(embedded, Found):
        return embedded
    return lookup.resolve(row.get(foreign_key))


def coerce_quantity(
    source: str,
    rec_id: str,
    row: Mapping[str, Any],
    field: str,
    errors: list[LedgerKernelError],
    *,
    required: bool = False,
) -> Decimal:
    """
    Read a non-negative magnitude from ``row[field]``.

    Non-numeric, non-finite and negative values become zero and record a
    ``MalformedTransactionError``.  A missing value becomes zero silently
    unless ``required``.
    """
    raw = row.get(field)
    if raw is None:
        if required:
            errors.append(MalformedTransactionError(source, rec_id, field, raw))
        return ZERO
    value = parse_decimal(raw)
    if value is None or value < ZERO:
        errors.append(MalformedTransactionError(source, rec_id, field, raw))
        return ZERO
    return value


def optional_quantity(
    source: str,
    rec_id: str,
    row: Mapping[str, Any],
    field: str,
    errors: list[LedgerKernelError],
) -> Decimal | None:
    """Like ``coerce_quantity`` but keeps "absent" distinguishable from zero."""
    if row.get(field) is None:
        return None
    return coerce_quantity(source, rec_id, row, field, errors)


def resolve_occurred_at(
    source: str,
    rec_id: str,
    candidates: Iterable[Any],
    context: AdapterContext,
    errors: list[LedgerKernelError],
) -> datetime:
    """First parseable candidate, else the caller's fallback time (or epoch)."""
    candidates = tuple(candidates)
    occurred_at = first_timestamp(*candidates)
    if occurred_at is not None:
        return occurred_at
    errors.append(MalformedTransactionError(source, rec_id, "occurred_at", candidates))
    return parse_timestamp(context.fallback_time) or EPOCH


def unit_symbol(context: AdapterContext, unit_id: Any) -> str | None:
    unit = context.lookups.units.get(unit_id)
    if unit is None:
        return None
    return unit.get("symbol") or unit.get("name")
