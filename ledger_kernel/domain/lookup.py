"""
Module: ledger_kernel.domain.lookup
Responsibility:
    Explicit join resolution.  A ``Lookup`` maps ids to dimension rows
    (products, warehouses, units, supplies) and every resolution returns a
    tagged ``Found(value)`` or ``Missing(reason)`` instead of ``None``.
    ``unwrap_one`` collapses an embedded relation that a data store may
    return either as a single object or as a one-element list.

Architecture position:
    Kernel > Domain.  Pure, zero I/O.  Lookups are built once per
    invocation from fetched snapshots and never cached between runs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from ledger_kernel.domain.values import normalize_id

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class Missing:
    reason: str


Resolution = Union[Found[T], Missing]


def unwrap_one(value: Any) -> Resolution[Mapping[str, Any]]:
    """
    Collapse an embedded relation by one level.

    ``{"id": 1}`` and ``[{"id": 1}]`` both resolve to ``Found({"id": 1})``;
    ``None``, ``[]`` and non-mapping values resolve to ``Missing``.  Lists
    with more than one element resolve to their first element.
    """
    if value is None:
        return Missing("null relation")
    if isinstance(value, Mapping):
        return Found(value)
    if isinstance(value, (list, tuple)):
        if not value:
            return Missing("empty relation")
        first = value[0]
        if isinstance(first, Mapping):
            return Found(first)
        return Missing(f"unexpected element type {type(first).__name__}")
    return Missing(f"unexpected relation type {type(value).__name__}")


class Lookup:
    """
    Read-only id -> row map for one dimension collection.

    Ids are normalized with ``normalize_id`` so ``12``, ``12.0`` and
    ``"12"`` address the same row.
    """

    def __init__(self, name: str, rows: Mapping[str, Mapping[str, Any]]):
        self.name = name
        self._rows = dict(rows)

    @classmethod
    def from_rows(
        cls,
        name: str,
        rows: Iterable[Mapping[str, Any]],
        id_field: str = "id",
    ) -> Lookup:
        """Index rows by ``id_field``; rows without an id are skipped."""
        indexed: dict[str, Mapping[str, Any]] = {}
        for row in rows:
            key = normalize_id(row.get(id_field))
            if key is not None:
                indexed[key] = row
        return cls(name, indexed)

    def resolve(self, raw_id: Any) -> Resolution[Mapping[str, Any]]:
        key = normalize_id(raw_id)
        if key is None:
            return Missing(f"{self.name}: no id")
        row = self._rows.get(key)
        if row is None:
            return Missing(f"{self.name}: {key} not found")
        return Found(row)

    def get(self, raw_id: Any) -> Mapping[str, Any] | None:
        resolution = self.resolve(raw_id)
        return resolution.value if isinstance(resolution, Found) else None

    def __contains__(self, raw_id: Any) -> bool:
        return isinstance(self.resolve(raw_id), Found)

    def __len__(self) -> int:
        return len(self._rows)

    def ids(self) -> tuple[str, ...]:
        return tuple(self._rows)


@dataclass(frozen=True)
class Lookups:
    """The dimension lookups of one invocation."""

    products: Lookup
    warehouses: Lookup
    units: Lookup
    supplies: Lookup
    supply_batches: Lookup
    shipments: Lookup


def build_lookups(collections: Mapping[str, Iterable[Mapping[str, Any]]]) -> Lookups:
    """Build every lookup once from the fetched collections (missing ones are empty)."""
    return Lookups(
        products=Lookup.from_rows("products", collections.get("products", ())),
        warehouses=Lookup.from_rows("warehouses", collections.get("warehouses", ())),
        units=Lookup.from_rows("units", collections.get("units", ())),
        supplies=Lookup.from_rows("supplies", collections.get("supplies", ())),
        supply_batches=Lookup.from_rows("supply_batches", collections.get("supply_batches", ())),
        shipments=Lookup.from_rows("shipments", collections.get("shipments", ())),
    )
