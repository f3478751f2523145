"""
Module: ledger_engines.keying
Responsibility:
    Derive the aggregation key of a transaction from its join path:
    ``<product>:<warehouse>`` for stock accounts (batch -> supply ->
    warehouse, or a direct warehouse reference) and ``<supply>`` for
    payment accounts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ledger_kernel.

Invariants enforced:
    - Pure: the same ids and lookups always produce the same key.
    - A product is required; an unresolvable product yields ``Missing``
      and the caller drops the record.
    - An unresolvable supply or warehouse never fails the batch: the key
      uses the ``UNASSIGNED`` segment and an ``UnresolvedJoinError`` is
      returned alongside.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ledger_kernel.domain.lookup import Found, Lookups, Missing
from ledger_kernel.domain.values import normalize_id
from ledger_kernel.exceptions import UnresolvedJoinError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.keying")

UNASSIGNED = "none"
KEY_SEPARATOR = ":"


def stock_account_key(product_id: Any, warehouse_id: Any) -> str:
    """
    Key of a product+warehouse account; an absent warehouse is ``none``.

    The product id may contain the separator, the warehouse id may not.
    """
    product = normalize_id(product_id)
    if product is None:
        raise ValueError("A stock account requires a product id")
    warehouse = normalize_id(warehouse_id) or UNASSIGNED
    if KEY_SEPARATOR in warehouse:
        raise ValueError(f"Warehouse id {warehouse!r} contains {KEY_SEPARATOR!r}")
    return f"{product}{KEY_SEPARATOR}{warehouse}"


def payment_account_key(supply_id: Any) -> str:
    """Key of a supply-document payment account."""
    supply = normalize_id(supply_id)
    if supply is None:
        raise ValueError("A payment account requires a supply id")
    return supply


def split_stock_account_key(account_key: str) -> tuple[str, str | None]:
    """Inverse of ``stock_account_key``; the unassigned segment maps to None."""
    product, separator, warehouse = account_key.rpartition(KEY_SEPARATOR)
    if not separator:
        return account_key, None
    return product, (None if warehouse in ("", UNASSIGNED) else warehouse)


def is_unassigned(account_key: str) -> bool:
    return split_stock_account_key(account_key)[1] is None


@dataclass(frozen=True)
class StockKey:
    """A resolved stock account key with its join dimensions."""

    account_key: str
    product_id: str
    warehouse_id: str | None
    errors: tuple[UnresolvedJoinError, ...] = ()


class AccountKeyer:
    """
    Resolves stock account keys through the invocation's lookups.

    Contract:
        Stateless apart from the read-only lookups given at construction;
        safe to share across threads.
    """

    def __init__(self, lookups: Lookups):
        self.lookups = lookups

    def resolve_product(self, product_id: Any) -> Found | Missing:
        return self.lookups.products.resolve(product_id)

    def key_for_warehouse(
        self,
        source: str,
        record_id: str,
        product_id: Any,
        warehouse_id: Any,
    ) -> StockKey | Missing:
        """Key a record that references its warehouse directly."""
        product = self.resolve_product(product_id)
        if isinstance(product, Missing):
            return product

        product_key = normalize_id(product_id)
        errors: list[UnresolvedJoinError] = []
        warehouse_key = normalize_id(warehouse_id)
        if warehouse_key is not None and (
            warehouse_key not in self.lookups.warehouses or KEY_SEPARATOR in warehouse_key
        ):
            errors.append(UnresolvedJoinError(source, record_id, "warehouse", warehouse_key))
            warehouse_key = None

        return StockKey(
            account_key=stock_account_key(product_key, warehouse_key),
            product_id=product_key,
            warehouse_id=warehouse_key,
            errors=tuple(errors),
        )

    def key_for_supply(
        self,
        source: str,
        record_id: str,
        product_id: Any,
        supply_id: Any,
        supply: Found | Missing | None = None,
    ) -> StockKey | Missing:
        """
        Key a record whose warehouse is reached through its supply.

        ``supply`` is the already-resolved supply row when the caller has
        one (an embedded relation); otherwise ``supply_id`` is looked up.
        """
        product = self.resolve_product(product_id)
        if isinstance(product, Missing):
            return product

        if supply is None:
            supply = self.lookups.supplies.resolve(supply_id)
        if isinstance(supply, Missing):
            product_key = normalize_id(product_id)
            logger.debug("supply_unresolved", extra={
                "source": source,
                "record_id": record_id,
                "supply_id": normalize_id(supply_id),
            })
            return StockKey(
                account_key=stock_account_key(product_key, None),
                product_id=product_key,
                warehouse_id=None,
                errors=(UnresolvedJoinError(source, record_id, "supply", normalize_id(supply_id)),),
            )

        return self.key_for_warehouse(
            source, record_id, product_id, supply.value.get("warehouse_id")
        )
