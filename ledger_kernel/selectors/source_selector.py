"""
Module: ledger_kernel.selectors.source_selector
Responsibility: Read-only access to the raw source collections (supply
    batches, payments, products, warehouses, ...) the ledger is derived
    from.  There are no stored balances anywhere; every position is
    recomputed from these rows on each request.
Architecture position: Kernel > Selectors.  May import from db/ and
    domain/.  MUST NOT import from engines, ingestion or services.

Invariants enforced:
    - Read-only: readers never insert, update or delete.
    - Plain data out: every reader returns ``list[dict]`` snapshots, never
      ORM objects or live cursors.
    - Each ``fetch`` uses its own connection, so one reader can serve many
      concurrent fetches (``ledger_services.fetch``).

Failure modes:
    - ``sqlalchemy.exc.NoSuchTableError`` / ``OperationalError`` propagate
      from ``SqlSourceReader.fetch``; the fan-out layer converts them into
      ``SourceFetchError`` records.
    - ``KeyError`` from ``InMemorySourceReader.fetch`` for an unknown
      collection when ``strict=True``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import MetaData, Table, select
from sqlalchemy.engine import Engine

from ledger_kernel.logging_config import get_logger

logger = get_logger("selectors.source")


@runtime_checkable
class SourceReader(Protocol):
    """Protocol for reading one source collection into record dicts."""

    def fetch(self, collection: str) -> list[dict[str, Any]]:
        """Return every row of ``collection`` as a plain dict."""
        ...


class SqlSourceReader:
    """
    Reader over a relational backing store via SQLAlchemy Core.

    Contract:
        Tables are reflected on demand by collection name; rows are
        returned as plain dicts keyed by column name.
    Non-goals:
        - No filtering or pagination; the ledger always needs full
          snapshots of the collections it folds.
        - No retries; transport concerns belong to the caller.
    """

    def __init__(self, engine: Engine, schema: str | None = None):
        self.engine = engine
        self.schema = schema

    def fetch(self, collection: str) -> list[dict[str, Any]]:
        metadata = MetaData()
        with self.engine.connect() as conn:
            table = Table(collection, metadata, autoload_with=conn, schema=self.schema)
            query = select(table)
            if "id" in table.c:
                query = query.order_by(table.c.id)
            rows = [dict(row) for row in conn.execute(query).mappings()]

        logger.debug("source_collection_fetched", extra={
            "collection": collection,
            "row_count": len(rows),
        })
        return rows


class InMemorySourceReader:
    """Reader over already-fetched snapshots (fixtures, caches owned by the caller)."""

    def __init__(
        self,
        collections: Mapping[str, Iterable[Mapping[str, Any]]],
        strict: bool = False,
    ):
        self._collections = {
            name: [dict(row) for row in rows] for name, rows in collections.items()
        }
        self.strict = strict

    def fetch(self, collection: str) -> list[dict[str, Any]]:
        if collection not in self._collections:
            if self.strict:
                raise KeyError(f"Unknown collection: {collection}")
            return []
        return [dict(row) for row in self._collections[collection]]
