"""
Module: ledger_kernel.db.engine
Responsibility: SQLAlchemy engine construction for the backing store the
    ledger reads from.  The ledger never writes; the engine is handed to
    ``SqlSourceReader`` and owned by the caller.
Architecture position: Kernel > DB.  MUST NOT import from selectors/,
    engines, ingestion or services.

Invariants enforced:
    - No module-level engine: every call returns a new Engine and the
      caller owns its lifecycle (``dispose()``).
    - Connection pooling with pre-ping on server databases; SQLite keeps
      SQLAlchemy's default pool.

Failure modes:
    - sqlalchemy.exc.ArgumentError for a malformed URL.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from ledger_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def create_source_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create an Engine for the read-only source database.

    Args:
        database_url: SQLAlchemy URL (``postgresql+psycopg://...`` or
            ``sqlite:///path.db``).
        echo: If True, log all SQL statements.
        pool_size: Connections kept in the pool (server databases only).
        max_overflow: Max connections beyond pool_size.
        pool_pre_ping: Test connections before use.
        pool_timeout: Seconds to wait for a pooled connection.
        pool_recycle: Seconds after which a connection is recycled.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine = create_engine(url, echo=echo)
    else:
        engine = create_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
        )

    logger.info("source_engine_created", extra={
        "backend": url.get_backend_name(),
        "database": url.database,
    })
    return engine
