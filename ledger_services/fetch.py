"""
Concurrent fan-out fetch of the source collections.

Every collection is independent, so all fetches are issued at once and
joined before any reduction starts.  A collection that fails or does not
answer within the timeout is replaced by an empty list and reported as a
``SourceFetchError``; the computation goes on with what arrived.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any

from ledger_kernel.exceptions import SourceFetchError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.source_selector import SourceReader

logger = get_logger("services.fetch")


@dataclass(frozen=True)
class FetchResult:
    """Fetched snapshots keyed by collection, plus the collections that failed."""

    collections: dict[str, list[dict[str, Any]]]
    errors: tuple[SourceFetchError, ...] = ()

    @property
    def failed_sources(self) -> tuple[str, ...]:
        return tuple(e.source for e in self.errors)


def fan_out_fetch(
    reader: SourceReader,
    collections: Iterable[str],
    max_workers: int = 8,
    timeout: float | None = 30.0,
) -> FetchResult:
    """
    Fetch ``collections`` concurrently from ``reader``.

    Postconditions:
        - Every requested collection is present in the result, empty when
          its fetch failed.
        - Exactly one ``SourceFetchError`` per failed collection, in the
          order the collections were requested.
    """
    names = list(dict.fromkeys(collections))
    if not names:
        return FetchResult(collections={})

    executor = ThreadPoolExecutor(
        max_workers=max(1, min(max_workers, len(names))),
        thread_name_prefix="ledger-fetch",
    )
    try:
        futures: dict[str, Future] = {
            name: executor.submit(reader.fetch, name) for name in names
        }
        done, _ = wait(futures.values(), timeout=timeout)
    finally:
        # A fetch stuck past the timeout must not hold the caller.
        executor.shutdown(wait=False, cancel_futures=True)

    fetched: dict[str, list[dict[str, Any]]] = {}
    errors: list[SourceFetchError] = []
    for name in names:
        future = futures[name]
        if future not in done:
            future.cancel()
            errors.append(SourceFetchError(name, f"timed out after {timeout}s"))
            fetched[name] = []
            continue
        exc = future.exception()
        if exc is not None:
            errors.append(SourceFetchError(name, f"{type(exc).__name__}: {exc}"))
            fetched[name] = []
            continue
        fetched[name] = list(future.result())

    for error in errors:
        logger.warning("source_fetch_failed", extra={
            "source": error.source,
            "reason": error.reason,
        })
    result = FetchResult(collections=fetched, errors=tuple(errors))
    logger.info("source_fetch_completed", extra={
        "collection_count": len(names),
        "failed_count": len(errors),
        "failed_sources": result.failed_sources,
    })
    return result
