"""
ledger_engines.tracer -- LEDGER_ENGINE_TRACE records for engine calls.

Each decorated engine call logs, at DEBUG, which engine and version ran,
a short fingerprint of the inputs that identify the call (an account key,
an expected total, a coverage window), how many items each collection
argument held, and how long the call took.  The wrapped engine stays
pure: the decorator only reads its keyword arguments.

Usage:
    @traced_engine("ledger_reducer", "1.0", fingerprint_fields=("account_key",))
    def reduce_stock_account(*, account_key, transactions):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import time
from collections.abc import Callable, Mapping, Sized
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_MESSAGE = "LEDGER_ENGINE_TRACE"
FINGERPRINT_LENGTH = 16


def canonical_form(value: Any) -> str:
    """
    Order-stable text form of an engine input.

    Mappings and sets are sorted; sequences keep their order; dataclasses
    (transactions, positions, thresholds) are rendered field by field.
    """
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        return value
    if is_dataclass(value) and not isinstance(value, type):
        inner = ",".join(f"{f.name}={canonical_form(getattr(value, f.name))}" for f in fields(value))
        return f"{type(value).__name__}({inner})"
    if isinstance(value, Mapping):
        items = sorted((str(k), canonical_form(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in items) + "}"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(canonical_form(v) for v in value)) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(canonical_form(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """SHA-256 prefix over ``name=value`` pairs of the selected keyword arguments."""
    text = "|".join(f"{name}={canonical_form(kwargs.get(name))}" for name in fingerprint_fields)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def _input_sizes(kwargs: Mapping[str, Any]) -> dict[str, int]:
    return {
        name: len(value)
        for name, value in kwargs.items()
        if isinstance(value, Sized) and not isinstance(value, str)
    }


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate a keyword-only engine function with a trace record.

    Generators and iterators passed as arguments are not consumed; only
    sized arguments are counted.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            logger.debug(TRACE_MESSAGE, extra={
                "trace_type": TRACE_MESSAGE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "function": func.__qualname__,
                "input_fingerprint": (
                    compute_input_fingerprint(fingerprint_fields, kwargs)
                    if fingerprint_fields else ""
                ),
                "input_sizes": _input_sizes(kwargs),
                "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            })
            return result

        return wrapper

    return decorator
