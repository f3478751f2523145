"""
Module: ledger_kernel.domain.values
Responsibility:
    Numeric and timestamp utilities shared by every layer: NaN-free
    Decimal coercion, output rounding, timestamp parsing with fallbacks,
    and the natural ordering used to tie-break transaction ids.

Architecture position:
    Kernel > Domain.  Pure functions, zero I/O.  MUST NOT import from
    ledger_engines, ledger_ingestion or ledger_services.

Invariants enforced:
    - Coercion never yields NaN or Infinity: anything that is not a finite
      number becomes ``None`` (``parse_decimal``) or ``ZERO``
      (``coerce_decimal``).
    - Rounding is applied at output only, ROUND_HALF_UP to
      ``OUTPUT_DECIMAL_PLACES``.
    - Parsed timestamps are always timezone-aware (naive values are UTC).
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
OUTPUT_DECIMAL_PLACES = 2

# Used when a record carries no usable timestamp and the caller gave none.
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

_DIGITS = re.compile(r"(\d+)")


def parse_decimal(value: Any) -> Decimal | None:
    """
    Parse a finite Decimal from a raw source value.

    Postconditions:
        Returns ``None`` for None, booleans, empty or non-numeric strings,
        NaN and +/-Infinity.  Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if value != value:
            return None
        result = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    if not result.is_finite():
        return None
    return result


def coerce_decimal(value: Any) -> Decimal:
    """Parse a Decimal, treating anything unusable as zero."""
    parsed = parse_decimal(value)
    return ZERO if parsed is None else parsed


def finite_or_zero(value: Decimal) -> Decimal:
    """Guard for values already typed as Decimal."""
    if isinstance(value, Decimal) and value.is_finite():
        return value
    return ZERO


def round_output(value: Decimal, places: int = OUTPUT_DECIMAL_PLACES) -> Decimal:
    """Round an emitted quantity or amount (half up)."""
    exponent = Decimal(1).scaleb(-places)
    return finite_or_zero(value).quantize(exponent, rounding=ROUND_HALF_UP)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a timezone-aware datetime from a raw source value.

    Accepts ``datetime``, ``date`` and ISO-8601 strings (a trailing ``Z``
    is accepted).  Naive values are interpreted as UTC.  Unparseable
    values return ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def first_timestamp(*candidates: Any) -> datetime | None:
    """Return the first candidate that parses as a timestamp."""
    for candidate in candidates:
        parsed = parse_timestamp(candidate)
        if parsed is not None:
            return parsed
    return None


def natural_key(identifier: str) -> tuple[Any, ...]:
    """
    Sort key that orders embedded numbers numerically.

    ``receipt-9`` sorts before ``receipt-10``.  Even positions of the
    returned tuple are text, odd positions are integers, so two keys are
    always comparable.
    """
    parts = _DIGITS.split(str(identifier))
    return tuple(int(part) if i % 2 else part for i, part in enumerate(parts))


def normalize_id(value: Any) -> str | None:
    """Canonical string form of a foreign key (``12``, ``12.0``, ``"12"`` -> ``"12"``)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)
    text = str(value).strip()
    return text or None
