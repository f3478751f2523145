"""
Module: ledger_engines.classifier
Responsibility:
    Compare derived positions against externally configured thresholds
    and emit status flags: below reorder point, below safety stock,
    within the days-of-cover window, and the settlement state of a
    payment account.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A threshold that is absent, zero, negative or non-finite is "not
      configured" and never triggers a flag.  Negative values also produce
      an ``InvalidThresholdConfigurationError`` for the caller to surface.
    - Reorder-point breach is reported before safety-stock breach.
    - Monotonic: raising ``reorder_point`` with ``available`` fixed can only
      turn ``is_below_reorder`` from False to True.
    - A payment account with nothing expected and nothing paid is
      NO_ACTIVITY, never SETTLED.
    - Stateless: every evaluation depends only on its arguments.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from ledger_kernel.domain.values import ZERO, parse_decimal, round_output
from ledger_kernel.exceptions import InvalidThresholdConfigurationError
from ledger_kernel.logging_config import get_logger
from ledger_engines.reducer import PaymentPosition, StockPosition
from ledger_engines.tracer import traced_engine

logger = get_logger("engines.classifier")

BELOW_REORDER_REASON = "Below reorder point"
BELOW_SAFETY_REASON = "Below safety stock"


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------


def configured_threshold(value: Any) -> Decimal | None:
    """The threshold as a positive Decimal, or None when not configured."""
    parsed = parse_decimal(value)
    if parsed is None or parsed <= ZERO:
        return None
    return parsed


@dataclass(frozen=True)
class StockThreshold:
    """
    Per-product stock limits; read-only input to the classifier.

    Values are kept as given; ``configured_threshold`` decides whether a
    value counts.
    """

    reorder_point: Decimal | None = None
    safety_stock: Decimal | None = None
    average_daily_usage: Decimal | None = None

    @classmethod
    def from_product(cls, product: Mapping[str, Any] | None) -> StockThreshold:
        if not product:
            return cls()
        return cls(
            reorder_point=parse_decimal(product.get("reorder_point")),
            safety_stock=parse_decimal(product.get("safety_stock")),
            average_daily_usage=parse_decimal(product.get("average_daily_usage")),
        )


def threshold_errors(
    product_id: Any,
    threshold: StockThreshold,
) -> tuple[InvalidThresholdConfigurationError, ...]:
    """Soft errors for negative thresholds (they are otherwise ignored)."""
    errors = []
    for name in ("reorder_point", "safety_stock", "average_daily_usage"):
        value = getattr(threshold, name)
        if value is not None and value < ZERO:
            errors.append(InvalidThresholdConfigurationError(product_id, name, value))
    return tuple(errors)


# ---------------------------------------------------------------------------
# Stock classification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StockStatus:
    is_below_reorder: bool
    is_below_safety: bool
    low_stock_reason: str | None
    days_of_cover: Decimal | None = None
    is_within_coverage_window: bool = False

    @property
    def needs_attention(self) -> bool:
        """True when any low-stock signal is raised."""
        return self.is_below_reorder or self.is_below_safety or self.is_within_coverage_window


@dataclass(frozen=True)
class ClassifiedStockPosition:
    position: StockPosition
    threshold: StockThreshold
    status: StockStatus


def is_below(available: Decimal, threshold: Any) -> bool:
    """``threshold > 0 and available < threshold``."""
    limit = configured_threshold(threshold)
    return limit is not None and available < limit


def days_of_cover(available: Decimal, average_daily_usage: Any) -> Decimal | None:
    """Days the available quantity lasts at the given usage; None when usage is unknown."""
    usage = configured_threshold(average_daily_usage)
    if usage is None:
        return None
    return round_output(available / usage)


def is_within_coverage(days: Decimal | None, window_days: Any) -> bool:
    """Pure comparison ``days <= window``; unknown cover or window is never flagged."""
    window = parse_decimal(window_days)
    if days is None or window is None or window < ZERO:
        return False
    return days <= window


def low_stock_reason(is_below_reorder: bool, is_below_safety: bool) -> str | None:
    if is_below_reorder:
        return BELOW_REORDER_REASON
    if is_below_safety:
        return BELOW_SAFETY_REASON
    return None


def classify_stock(
    position: StockPosition,
    threshold: StockThreshold,
    coverage_window_days: Any = None,
) -> StockStatus:
    below_reorder = is_below(position.available, threshold.reorder_point)
    below_safety = is_below(position.available, threshold.safety_stock)
    cover = days_of_cover(position.available, threshold.average_daily_usage)
    return StockStatus(
        is_below_reorder=below_reorder,
        is_below_safety=below_safety,
        low_stock_reason=low_stock_reason(below_reorder, below_safety),
        days_of_cover=cover,
        is_within_coverage_window=is_within_coverage(cover, coverage_window_days),
    )


@traced_engine("threshold_classifier", "1.0", fingerprint_fields=("coverage_window_days",))
def classify_stock_positions(
    *,
    positions: Mapping[str, StockPosition],
    thresholds: Mapping[str, StockThreshold],
    coverage_window_days: Any = None,
) -> dict[str, ClassifiedStockPosition]:
    """
    Classify every stock position.

    ``thresholds`` is keyed by product id; products without an entry are
    treated as unconfigured.
    """
    classified: dict[str, ClassifiedStockPosition] = {}
    for key, position in positions.items():
        threshold = thresholds.get(position.product_id, StockThreshold())
        classified[key] = ClassifiedStockPosition(
            position=position,
            threshold=threshold,
            status=classify_stock(position, threshold, coverage_window_days),
        )

    logger.info("stock_positions_classified", extra={
        "position_count": len(classified),
        "below_reorder_count": sum(1 for c in classified.values() if c.status.is_below_reorder),
        "below_safety_count": sum(1 for c in classified.values() if c.status.is_below_safety),
    })
    return classified


# ---------------------------------------------------------------------------
# Payment classification
# ---------------------------------------------------------------------------


class SettlementState(str, Enum):
    """Reconciliation state of a supply document."""

    NO_ACTIVITY = "no_activity"  # Nothing expected and nothing paid
    UNPAID = "unpaid"  # Expected amount, no payment yet
    PARTIAL = "partial"  # Paid part of the expected amount
    SETTLED = "settled"  # Outstanding is zero and there was activity


@dataclass(frozen=True)
class PaymentStatus:
    state: SettlementState

    @property
    def is_settled(self) -> bool:
        return self.state is SettlementState.SETTLED


@dataclass(frozen=True)
class ClassifiedPaymentPosition:
    position: PaymentPosition
    status: PaymentStatus


def classify_payment(position: PaymentPosition) -> PaymentStatus:
    has_activity = position.paid_total > ZERO or position.expected_total > ZERO
    if not has_activity:
        return PaymentStatus(SettlementState.NO_ACTIVITY)
    if position.outstanding <= ZERO:
        return PaymentStatus(SettlementState.SETTLED)
    if position.paid_total <= ZERO:
        return PaymentStatus(SettlementState.UNPAID)
    return PaymentStatus(SettlementState.PARTIAL)


@traced_engine("threshold_classifier", "1.0")
def classify_payment_positions(
    *,
    positions: Mapping[str, PaymentPosition],
) -> dict[str, ClassifiedPaymentPosition]:
    classified = {
        key: ClassifiedPaymentPosition(position=position, status=classify_payment(position))
        for key, position in positions.items()
    }
    logger.info("payment_positions_classified", extra={
        "position_count": len(classified),
        "settled_count": sum(1 for c in classified.values() if c.status.is_settled),
    })
    return classified
