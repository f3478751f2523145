"""
Module: ledger_engines.quality_hold
Responsibility:
    Infer held quantities for supply batches whose source rows carry no
    explicit held-quantity field, only a quality status.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Inference rule (approximation pending confirmation by domain owners):
    - status in ``hold_statuses``   -> held = max(received - accepted - rejected, 0)
    - status in ``failed_statuses`` -> held = max(rejected, 0)
    - any other status              -> held = 0
    The on-hand contribution of a batch is its ``current_qty`` when the
    source provides one, otherwise ``accepted`` plus the pending quantity
    for batches still on hold.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.domain.values import ZERO, finite_or_zero

DEFAULT_HOLD_STATUSES = frozenset({"PENDING", "HOLD"})
DEFAULT_FAILED_STATUSES = frozenset({"FAILED"})


@dataclass(frozen=True)
class HoldPolicy:
    """Status sets driving the hold inference (case-insensitive)."""

    hold_statuses: frozenset[str] = DEFAULT_HOLD_STATUSES
    failed_statuses: frozenset[str] = DEFAULT_FAILED_STATUSES

    def is_hold(self, status: str | None) -> bool:
        return _normalize_status(status) in self.hold_statuses

    def is_failed(self, status: str | None) -> bool:
        return _normalize_status(status) in self.failed_statuses


def _normalize_status(status: str | None) -> str:
    return (status or "").strip().upper()


def inferred_pending(received: Decimal, accepted: Decimal, rejected: Decimal) -> Decimal:
    """Quantity received but neither accepted nor rejected yet."""
    pending = finite_or_zero(received) - finite_or_zero(accepted) - finite_or_zero(rejected)
    return max(pending, ZERO)


def infer_hold_quantity(
    received: Decimal,
    accepted: Decimal,
    rejected: Decimal,
    status: str | None,
    policy: HoldPolicy = HoldPolicy(),
) -> Decimal:
    """Held quantity of one batch under ``policy``."""
    if policy.is_hold(status):
        return inferred_pending(received, accepted, rejected)
    if policy.is_failed(status):
        return max(finite_or_zero(rejected), ZERO)
    return ZERO


def receipt_quantity(
    received: Decimal,
    accepted: Decimal,
    rejected: Decimal,
    status: str | None,
    current: Decimal | None = None,
    policy: HoldPolicy = HoldPolicy(),
) -> Decimal:
    """On-hand quantity a batch contributes when received."""
    if current is not None:
        return max(finite_or_zero(current), ZERO)
    quantity = finite_or_zero(accepted)
    if policy.is_hold(status):
        quantity += inferred_pending(received, accepted, rejected)
    return max(quantity, ZERO)
