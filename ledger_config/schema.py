"""
LedgerConfig schema.

Defines the human-authored configuration of the ledger engine.  YAML is
parsed into these types by the loader; every type is frozen so a config
object can be shared freely across threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ledger_engines.quality_hold import (
    DEFAULT_FAILED_STATUSES,
    DEFAULT_HOLD_STATUSES,
    HoldPolicy,
)

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QualityHoldDef:
    """Quality statuses that make a batch count as held or failed."""

    hold_statuses: frozenset[str] = DEFAULT_HOLD_STATUSES
    failed_statuses: frozenset[str] = DEFAULT_FAILED_STATUSES

    def to_policy(self) -> HoldPolicy:
        return HoldPolicy(
            hold_statuses=self.hold_statuses,
            failed_statuses=self.failed_statuses,
        )


@dataclass(frozen=True)
class CoverageDef:
    """Days-of-cover window under which a position needs attention."""

    window_days: int = 14


@dataclass(frozen=True)
class FetchDef:
    """Bounds of the concurrent source fetch."""

    max_workers: int = 8
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class ShipmentDef:
    """Shipment header statuses that mean stock has left the warehouse."""

    outbound_statuses: frozenset[str] = frozenset({"SHIPPED", "DELIVERED"})


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    """Root configuration object."""

    config_id: str = "default"
    version: int = 1
    quality_hold: QualityHoldDef = field(default_factory=QualityHoldDef)
    coverage: CoverageDef = field(default_factory=CoverageDef)
    fetch: FetchDef = field(default_factory=FetchDef)
    shipments: ShipmentDef = field(default_factory=ShipmentDef)
    checksum: str = ""
