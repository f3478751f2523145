"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``ledger_config.schema`` dataclasses.  Runtime callers go through
``ledger_config.get_active_config()``.

Invariants enforced
-------------------
* Sections that are absent take their schema defaults; values that are
  present but invalid raise ``ConfigurationError`` naming the key.
* Status names are normalized to upper case.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  YAML data for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong types or out-of-range values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from ledger_kernel.exceptions import ConfigurationError
from ledger_config.schema import (
    CoverageDef,
    FetchDef,
    LedgerConfig,
    QualityHoldDef,
    ShipmentDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("<root>", "top level must be a mapping")
    return data


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(key, "must be a mapping")
    return value


def parse_status_set(key: str, value: Any) -> frozenset[str]:
    """Parse a list of status names into an upper-cased frozenset."""
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(key, "must be a list of status names")
    statuses = set()
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(key, f"invalid status {item!r}")
        statuses.add(item.strip().upper())
    return frozenset(statuses)


def parse_positive_number(key: str, value: Any, *, integer: bool = False) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(key, f"must be a number, got {value!r}")
    if integer and not isinstance(value, int):
        raise ConfigurationError(key, f"must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(key, f"must be positive, got {value!r}")
    return value


def parse_quality_hold(data: dict[str, Any]) -> QualityHoldDef:
    default = QualityHoldDef()
    hold = (
        parse_status_set("quality_hold.hold_statuses", data["hold_statuses"])
        if "hold_statuses" in data
        else default.hold_statuses
    )
    failed = (
        parse_status_set("quality_hold.failed_statuses", data["failed_statuses"])
        if "failed_statuses" in data
        else default.failed_statuses
    )
    overlap = hold & failed
    if overlap:
        raise ConfigurationError(
            "quality_hold", f"statuses both held and failed: {sorted(overlap)}"
        )
    return QualityHoldDef(hold_statuses=hold, failed_statuses=failed)


def parse_coverage(data: dict[str, Any]) -> CoverageDef:
    if "window_days" not in data:
        return CoverageDef()
    return CoverageDef(
        window_days=parse_positive_number("coverage.window_days", data["window_days"], integer=True)
    )


def parse_fetch(data: dict[str, Any]) -> FetchDef:
    default = FetchDef()
    return FetchDef(
        max_workers=(
            parse_positive_number("fetch.max_workers", data["max_workers"], integer=True)
            if "max_workers" in data
            else default.max_workers
        ),
        timeout_seconds=(
            float(parse_positive_number("fetch.timeout_seconds", data["timeout_seconds"]))
            if "timeout_seconds" in data
            else default.timeout_seconds
        ),
    )


def parse_shipments(data: dict[str, Any]) -> ShipmentDef:
    if "outbound_statuses" not in data:
        return ShipmentDef()
    return ShipmentDef(
        outbound_statuses=parse_status_set(
            "shipments.outbound_statuses", data["outbound_statuses"]
        )
    )


def parse_config(data: dict[str, Any]) -> LedgerConfig:
    """
    Parse a ``LedgerConfig`` from a dict.

    Postconditions:
        - ``checksum`` is the ``compute_checksum`` of ``data``.
    """
    version = data.get("version", 1)
    if isinstance(version, bool) or not isinstance(version, int):
        raise ConfigurationError("version", f"must be an integer, got {version!r}")
    return LedgerConfig(
        config_id=str(data.get("config_id", "default")),
        version=version,
        quality_hold=parse_quality_hold(_section(data, "quality_hold")),
        coverage=parse_coverage(_section(data, "coverage")),
        fetch=parse_fetch(_section(data, "fetch")),
        shipments=parse_shipments(_section(data, "shipments")),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> LedgerConfig:
    return parse_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums
          (deterministic, independent of key order).
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
