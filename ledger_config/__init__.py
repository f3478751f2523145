"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive a ``LedgerConfig`` and never
    read files or environment variables themselves.

Architecture position:
    Configuration -- sits above ``ledger_kernel`` and ``ledger_engines``
    and below ``ledger_services``.  The kernel MUST NEVER import from
    ``ledger_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``ConfigurationError`` -- a value is present but invalid.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``LEDGER_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying every computed position to the configuration that
    governed it.
"""

from __future__ import annotations

from pathlib import Path

from ledger_kernel.logging_config import get_logger
from ledger_config.loader import compute_checksum, load_config
from ledger_config.schema import (
    CoverageDef,
    FetchDef,
    LedgerConfig,
    QualityHoldDef,
    ShipmentDef,
)

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> LedgerConfig:
    """Load, validate and trace the active configuration.

    Args:
        path: YAML file to load. Defaults to ``ledger_config/defaults.yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If a value is invalid.
    """
    config = load_config(Path(path) if path is not None else DEFAULT_CONFIG_PATH)

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "trace_type": "LEDGER_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "coverage_window_days": config.coverage.window_days,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "CoverageDef",
    "FetchDef",
    "LedgerConfig",
    "QualityHoldDef",
    "ShipmentDef",
    "compute_checksum",
    "get_active_config",
]
