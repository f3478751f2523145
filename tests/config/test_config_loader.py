"""
Tests for ledger configuration loading.

Covers:
- The shipped defaults
- Partial files falling back to schema defaults
- Validation errors naming the offending key
- Deterministic checksums
- LEDGER_CONFIG_TRACE emission
"""

import logging
from pathlib import Path

import pytest
import yaml

from ledger_config import DEFAULT_CONFIG_PATH, get_active_config
from ledger_config.loader import compute_checksum, load_yaml_file, parse_config
from ledger_config.schema import LedgerConfig
from ledger_kernel.exceptions import ConfigurationError


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "ledger.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaults:
    def test_default_file_exists(self):
        assert DEFAULT_CONFIG_PATH.is_file()

    def test_shipped_defaults(self):
        config = get_active_config()

        assert config.config_id == "default"
        assert config.quality_hold.hold_statuses == frozenset({"PENDING", "HOLD"})
        assert config.quality_hold.failed_statuses == frozenset({"FAILED"})
        assert config.coverage.window_days == 14
        assert config.shipments.outbound_statuses == frozenset({"SHIPPED", "DELIVERED"})
        assert config.fetch.max_workers == 8
        assert config.fetch.timeout_seconds == 30.0
        assert config.checksum

    def test_shipped_defaults_match_schema_defaults(self):
        shipped = get_active_config()
        schema = LedgerConfig()
        assert shipped.quality_hold == schema.quality_hold
        assert shipped.coverage == schema.coverage
        assert shipped.fetch == schema.fetch
        assert shipped.shipments == schema.shipments


class TestParsing:
    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = get_active_config(path)
        assert config.coverage.window_days == 14

    def test_partial_file(self, tmp_path):
        config = get_active_config(_write(tmp_path, {
            "config_id": "plant-a",
            "coverage": {"window_days": 7},
            "quality_hold": {"hold_statuses": ["quarantine", "Pending"]},
        }))
        assert config.config_id == "plant-a"
        assert config.coverage.window_days == 7
        assert config.quality_hold.hold_statuses == frozenset({"QUARANTINE", "PENDING"})
        assert config.quality_hold.failed_statuses == frozenset({"FAILED"})

    def test_hold_policy_built_from_config(self):
        policy = parse_config({"quality_hold": {"failed_statuses": ["REJECTED"]}}).quality_hold.to_policy()
        assert policy.is_failed("rejected")
        assert not policy.is_failed("FAILED")

    @pytest.mark.parametrize("data, key", [
        ({"coverage": {"window_days": 0}}, "coverage.window_days"),
        ({"coverage": {"window_days": "14"}}, "coverage.window_days"),
        ({"coverage": {"window_days": 1.5}}, "coverage.window_days"),
        ({"fetch": {"max_workers": -1}}, "fetch.max_workers"),
        ({"fetch": {"timeout_seconds": True}}, "fetch.timeout_seconds"),
        ({"shipments": {"outbound_statuses": "SHIPPED"}}, "shipments.outbound_statuses"),
        ({"quality_hold": {"hold_statuses": ["PENDING", ""]}}, "quality_hold.hold_statuses"),
        ({"quality_hold": {"hold_statuses": ["X"], "failed_statuses": ["x"]}}, "quality_hold"),
        ({"coverage": [1, 2]}, "coverage"),
        ({"version": "one"}, "version"),
    ])
    def test_invalid_values(self, data, key):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(data)
        assert exc_info.value.key == key
        assert exc_info.value.code == "CONFIGURATION_ERROR"

    def test_non_mapping_file_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_yaml_file(_write(tmp_path, [1, 2, 3]))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")


class TestChecksum:
    def test_independent_of_key_order(self):
        assert compute_checksum({"a": 1, "b": [1, 2]}) == compute_checksum({"b": [1, 2], "a": 1})

    def test_changes_with_content(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})

    def test_config_checksum_tracks_file(self, tmp_path):
        a = get_active_config(_write(tmp_path, {"coverage": {"window_days": 7}}))
        b = get_active_config(_write(tmp_path, {"coverage": {"window_days": 8}}))
        assert a.checksum != b.checksum


class TestTrace:
    def test_config_trace_emitted(self, caplog):
        with caplog.at_level(logging.INFO, logger="ledger_kernel"):
            config = get_active_config()

        traces = [r for r in caplog.records if r.getMessage() == "LEDGER_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0].checksum == config.checksum
        assert traces[0].config_id == "default"
