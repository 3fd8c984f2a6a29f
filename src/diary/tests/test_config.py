"""Tests for tracker_config.yaml loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.diary import config_loader
from src.diary.config_loader import (
    ConfigValidationError,
    TrackerConfig,
    _validate_and_build,
    get_tracker_config,
    load_tracker_config,
    reload_tracker_config,
)


@pytest.fixture
def restore_singleton():
    saved = config_loader._config
    yield
    config_loader._config = saved


class TestConfigLoading:
    """Tests for loading tracker_config.yaml."""

    def test_load_default_config(self, tracker_config: TrackerConfig) -> None:
        assert tracker_config.version == "1.0"

    def test_cycle_length_defaults(self, tracker_config: TrackerConfig) -> None:
        cl = tracker_config.cycle_length
        assert cl.default_days == 28
        assert (cl.min_days, cl.max_days) == (15, 60)

    def test_storage_keys(self, tracker_config: TrackerConfig) -> None:
        keys = tracker_config.storage
        assert keys.cycles_key == "cycles_storage_v1"
        assert keys.annotations_key == "day_annotations_v1"
        assert keys.default_length_key == "averageCycleLengthDays"

    def test_seed_offsets(self, tracker_config: TrackerConfig) -> None:
        assert tracker_config.seed.offsets_days == [-84, -56, -28]

    @pytest.mark.parametrize(("days", "expected"), [(3, 15), (15, 15), (30, 30), (60, 60), (95, 60)])
    def test_clamp(self, tracker_config: TrackerConfig, days: int, expected: int) -> None:
        assert tracker_config.cycle_length.clamp(days) == expected

    def test_get_tracker_config_is_cached(self, restore_singleton) -> None:
        assert get_tracker_config() is get_tracker_config()


class TestConfigValidation:
    """Tests for config validation rules."""

    def test_empty_config_uses_defaults(self) -> None:
        config = _validate_and_build({})
        assert config.cycle_length.default_days == 28
        assert config.storage.cycles_key == "cycles_storage_v1"

    def test_min_above_max_raises(self) -> None:
        raw = {"cycle_length": {"min_days": 40, "max_days": 30}}
        with pytest.raises(ConfigValidationError, match="exceeds"):
            _validate_and_build(raw)

    def test_non_numeric_length_raises(self) -> None:
        raw = {"cycle_length": {"default_days": "monthly"}}
        with pytest.raises(ConfigValidationError, match="default_days"):
            _validate_and_build(raw)

    @pytest.mark.parametrize("value", [28.9, 28.0, "28", True, None])
    def test_non_integer_length_raises(self, value: object) -> None:
        """Floats and numeric strings are rejected, not truncated."""
        raw = {"cycle_length": {"default_days": value}}
        with pytest.raises(ConfigValidationError, match="default_days must be an integer"):
            _validate_and_build(raw)

    def test_non_positive_default_raises(self) -> None:
        with pytest.raises(ConfigValidationError, match="positive"):
            _validate_and_build({"cycle_length": {"default_days": 0}})

    def test_duplicate_storage_keys_raise(self) -> None:
        raw = {"storage": {"cycles_key": "same", "annotations_key": "same"}}
        with pytest.raises(ConfigValidationError, match="distinct"):
            _validate_and_build(raw)

    def test_blank_storage_key_raises(self) -> None:
        with pytest.raises(ConfigValidationError, match="annotations_key"):
            _validate_and_build({"storage": {"annotations_key": "  "}})

    def test_non_integer_seed_offset_raises(self) -> None:
        with pytest.raises(ConfigValidationError, match="offsets_days"):
            _validate_and_build({"seed": {"offsets_days": [-28, "soon"]}})

    def test_all_errors_reported_together(self) -> None:
        raw = {
            "cycle_length": {"default_days": "x", "min_days": "y"},
            "seed": {"offsets_days": "nope"},
        }
        with pytest.raises(ConfigValidationError, match="3 validation error"):
            _validate_and_build(raw)

    def test_hot_reload(self, tmp_path: Path, restore_singleton) -> None:
        config_file = tmp_path / "tracker_config.yaml"
        config_file.write_text(
            'version: "2.0-test"\n'
            "cycle_length:\n"
            "  default_days: 30\n"
            "  min_days: 20\n"
            "  max_days: 45\n"
        )
        new_config = reload_tracker_config(path=config_file)
        assert new_config.version == "2.0-test"
        assert get_tracker_config() is new_config
        assert new_config.cycle_length.clamp(70) == 45

    def test_failed_reload_keeps_old_config(self, tmp_path: Path, restore_singleton) -> None:
        current = get_tracker_config()
        bad = tmp_path / "tracker_config.yaml"
        bad.write_text("cycle_length: {min_days: 50, max_days: 10}\n")
        with pytest.raises(ConfigValidationError):
            reload_tracker_config(path=bad)
        assert get_tracker_config() is current

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "tracker_config.yaml"
        bad.write_text("cycle_length: [unclosed\n")
        with pytest.raises(ConfigValidationError, match="YAML parse error"):
            load_tracker_config(path=bad)

    def test_load_nonexistent_file_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_tracker_config(path=Path("/nonexistent/path/config.yaml"))
