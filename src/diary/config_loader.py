"""Load, validate, and hot-reload the tracker configuration.

The config lives in ``tracker_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_tracker_config()`` to re-read from
disk after an edit, no restart required.

Usage::

    from src.diary.config_loader import get_tracker_config

    config = get_tracker_config()
    config.cycle_length.default_days     # 28
    config.cycle_length.clamp(72)        # 60
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger("cycle_diary.diary.config")

_CONFIG_PATH = Path(__file__).parent / "tracker_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class CycleLengthConfig:
    """Average cycle length defaults and clamp bounds (days)."""

    default_days: int = 28
    min_days: int = 15
    max_days: int = 60

    def clamp(self, days: int) -> int:
        return max(self.min_days, min(self.max_days, days))


@dataclass
class StorageKeysConfig:
    """Key names used in the durable key-value store."""

    cycles_key: str = "cycles_storage_v1"
    annotations_key: str = "day_annotations_v1"
    default_length_key: str = "averageCycleLengthDays"


@dataclass
class SeedConfig:
    """Demo data seeded into an empty diary."""

    offsets_days: list[int] = field(default_factory=lambda: [-84, -56, -28])


@dataclass
class TrackerConfig:
    """Complete, validated tracker configuration.

    Attributes:
        version:      Config schema version string.
        cycle_length: Default average and clamp range.
        storage:      Key-value store key names.
        seed:         Demo seed offsets.
    """

    version: str
    cycle_length: CycleLengthConfig
    storage: StorageKeysConfig
    seed: SeedConfig
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when tracker_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    import yaml  # pyyaml

    if not path.exists():
        raise FileNotFoundError(f"Tracker config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _int_field(section: dict, key: str, default: int, label: str, errors: list[str]) -> int:
    value = section.get(key, default)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    errors.append(f"{label}.{key} must be an integer, got {value!r}")
    return default


def _validate_and_build(raw: dict) -> TrackerConfig:
    """Validate the raw YAML dict and construct a TrackerConfig.

    Missing sections fall back to their defaults; every invalid value is
    collected so the error lists all problems at once.

    Raises:
        ConfigValidationError: If any value is invalid.
    """
    errors: list[str] = []

    version = str(raw.get("version", "1.0"))

    # ── Cycle length ──
    cl_raw = raw.get("cycle_length") or {}
    if not isinstance(cl_raw, dict):
        errors.append("'cycle_length' must be a mapping")
        cl_raw = {}
    cycle_length = CycleLengthConfig(
        default_days=_int_field(cl_raw, "default_days", 28, "cycle_length", errors),
        min_days=_int_field(cl_raw, "min_days", 15, "cycle_length", errors),
        max_days=_int_field(cl_raw, "max_days", 60, "cycle_length", errors),
    )
    if cycle_length.min_days <= 0:
        errors.append(f"cycle_length.min_days = {cycle_length.min_days} must be positive")
    if cycle_length.min_days > cycle_length.max_days:
        errors.append(
            f"cycle_length.min_days ({cycle_length.min_days}) exceeds "
            f"max_days ({cycle_length.max_days})"
        )
    if cycle_length.default_days <= 0:
        errors.append(
            f"cycle_length.default_days = {cycle_length.default_days} must be positive"
        )

    # ── Storage keys ──
    st_raw = raw.get("storage") or {}
    if not isinstance(st_raw, dict):
        errors.append("'storage' must be a mapping")
        st_raw = {}
    defaults = StorageKeysConfig()
    keys: dict[str, str] = {}
    for name in ("cycles_key", "annotations_key", "default_length_key"):
        value = st_raw.get(name, getattr(defaults, name))
        if not isinstance(value, str) or not value.strip():
            errors.append(f"storage.{name} must be a non-empty string, got {value!r}")
            value = getattr(defaults, name)
        keys[name] = value
    storage = StorageKeysConfig(**keys)
    if len(set(keys.values())) != len(keys):
        errors.append("storage keys must be distinct")

    # ── Seed ──
    seed_raw = raw.get("seed") or {}
    offsets_raw = seed_raw.get("offsets_days", SeedConfig().offsets_days)
    offsets: list[int] = []
    if not isinstance(offsets_raw, list):
        errors.append("seed.offsets_days must be a list of integers")
    else:
        for value in offsets_raw:
            if isinstance(value, int) and not isinstance(value, bool):
                offsets.append(value)
            else:
                errors.append(f"seed.offsets_days contains a non-integer: {value!r}")
    if any(o >= 0 for o in offsets):
        logger.warning("seed.offsets_days contains non-negative offsets: %s", offsets)

    if errors:
        raise ConfigValidationError(
            f"tracker_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return TrackerConfig(
        version=version,
        cycle_length=cycle_length,
        storage=storage,
        seed=SeedConfig(offsets_days=offsets),
        _raw=raw,
    )


def load_tracker_config(path: Path | None = None) -> TrackerConfig:
    """Load and validate the tracker config from disk.

    Args:
        path: Override path to YAML. Uses the bundled tracker_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded tracker config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: TrackerConfig | None = None
_config_lock = threading.Lock()


def get_tracker_config() -> TrackerConfig:
    """Return the global TrackerConfig singleton, loading it on first call."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_tracker_config()
    return _config


def reload_tracker_config(path: Path | None = None) -> TrackerConfig:
    """Reload the config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_tracker_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded tracker config: %s → %s", old_version, new_config.version)
    return new_config
