"""Minimal strict schema for the optional YAML settings file."""

from __future__ import annotations

from covid_ingest.common.constants import RESUME_STRATEGIES
from covid_ingest.common.errors import ConfigError

SECTION_KEYS = {
    "data": {"dir", "suffix"},
    "influx": {"url", "token", "organization", "bucket", "measurement"},
    "geocode": {"token", "endpoint", "rate_per_sec", "language"},
    "checkpoint": {"path", "strategy"},
    "logging": {"level", "dir"},
}
SCALAR_KEYS = {"batch_size", "spatial_level"}


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str) -> None:
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_int(value, ctx: str, *, maximum: int | None = None) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{ctx} must be a positive integer")
    if maximum is not None and value > maximum:
        raise ConfigError(f"{ctx} must be at most {maximum}")


def validate_settings_file(cfg) -> dict:
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise ConfigError("settings file must contain a mapping")

    _assert_no_unknown_keys(cfg, set(SECTION_KEYS) | SCALAR_KEYS, "settings file")
    for section, known in SECTION_KEYS.items():
        if section not in cfg:
            continue
        if not isinstance(cfg[section], dict):
            raise ConfigError(f"{section} must be a mapping")
        _assert_no_unknown_keys(cfg[section], known, section)

    strategy = cfg.get("checkpoint", {}).get("strategy")
    if strategy is not None and strategy not in RESUME_STRATEGIES:
        raise ConfigError(f"checkpoint.strategy must be one of: {', '.join(RESUME_STRATEGIES)}")

    rate = cfg.get("geocode", {}).get("rate_per_sec")
    if rate is not None and (isinstance(rate, bool) or not isinstance(rate, (int, float)) or rate <= 0):
        raise ConfigError("geocode.rate_per_sec must be a positive number")

    if "batch_size" in cfg:
        _assert_positive_int(cfg["batch_size"], "batch_size")
    if "spatial_level" in cfg:
        _assert_positive_int(cfg["spatial_level"], "spatial_level", maximum=30)

    return cfg
