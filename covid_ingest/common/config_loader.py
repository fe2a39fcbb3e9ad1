"""Settings resolution from CLI flags, environment and an optional YAML file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from dotenv import load_dotenv

from covid_ingest.common.constants import (
    BATCH_SIZE,
    DEFAULT_CHECKPOINT_PATH,
    DEFAULT_GEOCODE_RATE,
    DEFAULT_SPATIAL_LEVEL,
    DEFAULT_SUFFIX,
    GOOGLE_GEOCODE_ENDPOINT,
)
from covid_ingest.common.errors import ConfigError
from covid_ingest.common.fs import read_yaml
from covid_ingest.common.schema import validate_settings_file

# setting name -> (cli attribute, environment variable, yaml section, yaml key)
SETTING_SOURCES = {
    "data_dir": ("dir", "DATA_DIR", "data", "dir"),
    "influx_url": ("url", "INFLUX_URL", "influx", "url"),
    "influx_token": ("token", "INFLUX_TOKEN", "influx", "token"),
    "influx_org": ("organization", "INFLUX_ORG", "influx", "organization"),
    "influx_bucket": ("bucket", "INFLUX_BUCKET", "influx", "bucket"),
    "measurement": ("measurement", "INFLUX_MEASURE", "influx", "measurement"),
    "maps_token": ("gtoken", "MAPS_TOKEN", "geocode", "token"),
}
REQUIRED_SETTINGS = {
    "data_dir": "Data directory (--dir / DATA_DIR)",
    "influx_url": "Database URL (--url / INFLUX_URL)",
    "influx_token": "Database token (--token / INFLUX_TOKEN)",
    "influx_org": "Organization (--organization / INFLUX_ORG)",
    "influx_bucket": "Bucket (--bucket / INFLUX_BUCKET)",
    "measurement": "Measurement (--measurement / INFLUX_MEASURE)",
}


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    influx_url: str
    influx_token: str
    influx_org: str
    influx_bucket: str
    measurement: str
    maps_token: str | None = None
    suffix: str = DEFAULT_SUFFIX
    checkpoint_path: Path = Path(DEFAULT_CHECKPOINT_PATH)
    resume_strategy: str = "timestamp"
    batch_size: int = BATCH_SIZE
    spatial_level: int = DEFAULT_SPATIAL_LEVEL
    geocode_endpoint: str = GOOGLE_GEOCODE_ENDPOINT
    geocode_rate_per_sec: float = DEFAULT_GEOCODE_RATE
    geocode_language: str = "en"
    log_level: str = "INFO"
    log_dir: Path | None = None

    @property
    def geocoding_enabled(self) -> bool:
        return bool(self.maps_token)

    def describe(self) -> dict[str, Any]:
        """Effective settings without credentials, for the run log."""
        return {
            "data_dir": str(self.data_dir),
            "influx_url": self.influx_url,
            "organization": self.influx_org,
            "bucket": self.influx_bucket,
            "measurement": self.measurement,
            "geocoding": "google-maps" if self.geocoding_enabled else "disabled",
            "resume_strategy": self.resume_strategy,
            "checkpoint_path": str(self.checkpoint_path),
            "batch_size": self.batch_size,
        }


def load_env_file(path: Path = Path(".env")) -> None:
    if path.exists():
        load_dotenv(path, override=False)


def _load_settings_file(path: Path | None) -> dict:
    if path is None:
        return {}
    if not path.exists():
        raise ConfigError(f"Settings file not found: {path}")
    return validate_settings_file(read_yaml(path))


def _first_set(*values: Any) -> Any:
    for value in values:
        if value not in (None, ""):
            return value
    return None


def resolve_settings(
    cli_values: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
    settings_file: Path | None = None,
) -> Settings:
    environ = os.environ if environ is None else environ
    file_cfg = _load_settings_file(settings_file)

    resolved: dict[str, Any] = {}
    for name, (flag, env_name, section, key) in SETTING_SOURCES.items():
        resolved[name] = _first_set(
            cli_values.get(flag),
            environ.get(env_name),
            file_cfg.get(section, {}).get(key),
        )

    missing = [label for name, label in REQUIRED_SETTINGS.items() if not resolved[name]]
    if missing:
        raise ConfigError("Missing required settings: " + "; ".join(missing))

    data_cfg = file_cfg.get("data", {})
    geocode_cfg = file_cfg.get("geocode", {})
    checkpoint_cfg = file_cfg.get("checkpoint", {})
    logging_cfg = file_cfg.get("logging", {})

    log_dir = _first_set(cli_values.get("log_dir"), logging_cfg.get("dir"))
    batch_size = _first_set(cli_values.get("batch_size"), file_cfg.get("batch_size"), BATCH_SIZE)
    if batch_size < 1:
        raise ConfigError("batch size must be a positive integer")

    return Settings(
        data_dir=Path(resolved["data_dir"]),
        influx_url=resolved["influx_url"],
        influx_token=resolved["influx_token"],
        influx_org=resolved["influx_org"],
        influx_bucket=resolved["influx_bucket"],
        measurement=resolved["measurement"],
        maps_token=resolved["maps_token"],
        suffix=_first_set(cli_values.get("suffix"), data_cfg.get("suffix"), DEFAULT_SUFFIX),
        checkpoint_path=Path(
            _first_set(cli_values.get("checkpoint_file"), checkpoint_cfg.get("path"), DEFAULT_CHECKPOINT_PATH)
        ),
        resume_strategy=_first_set(cli_values.get("resume_by"), checkpoint_cfg.get("strategy"), "timestamp"),
        batch_size=int(batch_size),
        spatial_level=int(file_cfg.get("spatial_level", DEFAULT_SPATIAL_LEVEL)),
        geocode_endpoint=geocode_cfg.get("endpoint", GOOGLE_GEOCODE_ENDPOINT),
        geocode_rate_per_sec=float(geocode_cfg.get("rate_per_sec", DEFAULT_GEOCODE_RATE)),
        geocode_language=geocode_cfg.get("language", "en"),
        log_level=_first_set(cli_values.get("log_level"), logging_cfg.get("level"), "INFO"),
        log_dir=Path(log_dir) if log_dir else None,
    )
