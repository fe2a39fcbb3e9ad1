from __future__ import annotations

from pathlib import Path

import pytest

from covid_ingest.common.config_loader import resolve_settings
from covid_ingest.common.errors import ConfigError

FULL_FLAGS = {
    "dir": "/data/daily",
    "url": "http://localhost:8086",
    "token": "flag-token",
    "organization": "org",
    "bucket": "covid",
    "measurement": "cases",
}


def test_flags_only_produce_defaults_for_the_rest():
    settings = resolve_settings(FULL_FLAGS, environ={})

    assert settings.data_dir == Path("/data/daily")
    assert settings.influx_token == "flag-token"
    assert settings.maps_token is None
    assert settings.geocoding_enabled is False
    assert settings.batch_size == 500
    assert settings.resume_strategy == "timestamp"
    assert settings.checkpoint_path == Path("./.last")
    assert settings.suffix == ".csv"


def test_flags_take_precedence_over_environment():
    environ = {"INFLUX_TOKEN": "env-token", "MAPS_TOKEN": "maps-key", "INFLUX_MEASURE": "env-measure"}

    settings = resolve_settings({**FULL_FLAGS, "measurement": None}, environ=environ)

    assert settings.influx_token == "flag-token"
    assert settings.measurement == "env-measure"
    assert settings.maps_token == "maps-key"
    assert settings.geocoding_enabled is True


def test_environment_alone_is_enough():
    environ = {
        "DATA_DIR": "/srv/data",
        "INFLUX_URL": "http://influx:8086",
        "INFLUX_TOKEN": "t",
        "INFLUX_ORG": "o",
        "INFLUX_BUCKET": "b",
        "INFLUX_MEASURE": "m",
    }
    settings = resolve_settings({}, environ=environ)
    assert settings.data_dir == Path("/srv/data")
    assert settings.influx_bucket == "b"


def test_missing_settings_are_all_reported():
    with pytest.raises(ConfigError) as excinfo:
        resolve_settings({"dir": "/data"}, environ={})

    message = str(excinfo.value)
    for name in ("--url", "--token", "--organization", "--bucket", "--measurement"):
        assert name in message
    assert "--dir" not in message


def test_geocoding_token_is_optional():
    assert resolve_settings(FULL_FLAGS, environ={}).maps_token is None


def test_settings_file_fills_gaps_below_environment(tmp_path: Path):
    settings_file = tmp_path / "loader.yml"
    settings_file.write_text(
        """influx:
  url: http://from-file:8086
  measurement: file-measure
geocode:
  rate_per_sec: 2
  language: en
checkpoint:
  strategy: filename
  path: state/.last
batch_size: 250
spatial_level: 12
""",
        encoding="utf-8",
    )
    flags = {**FULL_FLAGS, "url": None, "measurement": None}

    settings = resolve_settings(flags, environ={"INFLUX_MEASURE": "env-measure"}, settings_file=settings_file)

    assert settings.influx_url == "http://from-file:8086"
    assert settings.measurement == "env-measure"
    assert settings.resume_strategy == "filename"
    assert settings.checkpoint_path == Path("state/.last")
    assert settings.batch_size == 250
    assert settings.spatial_level == 12
    assert settings.geocode_rate_per_sec == 2.0


def test_unknown_settings_file_keys_are_rejected(tmp_path: Path):
    settings_file = tmp_path / "loader.yml"
    settings_file.write_text("influx:\n  password: nope\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Unknown keys in influx"):
        resolve_settings(FULL_FLAGS, environ={}, settings_file=settings_file)


def test_invalid_strategy_in_settings_file(tmp_path: Path):
    settings_file = tmp_path / "loader.yml"
    settings_file.write_text("checkpoint:\n  strategy: newest\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        resolve_settings(FULL_FLAGS, environ={}, settings_file=settings_file)


def test_missing_settings_file_is_a_config_error(tmp_path: Path):
    with pytest.raises(ConfigError):
        resolve_settings(FULL_FLAGS, environ={}, settings_file=tmp_path / "absent.yml")


def test_describe_never_includes_credentials():
    described = resolve_settings({**FULL_FLAGS, "gtoken": "maps-secret"}, environ={}).describe()
    assert "flag-token" not in str(described)
    assert "maps-secret" not in str(described)
    assert described["geocoding"] == "google-maps"
