from __future__ import annotations

from pathlib import Path

import pytest

from covid_ingest import cli
from covid_ingest.common.constants import EXIT_CONFIG_ERROR, EXIT_HARD_FAIL, EXIT_SUCCESS
from covid_ingest.common.errors import WriteError

ENV_NAMES = ("DATA_DIR", "INFLUX_URL", "INFLUX_TOKEN", "INFLUX_ORG", "INFLUX_BUCKET", "INFLUX_MEASURE", "MAPS_TOKEN")


class ContextSink:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.rows = []
        self.closed = False

    def write(self, measurement, rows):
        if self.fail:
            raise WriteError("down")
        self.rows.extend(rows)

    def __enter__(self):
        return self

    def __exit__(self, *_exc):
        self.closed = True


@pytest.fixture
def isolated(monkeypatch, tmp_path: Path) -> Path:
    for name in ENV_NAMES:
        # Registered through setenv so values loaded from .env are undone too.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    data_dir = tmp_path / "daily"
    data_dir.mkdir()
    (data_dir / "03-01-2020.csv").write_text(
        "Province/State,Country/Region,Last Update,Confirmed,Deaths,Recovered\n"
        "Hubei,Mainland China,2020-03-01T10:00:00,100,2,10\n"
        ",Italy,3/1/20 10:00,1694,34,83\n",
        encoding="utf-8",
    )
    return tmp_path


def _argv(root: Path) -> list[str]:
    return [
        "--dir",
        str(root / "daily"),
        "--url",
        "http://influx.test:8086",
        "--token",
        "t",
        "--organization",
        "o",
        "--bucket",
        "b",
        "--measurement",
        "cases",
        "--checkpoint-file",
        str(root / ".last"),
        "--run-id",
        "run-smoke",
    ]


@pytest.mark.integration
def test_cli_loads_and_checkpoints(monkeypatch, isolated: Path):
    sink = ContextSink()
    monkeypatch.setattr(cli, "build_sink", lambda _settings: sink)

    exit_code = cli.run_command(cli.parse_args(_argv(isolated)))

    assert exit_code == EXIT_SUCCESS
    assert [row.tags["country_region"] for row in sink.rows] == ["China", "Italy"]
    assert sink.closed is True
    assert (isolated / ".last").read_text(encoding="utf-8").startswith("LAST_RUN=")


@pytest.mark.integration
def test_cli_reads_settings_from_dotenv(monkeypatch, isolated: Path):
    (isolated / ".env").write_text("INFLUX_MEASURE=from-dotenv\n", encoding="utf-8")
    sink = ContextSink()
    captured = {}

    def fake_build_sink(settings):
        captured["measurement"] = settings.measurement
        return sink

    monkeypatch.setattr(cli, "build_sink", fake_build_sink)
    argv = _argv(isolated)
    del argv[argv.index("--measurement") : argv.index("--measurement") + 2]

    assert cli.run_command(cli.parse_args(argv)) == EXIT_SUCCESS
    assert captured["measurement"] == "from-dotenv"


@pytest.mark.integration
def test_cli_missing_settings_exit_with_usage(isolated: Path, capsys):
    exit_code = cli.run_command(cli.parse_args(["--dir", str(isolated / "daily")]))

    assert exit_code == EXIT_CONFIG_ERROR
    err = capsys.readouterr().err
    assert "Missing required settings" in err
    assert "usage:" in err


@pytest.mark.integration
def test_cli_write_failure_is_fatal_and_skips_checkpoint(monkeypatch, isolated: Path):
    monkeypatch.setattr(cli, "build_sink", lambda _settings: ContextSink(fail=True))

    assert cli.run_command(cli.parse_args(_argv(isolated))) == EXIT_HARD_FAIL
    assert not (isolated / ".last").exists()
