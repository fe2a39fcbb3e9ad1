from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from covid_ingest.common.errors import ConfigError
from covid_ingest.common.logging import build_logger
from covid_ingest.common.models import RunContext, Watermark
from covid_ingest.pipeline.checkpoint import commit_checkpoint, default_last_run, read_watermark, write_watermark


def _ctx() -> RunContext:
    return RunContext(run_id="run-ckpt", logger=build_logger("run-ckpt"))


def test_missing_checkpoint_starts_before_first_report(tmp_path: Path):
    watermark = read_watermark(tmp_path / ".last", "timestamp")
    assert watermark.last_run == default_last_run() == 1577836800


def test_missing_checkpoint_has_no_last_file(tmp_path: Path):
    assert read_watermark(tmp_path / ".last", "filename") == Watermark("filename", last_file=None)


def test_timestamp_checkpoint_round_trip(tmp_path: Path):
    path = tmp_path / ".last"
    write_watermark(path, Watermark("timestamp", last_run=1590000000))

    assert path.read_text(encoding="utf-8") == "LAST_RUN=1590000000\n"
    assert read_watermark(path, "timestamp").last_run == 1590000000


def test_filename_checkpoint_is_read_by_key(tmp_path: Path):
    path = tmp_path / ".last"
    path.write_text("LAST_FILE=/data/daily/03-05-2020.csv\n", encoding="utf-8")

    assert read_watermark(path, "filename").last_file == "/data/daily/03-05-2020.csv"


@pytest.mark.parametrize(
    "name",
    ["reports #2", "$HOME data", "'quoted' dir", "back\\slash", "${DATA_DIR}"],
)
def test_filename_checkpoint_keeps_special_characters(tmp_path: Path, name: str):
    path = tmp_path / ".last"
    marker = str(tmp_path / name / "03-01-2020.csv")
    write_watermark(path, Watermark("filename", last_file=marker))

    assert read_watermark(path, "filename").last_file == marker


def test_non_numeric_last_run_is_a_config_error(tmp_path: Path):
    path = tmp_path / ".last"
    path.write_text("LAST_RUN=yesterday\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        read_watermark(path, "timestamp")


def test_commit_overwrites_prior_value_with_clock_time(tmp_path: Path):
    path = tmp_path / ".last"
    path.write_text("LAST_RUN=1\n", encoding="utf-8")
    now = datetime(2020, 6, 1, tzinfo=timezone.utc)

    watermark = commit_checkpoint(path, "timestamp", [tmp_path / "a.csv"], _ctx(), clock=lambda: now)

    assert watermark.last_run == int(now.timestamp())
    assert path.read_text(encoding="utf-8") == f"LAST_RUN={int(now.timestamp())}\n"


def test_commit_records_last_processed_file(tmp_path: Path):
    path = tmp_path / ".last"
    files = [tmp_path / "03-01-2020.csv", tmp_path / "03-02-2020.csv"]

    commit_checkpoint(path, "filename", files, _ctx())

    assert path.read_text(encoding="utf-8") == f"LAST_FILE='{files[-1]}'\n"
    assert not (tmp_path / ".last.tmp").exists()
