"""Resumption watermark persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from dotenv import dotenv_values

from covid_ingest.common.constants import CHECKPOINT_KEYS, DEFAULT_LAST_RUN, RESUME_STRATEGIES
from covid_ingest.common.errors import ConfigError, FilesystemError
from covid_ingest.common.fs import write_text_atomic
from covid_ingest.common.logging import log_event
from covid_ingest.common.models import RunContext, Watermark
from covid_ingest.common.time_utils import utc_now


def default_last_run() -> int:
    parsed = datetime.fromisoformat(DEFAULT_LAST_RUN).replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _check_strategy(strategy: str) -> None:
    if strategy not in RESUME_STRATEGIES:
        raise ConfigError(f"Unknown resume strategy: {strategy}")


def read_watermark(path: Path, strategy: str) -> Watermark:
    _check_strategy(strategy)
    values: dict[str, str | None] = {}
    if path.exists():
        try:
            values = dict(dotenv_values(path, interpolate=False))
        except OSError as exc:
            raise FilesystemError(f"Cannot read checkpoint file {path}: {exc}") from exc

    value = values.get(CHECKPOINT_KEYS[strategy]) or ""
    if strategy == "filename":
        return Watermark(strategy=strategy, last_file=value or None)

    raw = value.strip()
    if not raw:
        return Watermark(strategy=strategy, last_run=default_last_run())
    try:
        last_run = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Checkpoint LAST_RUN is not unix seconds: {raw!r}") from exc
    return Watermark(strategy=strategy, last_run=last_run)


def next_watermark(strategy: str, processed: list[Path], now: datetime) -> Watermark:
    _check_strategy(strategy)
    if strategy == "timestamp":
        return Watermark(strategy=strategy, last_run=int(now.timestamp()))
    if not processed:
        raise ValueError("filename watermark needs at least one processed file")
    return Watermark(strategy=strategy, last_file=str(processed[-1]))


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def render_watermark(watermark: Watermark) -> str:
    key = CHECKPOINT_KEYS[watermark.strategy]
    if watermark.strategy == "timestamp":
        return f"{key}={watermark.last_run}\n"
    # single quotes keep " #" and "$" literal when read back
    return f"{key}={_quote(watermark.last_file or '')}\n"


def write_watermark(path: Path, watermark: Watermark) -> None:
    try:
        write_text_atomic(path, render_watermark(watermark))
    except OSError as exc:
        raise FilesystemError(f"Cannot write checkpoint file {path}: {exc}") from exc


def commit_checkpoint(
    path: Path,
    strategy: str,
    processed: list[Path],
    ctx: RunContext,
    clock: Callable[[], datetime] = utc_now,
) -> Watermark:
    """Persist the new watermark; only called once the whole run has succeeded."""
    watermark = next_watermark(strategy, processed, clock())
    write_watermark(path, watermark)
    log_event(
        ctx.logger,
        f"checkpoint written to {path}",
        run_id=ctx.run_id,
        stage="checkpoint",
        event="CHECKPOINT_WRITTEN",
        status="ok",
        details={"watermark": render_watermark(watermark).strip()},
    )
    return watermark
