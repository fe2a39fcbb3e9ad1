"""Candidate file listing filtered against the resumption watermark."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from covid_ingest.common.constants import FILENAME_DATE_FORMAT
from covid_ingest.common.errors import ConfigError, FilesystemError
from covid_ingest.common.fs import DirEntry, list_entries
from covid_ingest.common.logging import log_event
from covid_ingest.common.models import RunContext, Watermark

Lister = Callable[[Path], list[DirEntry]]


def filename_date(name: str, suffix: str) -> datetime:
    """Daily reports are named MM-DD-YYYY<suffix>; the date is taken as UTC midnight."""
    stem = name[: -len(suffix)] if suffix and name.endswith(suffix) else name
    try:
        parsed = datetime.strptime(stem, FILENAME_DATE_FORMAT)
    except ValueError as exc:
        raise FilesystemError(f"File name does not encode a MM-DD-YYYY date: {name}") from exc
    return parsed.replace(tzinfo=timezone.utc)


def candidate_entries(directory: Path, suffix: str, lister: Lister = list_entries) -> list[DirEntry]:
    entries = [entry for entry in lister(directory) if not entry.is_dir and entry.name.endswith(suffix)]
    return sorted(entries, key=lambda entry: (entry.mtime, entry.name))


def _select_by_timestamp(entries: list[DirEntry], suffix: str, last_run: int) -> list[DirEntry]:
    selected = []
    for entry in entries:
        named_date = filename_date(entry.name, suffix)
        if int(entry.mtime) > last_run and int(named_date.timestamp()) > last_run:
            selected.append(entry)
    return selected


def _select_by_filename(entries: list[DirEntry], last_file: str | None, ctx: RunContext | None) -> list[DirEntry]:
    if not last_file:
        return entries
    marker = Path(last_file).name
    for index, entry in enumerate(entries):
        if entry.name == marker:
            return entries[index + 1 :]
    if ctx is not None:
        log_event(
            ctx.logger,
            f"last processed file {marker} is no longer listed, processing every file",
            level="warning",
            run_id=ctx.run_id,
            stage="select",
            event="CHECKPOINT_FILE_MISSING",
            status="warning",
        )
    return entries


def select_files(
    directory: Path,
    suffix: str,
    watermark: Watermark,
    ctx: RunContext | None = None,
    lister: Lister = list_entries,
) -> list[Path]:
    entries = candidate_entries(directory, suffix, lister)
    if watermark.strategy == "timestamp":
        selected = _select_by_timestamp(entries, suffix, watermark.last_run or 0)
    elif watermark.strategy == "filename":
        selected = _select_by_filename(entries, watermark.last_file, ctx)
    else:
        raise ConfigError(f"Unknown resume strategy: {watermark.strategy}")
    return [entry.path for entry in selected]
