"""Data models used across the pipeline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Union

from covid_ingest.common.time_utils import utc_now

UNRESOLVED_LAT = 0.0
UNRESOLVED_LON = 0.0


@dataclass(frozen=True)
class SourceRow:
    """Where a record came from; used for diagnostics only."""

    file: str
    row_number: int


@dataclass(frozen=True)
class LegacyRecord:
    province: str
    country: str
    last_update: str
    confirmed: str
    deaths: str
    recovered: str
    latitude: str
    longitude: str
    source: SourceRow


@dataclass(frozen=True)
class CodedRecord:
    fips: str
    admin2: str
    province: str
    country: str
    last_update: str
    confirmed: str
    deaths: str
    recovered: str
    latitude: str
    longitude: str
    combined_key: str
    source: SourceRow


RawRecord = Union[LegacyRecord, CodedRecord]


@dataclass(frozen=True)
class ParsedTimestamp:
    value: datetime
    rendered: str
    format_index: int


@dataclass(frozen=True)
class NormalizedObservation:
    country: str
    province: str
    confirmed: int
    deaths: int
    recovered: int
    timestamp: ParsedTimestamp
    source: SourceRow
    lat: float = UNRESOLVED_LAT
    lon: float = UNRESOLVED_LON
    cell_token: str = ""
    fips: str | None = None
    combined_key: str | None = None

    @property
    def is_coded(self) -> bool:
        return self.fips is not None

    @property
    def has_location(self) -> bool:
        return not (self.lat == UNRESOLVED_LAT and self.lon == UNRESOLVED_LON)


@dataclass(frozen=True)
class Watermark:
    """Resumption marker; exactly one of the two fields is meaningful per strategy."""

    strategy: str
    last_run: int | None = None
    last_file: str | None = None


@dataclass
class RunStats:
    files: int = 0
    rows: int = 0
    flushes: int = 0
    rows_written: int = 0
    geocode_attempts: int = 0
    geocode_failures: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "files": self.files,
            "rows": self.rows,
            "flushes": self.flushes,
            "rows_written": self.rows_written,
            "geocode_attempts": self.geocode_attempts,
            "geocode_failures": self.geocode_failures,
        }


@dataclass
class RunContext:
    run_id: str
    logger: logging.Logger
    started_at: datetime = field(default_factory=utc_now)
    started_monotonic: float = field(default_factory=time.monotonic)
    stats: RunStats = field(default_factory=RunStats)

    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.started_monotonic


@dataclass(frozen=True)
class RunResult:
    status: str
    files: list[Path]
    stats: RunStats
    watermark: Watermark | None = None
