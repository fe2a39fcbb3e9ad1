"""Run orchestration: select files, normalize rows, write batches, checkpoint."""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator

from covid_ingest.common.config_loader import Settings
from covid_ingest.common.errors import FilesystemError, ParseError
from covid_ingest.common.logging import log_event
from covid_ingest.common.models import RunContext, RunResult, SourceRow, Watermark
from covid_ingest.common.time_utils import format_runtime, from_unix, utc_now
from covid_ingest.pipeline.batch_writer import BatchWriter, Sink
from covid_ingest.pipeline.checkpoint import commit_checkpoint, read_watermark
from covid_ingest.pipeline.file_selector import select_files
from covid_ingest.pipeline.geo_resolver import GeoResolver, Geocoder
from covid_ingest.pipeline.normalize import RecordNormalizer, parse_raw_record
from covid_ingest.pipeline.spatial import SpatialIndexer


def iter_rows(path: Path) -> Iterator[tuple[int, dict[str, str | None]]]:
    """Yield (row number, row) pairs; row numbers count data rows from 1."""
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            for row_number, row in enumerate(reader, start=1):
                yield row_number, row
    except OSError as exc:
        raise FilesystemError(f"Cannot read data file {path}: {exc}") from exc
    except (csv.Error, UnicodeDecodeError) as exc:
        raise ParseError(f"Malformed CSV in {path}: {exc}") from exc


def _watermark_details(watermark: Watermark) -> dict[str, str | None]:
    if watermark.strategy == "timestamp":
        return {"strategy": watermark.strategy, "last_run": from_unix(watermark.last_run or 0).isoformat()}
    return {"strategy": watermark.strategy, "last_file": watermark.last_file}


def process_file(path: Path, normalizer: RecordNormalizer, writer: BatchWriter, ctx: RunContext) -> int:
    log_event(ctx.logger, f"processing {path.name}", run_id=ctx.run_id, stage="ingest", file=str(path), event="FILE_START")
    rows = 0
    for row_number, row in iter_rows(path):
        record = parse_raw_record(row, SourceRow(file=str(path), row_number=row_number))
        writer.add(normalizer.normalize(record, ctx))
        rows += 1
    ctx.stats.files += 1
    ctx.stats.rows += rows
    log_event(
        ctx.logger,
        f"finished {path.name}",
        run_id=ctx.run_id,
        stage="ingest",
        file=str(path),
        event="FILE_END",
        status="ok",
        rows_in=rows,
    )
    return rows


def run_pipeline(
    settings: Settings,
    ctx: RunContext,
    sink: Sink,
    geocoder: Geocoder | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> RunResult:
    watermark = read_watermark(settings.checkpoint_path, settings.resume_strategy)
    files = select_files(settings.data_dir, settings.suffix, watermark, ctx)
    log_event(
        ctx.logger,
        f"scanned {settings.data_dir}: {len(files)} file(s) to process",
        run_id=ctx.run_id,
        stage="select",
        event="SCAN",
        status="ok",
        rows_in=len(files),
        details=_watermark_details(watermark),
    )
    if not files:
        log_event(ctx.logger, "no new data files to process", run_id=ctx.run_id, stage="select", event="NOTHING_TO_DO", status="ok")
        return RunResult(status="nothing_to_do", files=[], stats=ctx.stats, watermark=watermark)

    normalizer = RecordNormalizer(GeoResolver(geocoder), SpatialIndexer(settings.spatial_level))
    writer = BatchWriter(sink, settings.measurement, ctx, batch_size=settings.batch_size)
    for path in files:
        process_file(path, normalizer, writer, ctx)
    writer.close()

    new_watermark = commit_checkpoint(settings.checkpoint_path, settings.resume_strategy, files, ctx, clock=clock)
    elapsed = ctx.elapsed_seconds()
    log_event(
        ctx.logger,
        f"Total Runtime {format_runtime(elapsed)}",
        run_id=ctx.run_id,
        stage="run",
        event="RUN_END",
        status="ok",
        duration_ms=int(elapsed * 1000),
        rows_in=ctx.stats.rows,
        rows_out=ctx.stats.rows_written,
        details=ctx.stats.as_dict(),
    )
    return RunResult(status="success", files=files, stats=ctx.stats, watermark=new_watermark)
