"""Fixed-size batching of observations into sink rows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from covid_ingest.common.constants import BATCH_SIZE
from covid_ingest.common.logging import log_event
from covid_ingest.common.models import NormalizedObservation, RunContext


@dataclass(frozen=True)
class SinkRow:
    fields: dict[str, int | float]
    tags: dict[str, str]
    timestamp: datetime


class Sink(Protocol):
    def write(self, measurement: str, rows: list[SinkRow]) -> None:
        ...


def to_sink_row(observation: NormalizedObservation) -> SinkRow:
    fields: dict[str, int | float] = {
        "confirmed": observation.confirmed,
        "deaths": observation.deaths,
        "recovered": observation.recovered,
        "lat": observation.lat,
        "lon": observation.lon,
    }
    tags = {
        "state_province": observation.province,
        "country_region": observation.country,
        "s2_cell_id": observation.cell_token,
        "last_update": observation.timestamp.rendered,
    }
    if observation.is_coded:
        tags["fips"] = observation.fips or ""
        tags["combined_tag"] = observation.combined_key or ""
    return SinkRow(fields=fields, tags=tags, timestamp=observation.timestamp.value)


class BatchWriter:
    """Buffers rows and hands each full batch to the sink in a single call.

    A failed write propagates; rows from earlier flushes stay in the sink.
    """

    def __init__(self, sink: Sink, measurement: str, ctx: RunContext, batch_size: int = BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.sink = sink
        self.measurement = measurement
        self.ctx = ctx
        self.batch_size = batch_size
        self.buffer: list[SinkRow] = []

    def add(self, observation: NormalizedObservation) -> None:
        self.buffer.append(to_sink_row(observation))
        if len(self.buffer) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        if not self.buffer:
            return
        batch = self.buffer
        self.sink.write(self.measurement, batch)
        self.buffer = []
        self.ctx.stats.flushes += 1
        self.ctx.stats.rows_written += len(batch)
        log_event(
            self.ctx.logger,
            "batch written",
            run_id=self.ctx.run_id,
            stage="write",
            event="BATCH_FLUSH",
            status="ok",
            rows_out=len(batch),
        )

    def close(self) -> None:
        self.flush()
