"""InfluxDB 2 sink for batched observation rows."""

from __future__ import annotations

from types import TracebackType

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS
from influxdb_client.rest import ApiException
from urllib3.exceptions import HTTPError

from covid_ingest.common.errors import WriteError
from covid_ingest.pipeline.batch_writer import SinkRow


def to_point(measurement: str, row: SinkRow) -> Point:
    point = Point(measurement)
    for key, value in sorted(row.tags.items()):
        # Line protocol has no empty tag values.
        if value:
            point.tag(key, value)
    for key, value in row.fields.items():
        point.field(key, value)
    return point.time(row.timestamp, WritePrecision.S)


class InfluxSink:
    def __init__(self, url: str, token: str, org: str, bucket: str, client: InfluxDBClient | None = None) -> None:
        self.org = org
        self.bucket = bucket
        self.client = client or InfluxDBClient(url=url, token=token, org=org)
        self.write_api = self.client.write_api(write_options=SYNCHRONOUS)

    def write(self, measurement: str, rows: list[SinkRow]) -> None:
        points = [to_point(measurement, row) for row in rows]
        try:
            self.write_api.write(bucket=self.bucket, org=self.org, record=points, write_precision=WritePrecision.S)
        except (ApiException, HTTPError, OSError) as exc:
            raise WriteError(f"InfluxDB rejected a batch of {len(points)} rows: {exc}") from exc

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "InfluxSink":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
