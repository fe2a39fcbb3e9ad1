"""Record shape discrimination and canonicalization of place names and dates."""

from __future__ import annotations

from typing import Mapping

from covid_ingest.common.errors import ParseError
from covid_ingest.common.models import CodedRecord, LegacyRecord, NormalizedObservation, RawRecord, RunContext, SourceRow
from covid_ingest.common.places import canonicalize_place
from covid_ingest.common.timestamps import parse_last_update
from covid_ingest.pipeline.coercion import coerce_count
from covid_ingest.pipeline.geo_resolver import GeoResolver, LocationQuery
from covid_ingest.pipeline.spatial import SpatialIndexer

# Legacy fields fall back to the coded header names so that coded-schema rows
# without a FIPS code still read their place and date columns.
LEGACY_COLUMNS = {
    "province": ("Province/State", "Province_State"),
    "country": ("Country/Region", "Country_Region"),
    "last_update": ("Last Update", "Last_Update"),
    "confirmed": ("Confirmed",),
    "deaths": ("Deaths",),
    "recovered": ("Recovered",),
    "latitude": ("Latitude", "Lat"),
    "longitude": ("Longitude", "Long_"),
}
CODED_COLUMNS = {
    "fips": ("FIPS",),
    "admin2": ("Admin2",),
    "province": ("Province_State",),
    "country": ("Country_Region",),
    "last_update": ("Last_Update",),
    "confirmed": ("Confirmed",),
    "deaths": ("Deaths",),
    "recovered": ("Recovered",),
    "latitude": ("Lat",),
    "longitude": ("Long_",),
    "combined_key": ("Combined_Key",),
}
REQUIRED_FIELDS = ("country", "last_update")


def _has_any(row: Mapping[str, str | None], candidates: tuple[str, ...]) -> bool:
    return any(name in row for name in candidates)


def _lookup(row: Mapping[str, str | None], candidates: tuple[str, ...]) -> str:
    for name in candidates:
        value = row.get(name)
        if value not in (None, ""):
            return value
    return ""


def _extract(row: Mapping[str, str | None], columns: dict[str, tuple[str, ...]], source: SourceRow) -> dict[str, str]:
    for field_name in REQUIRED_FIELDS:
        if not _has_any(row, columns[field_name]):
            raise ParseError(
                f"unrecognized record shape, no {field_name} column",
                source_file=source.file,
                row_number=source.row_number,
            )
    return {field_name: _lookup(row, candidates) for field_name, candidates in columns.items()}


def parse_raw_record(row: Mapping[str, str | None], source: SourceRow) -> RawRecord:
    """A non-empty FIPS code selects the coded shape, anything else is legacy."""
    if (row.get("FIPS") or "").strip():
        return CodedRecord(source=source, **_extract(row, CODED_COLUMNS, source))
    return LegacyRecord(source=source, **_extract(row, LEGACY_COLUMNS, source))


class RecordNormalizer:
    def __init__(self, resolver: GeoResolver, indexer: SpatialIndexer) -> None:
        self.resolver = resolver
        self.indexer = indexer

    def normalize(self, record: RawRecord, ctx: RunContext) -> NormalizedObservation:
        if isinstance(record, CodedRecord):
            admin_area = record.admin2.strip()
            fips = record.fips.strip()
            combined_key = record.combined_key
        elif isinstance(record, LegacyRecord):
            admin_area = ""
            fips = None
            combined_key = None
        else:
            raise ParseError(f"unrecognized record shape: {type(record).__name__}")

        source = record.source
        try:
            timestamp = parse_last_update(record.last_update)
            confirmed = coerce_count(record.confirmed, "confirmed")
            deaths = coerce_count(record.deaths, "deaths")
            recovered = coerce_count(record.recovered, "recovered")
        except ParseError as exc:
            raise ParseError(str(exc), source_file=source.file, row_number=source.row_number) from exc

        country, province = canonicalize_place(record.country, record.province)
        coordinate = self.resolver.resolve(
            LocationQuery(
                country=country,
                province=province,
                admin_area=admin_area,
                latitude=record.latitude,
                longitude=record.longitude,
                source=source,
            ),
            ctx,
        )

        return NormalizedObservation(
            country=country,
            province=province,
            confirmed=confirmed,
            deaths=deaths,
            recovered=recovered,
            timestamp=timestamp,
            source=source,
            lat=coordinate.lat,
            lon=coordinate.lon,
            cell_token=self.indexer.token_for(coordinate.lat, coordinate.lon),
            fips=fips,
            combined_key=combined_key,
        )
