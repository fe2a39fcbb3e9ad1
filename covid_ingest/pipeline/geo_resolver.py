"""Coordinate resolution: explicit values, then geocoding, then the unresolved sentinel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from covid_ingest.common.errors import GeocodeError, ParseError
from covid_ingest.common.logging import log_event
from covid_ingest.common.models import UNRESOLVED_LAT, UNRESOLVED_LON, RunContext, SourceRow
from covid_ingest.common.places import is_excluded_from_geocoding
from covid_ingest.pipeline.coercion import coerce_coordinate


class Geocoder(Protocol):
    def geocode(self, country: str, province: str, admin_area: str = "") -> tuple[float, float]:
        ...


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float
    method: str


UNRESOLVED = Coordinate(UNRESOLVED_LAT, UNRESOLVED_LON, "unresolved")


@dataclass(frozen=True)
class LocationQuery:
    country: str
    province: str
    admin_area: str
    latitude: str
    longitude: str
    source: SourceRow


class GeoResolver:
    def __init__(self, geocoder: Geocoder | None = None) -> None:
        self.geocoder = geocoder
        self._cache: dict[tuple[str, str, str], Coordinate] = {}

    def _explicit(self, query: LocationQuery) -> Coordinate | None:
        try:
            lat = coerce_coordinate(query.latitude, "latitude")
            lon = coerce_coordinate(query.longitude, "longitude")
        except ParseError as exc:
            raise ParseError(str(exc), source_file=query.source.file, row_number=query.source.row_number) from exc
        if lat is None and lon is None:
            return None
        if lat is None or lon is None:
            raise ParseError(
                "latitude and longitude must be given together",
                source_file=query.source.file,
                row_number=query.source.row_number,
            )
        return Coordinate(lat, lon, "explicit")

    def _geocode(self, query: LocationQuery, ctx: RunContext) -> Coordinate:
        key = (query.country, query.province, query.admin_area)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        ctx.stats.geocode_attempts += 1
        try:
            lat, lon = self.geocoder.geocode(query.country, query.province, query.admin_area)
            resolved = Coordinate(lat, lon, "geocoded")
        except GeocodeError as exc:
            ctx.stats.geocode_failures += 1
            log_event(
                ctx.logger,
                f"geocoding failed for province={query.province!r} country={query.country!r}: {exc}",
                level="warning",
                run_id=ctx.run_id,
                stage="geocode",
                file=query.source.file,
                event="GEOCODE_FAIL",
                status="warning",
                error_code=exc.error_code,
            )
            resolved = UNRESOLVED
        self._cache[key] = resolved
        return resolved

    def resolve(self, query: LocationQuery, ctx: RunContext) -> Coordinate:
        explicit = self._explicit(query)
        if explicit is not None:
            return explicit
        if self.geocoder is None:
            return UNRESOLVED
        if is_excluded_from_geocoding(query.country, query.province):
            return UNRESOLVED
        return self._geocode(query, ctx)
