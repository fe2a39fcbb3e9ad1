"""Google Maps Geocoding API provider."""

from __future__ import annotations

from typing import Any

from covid_ingest.common.constants import GOOGLE_GEOCODE_ENDPOINT
from covid_ingest.common.errors import GeocodeError
from covid_ingest.common.http import HttpClient, HttpRequestError
from covid_ingest.common.places import GEOCODE_COUNTRY_CODE_OVERRIDES, REQUEST_PROVINCE_DROP_TERMS, contains_any


def build_request_params(country: str, province: str, admin_area: str = "", language: str = "en") -> dict[str, str]:
    components: list[tuple[str, str]] = []
    params: dict[str, str] = {"language": language}

    country_code = GEOCODE_COUNTRY_CODE_OVERRIDES.get(country)
    if country_code is not None:
        components.append(("country", country_code))
        params["address"] = country_code
    elif country:
        components.append(("country", country))

    if province and not contains_any(province, REQUEST_PROVINCE_DROP_TERMS):
        components.append(("administrative_area", province))
    if admin_area:
        components.append(("administrative_area", admin_area))

    params["components"] = "|".join(f"{name}:{value}" for name, value in components)
    return params


def _first_location(payload: dict[str, Any]) -> tuple[float, float]:
    results = payload.get("results") or []
    try:
        location = results[0]["geometry"]["location"]
        return float(location["lat"]), float(location["lng"])
    except (IndexError, KeyError, TypeError, ValueError) as exc:
        raise GeocodeError("malformed geocoding result") from exc


class GoogleMapsGeocoder:
    def __init__(
        self,
        api_key: str,
        client: HttpClient,
        *,
        endpoint: str = GOOGLE_GEOCODE_ENDPOINT,
        language: str = "en",
    ) -> None:
        self.api_key = api_key
        self.client = client
        self.endpoint = endpoint
        self.language = language

    def geocode(self, country: str, province: str, admin_area: str = "") -> tuple[float, float]:
        params = build_request_params(country, province, admin_area, language=self.language)
        params["key"] = self.api_key
        try:
            payload = self.client.get_json(self.endpoint, params=params)
        except HttpRequestError as exc:
            raise GeocodeError(f"geocoding request failed: {exc}") from exc

        status = payload.get("status", "")
        if status == "ZERO_RESULTS" or (status == "OK" and not payload.get("results")):
            raise GeocodeError("no results")
        if status != "OK":
            raise GeocodeError(f"geocoding status {status}: {payload.get('error_message', '')}".rstrip(": "))
        return _first_location(payload)
