"""Place-name lookup tables for country canonicalization and geocoding."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlaceAlias:
    country: str
    # None keeps the record's province; a string replaces it.
    province: str | None = None


COUNTRY_ALIASES: dict[str, PlaceAlias] = {
    "Mainland China": PlaceAlias("China"),
    "Viet Nam": PlaceAlias("Vietnam"),
    "Korea, South": PlaceAlias("South Korea"),
    "Hong Kong SAR": PlaceAlias("Hong Kong", province=""),
    "Hong Kong": PlaceAlias("Hong Kong", province=""),
    "Macau SAR": PlaceAlias("Macao", province=""),
    "Macau": PlaceAlias("Macao", province=""),
    "Ivory Coast": PlaceAlias("Côte d'Ivoire"),
    "North Ireland": PlaceAlias("UK", province="Northern Ireland"),
}

# Pseudo-locations such as cruise-ship outbreaks.
GEOCODE_EXCLUSION_TERMS = ("diamond", "cruise", "others")

# Terms dropped from the province component of a geocoding request.
REQUEST_PROVINCE_DROP_TERMS = ("diamond", "cruise", "none")

# The geocoder resolves "Georgia" to the US state unless it is given the ISO code.
GEOCODE_COUNTRY_CODE_OVERRIDES: dict[str, str] = {
    "Georgia": "GE",
}


def strip_quotes(value: str) -> str:
    return value.replace('"', "").strip()


def canonicalize_place(country: str, province: str) -> tuple[str, str]:
    country = strip_quotes(country)
    province = strip_quotes(province)
    alias = COUNTRY_ALIASES.get(country)
    if alias is None:
        return country, province
    if alias.province is not None:
        province = alias.province
    return alias.country, province


def contains_any(value: str, terms: tuple[str, ...]) -> bool:
    lowered = value.lower()
    return any(term in lowered for term in terms)


def is_excluded_from_geocoding(country: str, province: str = "") -> bool:
    return contains_any(country, GEOCODE_EXCLUSION_TERMS) or contains_any(province, GEOCODE_EXCLUSION_TERMS)
