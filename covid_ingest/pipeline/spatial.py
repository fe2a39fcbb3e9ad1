"""S2 cell tokens for resolved coordinates."""

from __future__ import annotations

import math

import s2sphere

from covid_ingest.common.constants import DEFAULT_SPATIAL_LEVEL

# Leaf-cell token for (0, 0); it looks like a real cell but only means "no location".
DEGENERATE_ORIGIN_TOKEN = "1000000000000001"


def _is_valid_pair(lat: float, lon: float) -> bool:
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


class SpatialIndexer:
    def __init__(self, level: int = DEFAULT_SPATIAL_LEVEL) -> None:
        if not 0 <= level <= s2sphere.CellId.MAX_LEVEL:
            raise ValueError(f"S2 level out of range: {level}")
        self.level = level
        self.origin_token = self._raw_token(0.0, 0.0)

    def _raw_token(self, lat: float, lon: float) -> str:
        cell_id = s2sphere.CellId.from_lat_lng(s2sphere.LatLng.from_degrees(lat, lon))
        if self.level < s2sphere.CellId.MAX_LEVEL:
            cell_id = cell_id.parent(self.level)
        if not cell_id.is_valid():
            return ""
        return cell_id.to_token()

    def token_for(self, lat: float, lon: float) -> str:
        if lat == 0.0 and lon == 0.0:
            return ""
        if not _is_valid_pair(lat, lon):
            return ""
        token = self._raw_token(lat, lon)
        if token in (DEGENERATE_ORIGIN_TOKEN, self.origin_token):
            return ""
        return token
