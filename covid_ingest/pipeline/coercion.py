"""Numeric field coercion with empty-as-zero semantics."""

from __future__ import annotations

import math
import re

from covid_ingest.common.errors import ParseError

_COUNT_RE = re.compile(r"^[0-9]+$")
_COORDINATE_RE = re.compile(r"^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?$")


def coerce_count(raw: str | None, field_name: str) -> int:
    value = (raw or "").strip()
    if not value:
        return 0
    if not _COUNT_RE.match(value):
        raise ParseError(f"{field_name} is not a non-negative integer: {raw!r}")
    return int(value, 10)


def coerce_coordinate(raw: str | None, field_name: str) -> float | None:
    """Blank means absent and returns None; anything else must be a finite decimal."""
    value = (raw or "").strip()
    if not value:
        return None
    if not _COORDINATE_RE.match(value):
        raise ParseError(f"{field_name} is not a decimal number: {raw!r}")
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ParseError(f"{field_name} is not a decimal number: {raw!r}") from exc
    if not math.isfinite(parsed):
        raise ParseError(f"{field_name} is not a finite number: {raw!r}")
    return parsed
