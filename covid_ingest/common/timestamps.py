"""Last-update timestamp parsing across the daily-report date formats."""

from __future__ import annotations

from datetime import datetime, timezone

from covid_ingest.common.constants import CANONICAL_TIMESTAMP_FORMAT, LAST_UPDATE_FORMATS
from covid_ingest.common.errors import ParseError
from covid_ingest.common.models import ParsedTimestamp


def parse_last_update(raw: str) -> ParsedTimestamp:
    """Parse with the first matching format, in the fixed priority order.

    Values carry no zone information and are treated as UTC.
    """
    value = raw.strip()
    for index, fmt in enumerate(LAST_UPDATE_FORMATS, start=1):
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        parsed = parsed.replace(tzinfo=timezone.utc)
        return ParsedTimestamp(
            value=parsed,
            rendered=parsed.strftime(CANONICAL_TIMESTAMP_FORMAT),
            format_index=index,
        )
    raise ParseError(f"Unrecognized last-update timestamp: {raw!r}")
