"""UTC-focused helpers for run metadata."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds")


def from_unix(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def format_runtime(seconds: float) -> str:
    """Render an elapsed duration the way operators read it in the run log."""
    if seconds < 1:
        return f"{int(seconds * 1000)} Milliseconds"
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours >= 1:
        return f"{int(hours)} Hours, {int(minutes)} Minutes, {secs:0.2f} Seconds"
    if minutes >= 1:
        return f"{int(minutes)} Minutes, {secs:0.2f} Seconds"
    return f"{secs:0.2f} Seconds"
