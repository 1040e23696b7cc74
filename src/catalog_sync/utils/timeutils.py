"""Time helpers."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the store keeps naive ISO strings)."""
    return datetime.now(UTC).replace(tzinfo=None)


def epoch_millis() -> int:
    """Milliseconds since the Unix epoch."""
    return int(datetime.now(UTC).timestamp() * 1000)
