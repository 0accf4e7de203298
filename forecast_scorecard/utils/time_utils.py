"""
Time helpers shared by the pipeline and report writers.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def run_timestamp(moment: datetime | None = None) -> str:
    """Compact UTC timestamp for output file and directory names."""
    return (moment or utcnow()).strftime("%Y%m%dT%H%M%SZ")
