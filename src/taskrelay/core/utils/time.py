"""Clock helpers shared by events and the TTL store."""

from __future__ import annotations

import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC timestamp."""
    return datetime.now(UTC)


def monotonic_seconds() -> float:
    """Return a monotonic clock reading for expiry arithmetic."""
    return time.monotonic()
