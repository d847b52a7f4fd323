"""
Time helpers shared by the monitor.

Conventions:
- Candle timestamps are epoch milliseconds (UTC).
- Signal timestamps are timezone-aware UTC datetimes.
- Alpha Vantage FX intraday timestamps are naive US/Eastern wall-clock times.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

UTC = timezone.utc
US_EASTERN = ZoneInfo("America/New_York")

ONE_MINUTE_MS = 60_000


def now_utc() -> datetime:
    """Get current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_epoch_ms(dt: datetime, assume_tz: Optional[ZoneInfo] = None) -> int:
    """
    Convert a datetime to epoch milliseconds.

    Args:
        dt: Datetime to convert.
        assume_tz: Zone to attach when ``dt`` is naive. Defaults to UTC.

    Returns:
        Milliseconds since the Unix epoch.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=assume_tz or UTC)
    return int(dt.timestamp() * 1000)
