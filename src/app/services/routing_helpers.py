from __future__ import annotations

from datetime import datetime, timedelta


def service_datetime_from_seconds(base: datetime, seconds: int) -> datetime:
    """Convert GTFS 'seconds since midnight' into an absolute datetime.

    Supports times over 24h (e.g. 25:10) by rolling into the next day.
    The provided base datetime is treated as the service day.
    """

    day0 = base.replace(hour=0, minute=0, second=0, microsecond=0)
    return day0 + timedelta(seconds=int(seconds))


def seconds_since_midnight(dt: datetime) -> int:
    # Treat provided datetime as local service time.
    return dt.hour * 3600 + dt.minute * 60 + dt.second


def format_service_time(seconds: int) -> str:
    """Render seconds since midnight as GTFS ``HH:MM:SS`` (hours may exceed 23)."""

    hh, rest = divmod(int(seconds), 3600)
    mm, ss = divmod(rest, 60)
    return f"{hh:02d}:{mm:02d}:{ss:02d}"
