"""Time utilities (UTC now, local calendar days, elapsed formatting)."""
from __future__ import annotations
from datetime import date, datetime, timezone, timedelta
from zoneinfo import ZoneInfo

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def local_today(zone: ZoneInfo, now: datetime | None = None) -> date:
    """Calendar date of ``now`` (default: current UTC instant) in ``zone``."""
    instant = now or utc_now()
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(zone).date()

def format_elapsed(start: datetime, end: datetime | None = None) -> str:
    end_ts = end or utc_now()
    delta: timedelta = end_ts - start
    ms = int(delta.total_seconds() * 1000)
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms/1000:.2f}s"
    return f"{delta.total_seconds()/60:.2f}m"

__all__ = ["utc_now", "local_today", "format_elapsed"]
