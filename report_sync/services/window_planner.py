"""Partition a reporting date range into API-legal query windows."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

API_TIMESTAMP_START = "00:00:00"
API_TIMESTAMP_END = "23:59:59"


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Inclusive calendar-day range submitted as one API query."""
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"window start {self.start} is after end {self.end}")

    @property
    def span_days(self) -> int:
        return (self.end - self.start).days + 1

    def api_bounds(self) -> tuple[str, str]:
        """Boundary timestamps as the API expects them (start of first day, end of last day)."""
        return (
            f"{self.start.isoformat()} {API_TIMESTAMP_START}",
            f"{self.end.isoformat()} {API_TIMESTAMP_END}",
        )

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


def plan_windows(global_start: date, global_end: date, max_span_days: int) -> Iterator[TimeWindow]:
    """Yield contiguous, non-overlapping windows covering ``[global_start, global_end]``.

    Each window spans at most ``max_span_days`` calendar days; the last one is
    clamped to ``global_end``. Nothing is yielded when ``global_start > global_end``.
    """
    if max_span_days < 1:
        raise ValueError("max_span_days must be >= 1")

    cursor = global_start
    while cursor <= global_end:
        window_end = min(cursor + timedelta(days=max_span_days - 1), global_end)
        yield TimeWindow(cursor, window_end)
        cursor = window_end + timedelta(days=1)


__all__ = ["TimeWindow", "plan_windows"]
