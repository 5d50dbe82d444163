"""Resolve the as-of date for a sync run.

The resolved date is both the upper bound of the synced range and, under the
replace-snapshot policy, the date stamped on every written row. Relative modes
are evaluated in the business time zone, so a run shortly after midnight UTC
still lands on the right local calendar day.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from report_sync.models.db.enums import SnapshotMode
from report_sync.models.schemas.sync import SyncConfig
from report_sync.utils.time import local_today, utc_now


class SnapshotClock:
    def __init__(
        self,
        mode: SnapshotMode,
        zone: ZoneInfo | str = "UTC",
        explicit_date: Optional[date] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.mode = SnapshotMode(mode)
        self.zone = ZoneInfo(zone) if isinstance(zone, str) else zone
        if self.mode == SnapshotMode.EXPLICIT and explicit_date is None:
            raise ValueError("explicit snapshot mode requires a date")
        self.explicit_date = explicit_date
        self._now = now

    @classmethod
    def from_config(cls, config: SyncConfig, now: Callable[[], datetime] = utc_now) -> "SnapshotClock":
        return cls(config.snapshot_mode, config.zone, config.snapshot_date, now=now)

    def resolve(self) -> date:
        if self.mode == SnapshotMode.EXPLICIT:
            return self.explicit_date  # type: ignore[return-value]
        today = local_today(self.zone, self._now())
        if self.mode == SnapshotMode.CURRENT_LOCAL_DAY:
            return today
        # Current-day figures are still moving; the previous day is final.
        return today - timedelta(days=1)


__all__ = ["SnapshotClock"]
