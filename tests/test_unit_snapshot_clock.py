from datetime import date, datetime, timezone

import pytest

from report_sync.models.db.enums import SnapshotMode
from report_sync.services.snapshot_clock import SnapshotClock


def _at(*args):
    instant = datetime(*args, tzinfo=timezone.utc)
    return lambda: instant


def test_explicit_date_returned_as_is():
    clock = SnapshotClock(SnapshotMode.EXPLICIT, "UTC", date(2026, 1, 4))
    assert clock.resolve() == date(2026, 1, 4)


def test_explicit_mode_requires_date():
    with pytest.raises(ValueError):
        SnapshotClock(SnapshotMode.EXPLICIT, "UTC")


def test_previous_completed_day_uses_local_calendar():
    # 03:00 UTC on Jan 5 is still Jan 4 in New York.
    now = _at(2026, 1, 5, 3, 0)
    assert SnapshotClock(SnapshotMode.PREVIOUS_COMPLETED_LOCAL_DAY, "UTC", now=now).resolve() == date(2026, 1, 4)
    assert SnapshotClock(SnapshotMode.PREVIOUS_COMPLETED_LOCAL_DAY, "America/New_York", now=now).resolve() == date(2026, 1, 3)


def test_current_local_day_ahead_of_utc():
    now = _at(2026, 1, 5, 20, 0)
    assert SnapshotClock(SnapshotMode.CURRENT_LOCAL_DAY, "Asia/Tokyo", now=now).resolve() == date(2026, 1, 6)
    assert SnapshotClock(SnapshotMode.CURRENT_LOCAL_DAY, "UTC", now=now).resolve() == date(2026, 1, 5)


def test_mode_accepts_string_values():
    clock = SnapshotClock("current_local_day", "Europe/London", now=_at(2026, 7, 1, 23, 30))
    # BST: 23:30 UTC is already the next day locally
    assert clock.resolve() == date(2026, 7, 2)


def test_from_config(sync_config):
    config = sync_config(snapshot_mode=SnapshotMode.PREVIOUS_COMPLETED_LOCAL_DAY, snapshot_date=None, timezone="Europe/London")
    clock = SnapshotClock.from_config(config, now=_at(2026, 2, 10, 12, 0))
    assert clock.resolve() == date(2026, 2, 9)
