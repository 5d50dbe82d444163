"""Central Enum definitions for sync modes and run states.

These replace scattered string literals so configuration, DB models and
the sync services agree on the same values.
"""
from __future__ import annotations
import enum


class ReconciliationPolicy(str, enum.Enum):
    # One row per (key, date); a re-run overwrites the stored aggregate.
    REPLACE_SNAPSHOT = "replace_snapshot"
    # One cumulative row per key; each run adds its totals (not idempotent).
    ACCUMULATE_LIFETIME = "accumulate_lifetime"


class SnapshotMode(str, enum.Enum):
    EXPLICIT = "explicit"
    CURRENT_LOCAL_DAY = "current_local_day"
    PREVIOUS_COMPLETED_LOCAL_DAY = "previous_completed_local_day"


class SyncRunStatus(str, enum.Enum):
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    NO_DATA = "NO_DATA"
    FAILED = "FAILED"


__all__ = [
    "ReconciliationPolicy",
    "SnapshotMode",
    "SyncRunStatus",
]
