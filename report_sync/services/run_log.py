"""Persist one audit row per sync run (RUNNING -> SUCCEEDED / NO_DATA / FAILED)."""
from __future__ import annotations

from sqlalchemy.orm import Session

from report_sync.models.db.enums import SyncRunStatus
from report_sync.models.db.sync_runs import SyncRun
from report_sync.models.schemas.sync import SyncConfig, SyncSummary
from report_sync.utils.time import utc_now


def start_run(session: Session, config: SyncConfig, *, dry_run: bool = False) -> SyncRun:
    run = SyncRun(
        status=SyncRunStatus.RUNNING,
        policy=config.policy,
        dry_run=dry_run,
        range_start=config.start_date,
    )
    session.add(run)
    session.commit()
    session.refresh(run)
    return run


def finish_run(session: Session, run: SyncRun, summary: SyncSummary) -> SyncRun:
    run.status = summary.status
    run.range_end = summary.range_end
    run.snapshot_date = summary.snapshot_date
    run.windows = summary.windows
    run.requests = summary.requests
    run.rows_seen = summary.rows_seen
    run.rows_dropped = summary.rows_dropped
    run.keys = summary.keys
    run.written = summary.counts.written
    run.created = summary.counts.created
    run.updated = summary.counts.updated
    run.conflicts = summary.counts.conflicts
    run.finished_at = summary.finished_at or utc_now()
    session.commit()
    return run


def fail_run(session: Session, run: SyncRun, error: BaseException) -> SyncRun:
    run.status = SyncRunStatus.FAILED
    run.error_type = type(error).__name__
    run.error_message = str(error)[:2000]
    run.finished_at = utc_now()
    session.commit()
    return run


__all__ = ["start_run", "finish_run", "fail_run"]
