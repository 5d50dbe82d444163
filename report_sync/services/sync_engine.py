"""Sync engine orchestrator.

Single public coroutine ``run_sync(config, client, store)`` that:
1. Resolves the as-of date through SnapshotClock.
2. Plans API-legal windows from ``config.start_date`` to that date.
3. Drains each window with PageFetcher, one page at a time.
4. Normalizes every raw row, dropping rows without a canonical key.
5. Folds records into per-key totals (Aggregator).
6. Hands the totals to ReconciliationWriter once, after all windows.
7. Returns a SyncSummary.

Everything runs sequentially; each API and storage call completes before the
next one starts. Transport and storage errors propagate and fail the run.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from report_sync.integrations.base import ReportClient
from report_sync.models.db.earnings import quantize_revenue
from report_sync.models.db.enums import SyncRunStatus
from report_sync.models.schemas.sync import SyncConfig, SyncSummary
from report_sync.services.aggregator import Totals, accumulate
from report_sync.services.page_fetcher import PageFetcher
from report_sync.services.reconciliation_writer import ReconciliationWriter
from report_sync.services.record_store import RecordStore
from report_sync.services.row_normalizer import key_pattern, normalize_row
from report_sync.services.snapshot_clock import SnapshotClock
from report_sync.services.window_planner import plan_windows
from report_sync.utils import get_logger
from report_sync.utils.time import format_elapsed, utc_now

logger = get_logger(__name__)


async def run_sync(
    config: SyncConfig,
    client: ReportClient,
    store: RecordStore,
    *,
    clock: Optional[SnapshotClock] = None,
    dry_run: bool = False,
) -> SyncSummary:
    """Run one sync: fetch every window, aggregate, reconcile once."""
    started_at = utc_now()
    clock = clock or SnapshotClock.from_config(config)
    range_end = clock.resolve()
    snapshot_date = config.snapshot_stamp or range_end
    pattern = key_pattern(config.key_prefix)

    logger.info(
        "Sync started",
        range_start=config.start_date.isoformat(),
        range_end=range_end.isoformat(),
        snapshot_date=snapshot_date.isoformat(),
        policy=config.policy.value,
        window_days=config.window_days,
        dry_run=dry_run or None,
    )

    fetcher = PageFetcher(client, config.page_size)
    totals: Totals = {}
    windows = rows_seen = rows_dropped = 0

    for window in plan_windows(config.start_date, range_end, config.window_days):
        windows += 1
        window_rows = 0
        logger.info("Fetching report window", window_start=window.start.isoformat(), window_end=window.end.isoformat())
        async for raw in fetcher.fetch(window):
            window_rows += 1
            record = normalize_row(raw, pattern)
            if record is None:
                rows_dropped += 1
                continue
            totals = accumulate(totals, record)
        rows_seen += window_rows
        logger.info("Report window drained", window=str(window), rows=window_rows, keys_so_far=len(totals))

    summary = SyncSummary(
        status=SyncRunStatus.SUCCEEDED if totals else SyncRunStatus.NO_DATA,
        policy=config.policy,
        dry_run=dry_run,
        range_start=config.start_date,
        range_end=range_end,
        snapshot_date=snapshot_date,
        windows=windows,
        requests=fetcher.requests_issued,
        rows_seen=rows_seen,
        rows_dropped=rows_dropped,
        keys=len(totals),
        total_clicks=sum(t.clicks for t in totals.values()),
        total_conversions=sum(t.conversions for t in totals.values()),
        total_revenue=sum((quantize_revenue(t.revenue) for t in totals.values()), Decimal("0")),
        started_at=started_at,
    )

    if not totals:
        logger.info("No valid affiliate rows found; nothing to reconcile", rows_seen=rows_seen, rows_dropped=rows_dropped)
    elif dry_run:
        logger.info("Dry run; skipping reconciliation write", keys=len(totals))
    else:
        summary.counts = ReconciliationWriter(store, config.policy).reconcile(totals, snapshot_date)

    summary.finished_at = utc_now()
    logger.info(
        "Sync finished",
        status=summary.status.value,
        keys=summary.keys,
        rows_seen=rows_seen,
        rows_dropped=rows_dropped,
        requests=summary.requests,
        written=summary.counts.written,
        elapsed=format_elapsed(started_at, summary.finished_at),
    )
    return summary


__all__ = ["run_sync"]
