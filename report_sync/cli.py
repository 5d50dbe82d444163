"""
Command line entry point: run exactly one sync and exit.

Exit codes: 0 success (including runs with no data), 1 sync failure,
2 invalid configuration.
"""
import argparse
import asyncio
import time
from datetime import date
from typing import Any, Callable, Optional, Sequence

from sqlalchemy.orm import Session, sessionmaker

from report_sync.config import LOG_FILE, LOG_LEVEL, ConfigError, load_sync_config
from report_sync.database import SessionLocal, init_db
from report_sync.integrations.sub_affiliate_summary import SubAffiliateSummaryClient
from report_sync.models.db.enums import ReconciliationPolicy, SnapshotMode
from report_sync.models.schemas.sync import SyncConfig, SyncSummary
from report_sync.services.record_store import SqlAlchemyRecordStore
from report_sync.services.run_log import fail_run, finish_run, start_run
from report_sync.services.sync_engine import run_sync
from report_sync.utils import get_logger, log_business_event, log_performance, setup_logging

logger = get_logger(__name__)

ClientFactory = Callable[[SyncConfig], Any]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="affiliate-report-sync",
        description="Pull sub-affiliate summary reports and reconcile totals into the database.",
    )
    parser.add_argument("--start", type=date.fromisoformat, help="First reporting day (YYYY-MM-DD)")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in ReconciliationPolicy],
        help="Reconciliation policy",
    )
    parser.add_argument(
        "--snapshot-mode",
        choices=[m.value for m in SnapshotMode],
        help="How the as-of date is resolved",
    )
    parser.add_argument(
        "--snapshot-date",
        type=date.fromisoformat,
        help="Fixed as-of date (implies --snapshot-mode explicit)",
    )
    parser.add_argument("--window-days", type=int, help="Maximum days per API query")
    parser.add_argument("--page-size", type=int, help="Rows per page (max 500)")
    parser.add_argument("--timezone", help="IANA zone for the business calendar day")
    parser.add_argument("--dry-run", action="store_true", help="Fetch and aggregate without writing")
    parser.add_argument("--log-level", default=None, help="Logging level (default from LOG_LEVEL)")
    parser.add_argument("--log-file", default=None, help="JSON log file path (default from LOG_FILE)")
    return parser


def _config_from_args(args: argparse.Namespace) -> SyncConfig:
    snapshot_mode = args.snapshot_mode
    if args.snapshot_date is not None and snapshot_mode is None:
        snapshot_mode = SnapshotMode.EXPLICIT.value
    return load_sync_config(
        start_date=args.start,
        policy=args.policy,
        snapshot_mode=snapshot_mode,
        snapshot_date=args.snapshot_date,
        window_days=args.window_days,
        page_size=args.page_size,
        timezone=args.timezone,
    )


async def _sync(config: SyncConfig, session: Session, client_factory: ClientFactory, dry_run: bool) -> SyncSummary:
    store = SqlAlchemyRecordStore(session)
    async with client_factory(config) as client:
        return await run_sync(config, client, store, dry_run=dry_run)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    session_factory: Optional[sessionmaker] = None,
    client_factory: Optional[ClientFactory] = None,
) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        log_level=(args.log_level or LOG_LEVEL).upper(),
        log_file=args.log_file or LOG_FILE,
        enable_console=True,
    )

    try:
        config = _config_from_args(args)
    except ConfigError as e:
        logger.error("Invalid configuration", error=str(e))
        return 2

    session_factory = session_factory or SessionLocal
    client_factory = client_factory or SubAffiliateSummaryClient.from_config

    session = session_factory()
    started = time.perf_counter()
    try:
        try:
            init_db(bind=session.get_bind())
            run = start_run(session, config, dry_run=args.dry_run)
        except Exception as e:
            logger.error("Database unavailable; sync not started", error=str(e), exc_info=True)
            return 1
        try:
            summary = asyncio.run(_sync(config, session, client_factory, args.dry_run))
        except Exception as e:
            logger.error("Sync failed", error=str(e), error_type=type(e).__name__, exc_info=True)
            session.rollback()
            fail_run(session, run, e)
            log_business_event("sync_failed", {"error_type": type(e).__name__, "error": str(e)}, run_id=run.id)
            return 1

        finish_run(session, run, summary)
        log_business_event(
            "sync_completed",
            {
                "status": summary.status.value,
                "policy": summary.policy.value,
                "snapshot_date": summary.snapshot_date.isoformat(),
                "keys": summary.keys,
                "written": summary.counts.written,
                "created": summary.counts.created,
                "updated": summary.counts.updated,
                "dry_run": summary.dry_run,
            },
            run_id=run.id,
        )
        return 0
    finally:
        log_performance("sync_run", round((time.perf_counter() - started) * 1000, 2))
        session.close()


__all__ = ["build_parser", "main"]
