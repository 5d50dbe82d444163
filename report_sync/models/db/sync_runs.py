from __future__ import annotations
"""SQLAlchemy model for the audit trail of sync runs."""
from datetime import date

from sqlalchemy import Integer, String, Text, Date, DateTime, Enum, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from report_sync.database import Base
from .enums import ReconciliationPolicy, SyncRunStatus


class SyncRun(Base):
    __tablename__ = "sync_runs"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    status: Mapped[SyncRunStatus] = mapped_column(Enum(SyncRunStatus), nullable=False, index=True)
    policy: Mapped[ReconciliationPolicy] = mapped_column(Enum(ReconciliationPolicy), nullable=False)
    dry_run: Mapped[bool] = mapped_column(Boolean, default=False)

    range_start: Mapped[date] = mapped_column(Date, nullable=False)
    range_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    snapshot_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Counters copied from the run summary
    windows: Mapped[int] = mapped_column(Integer, default=0)
    requests: Mapped[int] = mapped_column(Integer, default=0)
    rows_seen: Mapped[int] = mapped_column(Integer, default=0)
    rows_dropped: Mapped[int] = mapped_column(Integer, default=0)
    keys: Mapped[int] = mapped_column(Integer, default=0)
    written: Mapped[int] = mapped_column(Integer, default=0)
    created: Mapped[int] = mapped_column(Integer, default=0)
    updated: Mapped[int] = mapped_column(Integer, default=0)
    conflicts: Mapped[int] = mapped_column(Integer, default=0)

    error_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    started_at = mapped_column(DateTime(timezone=True), server_default=func.now())
    finished_at = mapped_column(DateTime(timezone=True), nullable=True)
