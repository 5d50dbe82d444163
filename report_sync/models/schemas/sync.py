"""
Pydantic schemas for sync configuration and run results.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from report_sync.models.db.enums import ReconciliationPolicy, SnapshotMode, SyncRunStatus


class SyncConfig(BaseModel):
    """
    Immutable configuration for one sync run.
    Built once at startup (see ``report_sync.config.load_sync_config``) and
    passed explicitly into the engine.
    """
    model_config = ConfigDict(frozen=True)

    # Reporting API
    api_url: str = Field(min_length=1, description="SubAffiliateSummary endpoint URL")
    api_key: str = Field(min_length=1, description="Reporting API credential")
    affiliate_id: str = Field(min_length=1, description="Account whose sub-affiliates are reported")
    response_format: Literal["xml", "json"] = "xml"
    http_timeout: float = Field(60.0, gt=0, description="Total per-request timeout in seconds")
    http_max_attempts: int = Field(3, ge=1, description="Attempts for transient HTTP failures")

    # Range & pagination
    start_date: date = Field(description="First reporting day covered by the sync")
    window_days: int = Field(28, ge=1, description="Maximum span of a single API query")
    page_size: int = Field(500, ge=1, le=500, description="Rows requested per page (API cap 500)")

    # Reconciliation
    policy: ReconciliationPolicy = ReconciliationPolicy.REPLACE_SNAPSHOT
    snapshot_mode: SnapshotMode = SnapshotMode.PREVIOUS_COMPLETED_LOCAL_DAY
    snapshot_date: Optional[date] = Field(None, description="Resolved date for explicit mode")
    snapshot_stamp: Optional[date] = Field(None, description="Overrides the date stamped on snapshot rows")
    timezone: str = Field("UTC", description="IANA zone defining the business calendar day")
    key_prefix: str = Field("SPK", pattern=r"^[A-Za-z0-9]+$")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown time zone: {value}") from e
        return value

    @model_validator(mode="after")
    def _explicit_mode_has_date(self) -> "SyncConfig":
        if self.snapshot_mode == SnapshotMode.EXPLICIT and self.snapshot_date is None:
            raise ValueError("snapshot_mode 'explicit' requires snapshot_date")
        return self

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class ReconcileCounts(BaseModel):
    """Outcome of one reconciliation write."""
    written: int = 0
    created: int = 0
    updated: int = 0
    conflicts: int = Field(0, description="Lifetime inserts lost to a concurrent writer")


class SyncSummary(BaseModel):
    """Result of ``run_sync`` for logging, the run log and the CLI."""
    status: SyncRunStatus
    policy: ReconciliationPolicy
    dry_run: bool = False

    range_start: date
    range_end: date
    snapshot_date: date

    windows: int = 0
    requests: int = 0
    rows_seen: int = 0
    rows_dropped: int = 0
    keys: int = 0
    total_clicks: int = 0
    total_conversions: int = 0
    total_revenue: Decimal = Decimal("0")

    counts: ReconcileCounts = Field(default_factory=ReconcileCounts)
    started_at: datetime
    finished_at: Optional[datetime] = None
