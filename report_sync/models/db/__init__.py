from .earnings import AffiliateEarning, LIFETIME_SENTINEL_DATE, quantize_revenue
from .sync_runs import SyncRun
from .enums import ReconciliationPolicy, SnapshotMode, SyncRunStatus

__all__ = [
    "AffiliateEarning",
    "LIFETIME_SENTINEL_DATE",
    "quantize_revenue",
    "SyncRun",
    "ReconciliationPolicy",
    "SnapshotMode",
    "SyncRunStatus",
]
