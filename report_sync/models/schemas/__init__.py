"""
Pydantic schemas package.
"""
from .sync import SyncConfig, ReconcileCounts, SyncSummary

__all__ = ["SyncConfig", "ReconcileCounts", "SyncSummary"]
