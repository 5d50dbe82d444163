"""
Integrations package initialization.
Exports the report client capability; the HTTP implementation lives in
``report_sync.integrations.sub_affiliate_summary``.
"""
from .base import RawRow, ReportAPIError, ReportClient, ReportPage

__all__ = [
    "RawRow",
    "ReportAPIError",
    "ReportClient",
    "ReportPage",
]
