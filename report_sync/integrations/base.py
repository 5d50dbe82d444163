"""Capability interface for the outbound reporting API."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol

if TYPE_CHECKING:  # pragma: no cover
    from report_sync.services.window_planner import TimeWindow

# API-native row: field name -> scalar or single-field wrapper, as decoded.
RawRow = Mapping[str, Any]


class ReportAPIError(RuntimeError):
    """Transport failure or non-success status from the reporting API."""

    def __init__(self, message: str, *, status: int | None = None, transient: bool = False):
        super().__init__(message)
        self.status = status
        self.transient = transient


@dataclass(slots=True)
class ReportPage:
    # None: no rows container in the response at all.
    rows: Optional[list[RawRow]]
    # Authoritative row count for the whole window, when the API reports one.
    total_rows: Optional[int] = None

    @property
    def returned(self) -> int:
        return len(self.rows) if self.rows else 0


class ReportClient(Protocol):
    async def query(self, window: "TimeWindow", row_offset: int, page_size: int) -> ReportPage:
        """Fetch one page of report rows; ``row_offset`` is 1-based."""
        ...


__all__ = ["RawRow", "ReportAPIError", "ReportPage", "ReportClient"]
