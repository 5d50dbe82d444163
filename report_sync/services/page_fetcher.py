"""Drain one report window through the API's row-offset pagination.

Termination, checked after every page in this order:
1. no rows container in the response  -> end of window (empty or odd shape)
2. rows container present but empty    -> end of window
3. fewer rows than ``page_size``       -> last page, stop after yielding it
4. otherwise advance the offset by ``page_size`` and request the next page

When the client also reports an authoritative ``total_rows`` the fetcher stops
as soon as that many rows have been returned. The short-page rule stays in
force either way.
"""
from __future__ import annotations

from typing import AsyncIterator

from report_sync.integrations.base import RawRow, ReportClient
from report_sync.services.window_planner import TimeWindow
from report_sync.utils import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 500


class PageFetcher:
    def __init__(self, client: ReportClient, page_size: int = MAX_PAGE_SIZE):
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be within 1..{MAX_PAGE_SIZE}")
        self.client = client
        self.page_size = page_size
        self.requests_issued = 0

    async def fetch(self, window: TimeWindow) -> AsyncIterator[RawRow]:
        """Yield raw rows of ``window`` page by page. Not restartable."""
        offset = 1
        while True:
            page = await self.client.query(window, offset, self.page_size)
            self.requests_issued += 1

            if page.rows is None:
                logger.debug("No rows container in response; ending window", window=str(window), offset=offset)
                return
            if not page.rows:
                logger.debug("Empty page; ending window", window=str(window), offset=offset)
                return

            for row in page.rows:
                yield row

            returned = len(page.rows)
            if returned < self.page_size:
                return
            # Assumes row_count is the window-wide total, not the size of this page.
            if page.total_rows is not None and offset - 1 + returned >= page.total_rows:
                logger.debug("Reported total reached", window=str(window), total_rows=page.total_rows)
                return
            offset += self.page_size


__all__ = ["PageFetcher", "MAX_PAGE_SIZE"]
