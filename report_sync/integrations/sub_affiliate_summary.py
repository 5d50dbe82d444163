"""
SubAffiliateSummary reporting API client (aiohttp).

Implements the ``ReportClient`` capability: one GET per page against the
report endpoint, window bounds sent as ``YYYY-MM-DD HH:MM:SS`` timestamps and
pagination via a 1-based ``start_at_row`` plus ``row_limit``.

Transient failures (5xx, 429, connection errors, timeouts) are retried with
exponential backoff up to ``max_attempts``; other non-success statuses fail
immediately. Whatever is still failing after the last attempt propagates as
``ReportAPIError`` and ends the run.
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from report_sync.config import HTTP_SETTINGS
from report_sync.integrations.base import ReportAPIError, ReportPage
from report_sync.integrations.report_decoding import decode_page
from report_sync.models.schemas.sync import SyncConfig
from report_sync.services.window_planner import TimeWindow
from report_sync.utils import get_logger
from report_sync.utils.backoff import compute_backoff_seconds

logger = get_logger(__name__)

ACCEPT_HEADERS = {
    "xml": "application/xml, text/xml",
    "json": "application/json",
}


class SubAffiliateSummaryClient:
    """Async context manager owning (or borrowing) an aiohttp session."""

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str,
        affiliate_id: str,
        response_format: str = "xml",
        timeout: float = 60.0,
        max_attempts: int = 3,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if response_format not in ACCEPT_HEADERS:
            raise ValueError(f"Unsupported response format: {response_format}")
        self.api_url = api_url
        self.api_key = api_key
        self.affiliate_id = affiliate_id
        self.response_format = response_format
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_attempts = max(1, int(max_attempts))
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep
        self.logger = get_logger("integration.sub_affiliate_summary")

    @classmethod
    def from_config(cls, config: SyncConfig, **kwargs: Any) -> "SubAffiliateSummaryClient":
        return cls(
            api_url=config.api_url,
            api_key=config.api_key,
            affiliate_id=config.affiliate_id,
            response_format=config.response_format,
            timeout=config.http_timeout,
            max_attempts=config.http_max_attempts,
            **kwargs,
        )

    async def __aenter__(self) -> "SubAffiliateSummaryClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": HTTP_SETTINGS["user_agent"]},
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def build_params(self, window: TimeWindow, row_offset: int, page_size: int) -> Dict[str, str]:
        start, end = window.api_bounds()
        return {
            "api_key": self.api_key,
            "affiliate_id": self.affiliate_id,
            "start_date": start,
            "end_date": end,
            "start_at_row": str(row_offset),
            "row_limit": str(page_size),
        }

    async def query(self, window: TimeWindow, row_offset: int, page_size: int) -> ReportPage:
        params = self.build_params(window, row_offset, page_size)
        attempts = 0
        while True:
            attempts += 1
            try:
                body = await self._get(params)
                page = decode_page(body, self.response_format)
                self.logger.debug(
                    "Report page fetched",
                    window=str(window),
                    row_offset=row_offset,
                    rows=page.returned if page.rows is not None else None,
                    total_rows=page.total_rows,
                )
                return page
            except ReportAPIError as e:
                if not e.transient or attempts >= self.max_attempts:
                    self.logger.error(
                        "Report API request failed",
                        window=str(window),
                        row_offset=row_offset,
                        attempt=attempts,
                        status_code=e.status,
                        error=str(e),
                    )
                    raise
                backoff = compute_backoff_seconds(attempts)
                self.logger.warning(
                    "Report API retry scheduled",
                    window=str(window),
                    row_offset=row_offset,
                    attempt=attempts,
                    backoff_seconds=round(backoff, 2),
                    status_code=e.status,
                )
                await self._sleep(backoff)

    async def _get(self, params: Dict[str, str]) -> str:
        if self._session is None:
            raise RuntimeError("Client session not started; use 'async with'")
        headers = {"Accept": ACCEPT_HEADERS[self.response_format]}
        try:
            async with self._session.get(self.api_url, params=params, headers=headers, timeout=self.timeout) as response:
                body = await response.text()
                if not 200 <= response.status < 300:
                    raise ReportAPIError(
                        f"Report API returned status {response.status}: {body[:200]}",
                        status=response.status,
                        transient=response.status >= 500 or response.status == 429,
                    )
                return body
        except asyncio.TimeoutError as e:
            raise ReportAPIError("Report API request timed out", transient=True) from e
        except aiohttp.ClientError as e:
            raise ReportAPIError(f"Report API client error: {e}", transient=True) from e


__all__ = ["SubAffiliateSummaryClient"]
