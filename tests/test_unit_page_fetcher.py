import asyncio
from datetime import date

import pytest

from fakes import ScriptedReportClient, make_rows, page
from report_sync.integrations.base import ReportAPIError
from report_sync.services.page_fetcher import PageFetcher
from report_sync.services.window_planner import TimeWindow

WINDOW = TimeWindow(date(2026, 1, 1), date(2026, 1, 28))


def _drain(fetcher: PageFetcher, window: TimeWindow = WINDOW) -> list:
    async def _collect():
        return [row async for row in fetcher.fetch(window)]
    return asyncio.run(_collect())


def test_short_page_ends_window():
    client = ScriptedReportClient([page(make_rows(500)), page(make_rows(500)), page(make_rows(137))])
    fetcher = PageFetcher(client, 500)

    rows = _drain(fetcher)

    assert len(rows) == 1137
    assert fetcher.requests_issued == 3
    assert [offset for _, offset, _ in client.calls] == [1, 501, 1001]
    assert all(size == 500 for _, _, size in client.calls)


def test_full_last_page_needs_empty_page_to_stop():
    client = ScriptedReportClient([page(make_rows(500)), page(make_rows(500)), page(make_rows(500)), page([])])
    fetcher = PageFetcher(client, 500)

    rows = _drain(fetcher)

    assert len(rows) == 1500
    assert fetcher.requests_issued == 4


def test_missing_rows_container_ends_window():
    client = ScriptedReportClient([page(None), page(make_rows(3))])
    fetcher = PageFetcher(client, 500)
    assert _drain(fetcher) == []
    assert fetcher.requests_issued == 1


def test_empty_first_page():
    client = ScriptedReportClient([page([])])
    fetcher = PageFetcher(client, 10)
    assert _drain(fetcher) == []
    assert fetcher.requests_issued == 1


def test_reported_total_stops_after_full_page():
    client = ScriptedReportClient([page(make_rows(10), total_rows=20), page(make_rows(10), total_rows=20)])
    fetcher = PageFetcher(client, 10)
    assert len(_drain(fetcher)) == 20
    assert fetcher.requests_issued == 2


def test_offset_restarts_per_window_and_counter_accumulates():
    second = TimeWindow(date(2026, 1, 29), date(2026, 2, 15))
    client = ScriptedReportClient({
        WINDOW.start: [page(make_rows(2)), page(make_rows(1))],
        second.start: [page(make_rows(1))],
    })
    fetcher = PageFetcher(client, 2)

    assert len(_drain(fetcher, WINDOW)) == 3
    assert len(_drain(fetcher, second)) == 1
    assert fetcher.requests_issued == 3
    assert [(w.start, offset) for w, offset, _ in client.calls] == [
        (WINDOW.start, 1),
        (WINDOW.start, 3),
        (second.start, 1),
    ]


def test_transport_error_propagates():
    client = ScriptedReportClient(error=ReportAPIError("boom", status=500))
    fetcher = PageFetcher(client, 500)
    with pytest.raises(ReportAPIError):
        _drain(fetcher)


@pytest.mark.parametrize("size", [0, 501])
def test_page_size_bounds(size):
    with pytest.raises(ValueError):
        PageFetcher(ScriptedReportClient(), size)
