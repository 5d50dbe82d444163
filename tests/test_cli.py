import pytest

import report_sync.config as config_module
from conftest import TestingSessionLocal
from fakes import ScriptedReportClient, make_rows, page
from report_sync.cli import build_parser, main
from report_sync.integrations.base import ReportAPIError
from report_sync.models.db import AffiliateEarning, SyncRun
from report_sync.models.db.enums import SyncRunStatus

ARGS = ["--start", "2026-01-01", "--snapshot-date", "2026-01-05"]


@pytest.fixture(autouse=True)
def api_credentials(monkeypatch):
    monkeypatch.setattr(config_module, "REPORT_API_KEY", "cli-key")
    monkeypatch.setattr(config_module, "REPORT_AFFILIATE_ID", "26142")


def _main(argv, client):
    return main(argv, session_factory=TestingSessionLocal, client_factory=lambda cfg: client)


def test_successful_run_recorded(db_session):
    client = ScriptedReportClient([page(make_rows(2, key="SPK-1111-2222"))])

    assert _main(ARGS, client) == 0

    run = db_session.query(SyncRun).one()
    assert run.status == SyncRunStatus.SUCCEEDED
    assert run.keys == 1
    assert run.written == 1
    assert run.created == 1
    assert run.rows_seen == 2
    assert str(run.snapshot_date) == "2026-01-05"
    earning = db_session.query(AffiliateEarning).one()
    assert earning.affiliate_key == "SPK-1111-2222"
    assert earning.clicks == 2


def test_no_data_run_exits_zero(db_session):
    assert _main(ARGS, ScriptedReportClient([page([])])) == 0
    assert db_session.query(SyncRun).one().status == SyncRunStatus.NO_DATA


def test_dry_run_writes_no_earnings(db_session):
    assert _main(ARGS + ["--dry-run"], ScriptedReportClient([page(make_rows(1))])) == 0
    run = db_session.query(SyncRun).one()
    assert run.dry_run is True
    assert run.status == SyncRunStatus.SUCCEEDED
    assert db_session.query(AffiliateEarning).count() == 0


def test_failed_run_exits_one(db_session):
    client = ScriptedReportClient(error=ReportAPIError("upstream down", status=503, transient=True))

    assert _main(ARGS, client) == 1

    run = db_session.query(SyncRun).one()
    assert run.status == SyncRunStatus.FAILED
    assert run.error_type == "ReportAPIError"
    assert "upstream down" in run.error_message
    assert db_session.query(AffiliateEarning).count() == 0


def test_missing_credentials_exit_two(monkeypatch, db_session):
    monkeypatch.setattr(config_module, "REPORT_API_KEY", None)
    assert _main(ARGS, ScriptedReportClient()) == 2
    assert db_session.query(SyncRun).count() == 0


def test_invalid_page_size_exit_two():
    assert _main(ARGS + ["--page-size", "501"], ScriptedReportClient()) == 2


def test_parser_rejects_unknown_policy():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--policy", "merge"])


@pytest.mark.parametrize(("setting", "value"), [("page_size", "abc"), ("window_days", "x")])
def test_malformed_numeric_setting_exit_two(monkeypatch, setting, value):
    monkeypatch.setitem(config_module.SYNC_DEFAULTS, setting, value)
    assert main([], session_factory=TestingSessionLocal, client_factory=lambda cfg: ScriptedReportClient()) == 2


def test_malformed_http_setting_exit_two(monkeypatch):
    monkeypatch.setitem(config_module.HTTP_SETTINGS, "timeout_seconds", "soon")
    assert _main(ARGS, ScriptedReportClient()) == 2
