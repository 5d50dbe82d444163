import os
import subprocess
import sys
from datetime import date
from pathlib import Path

import pytest
from pydantic import ValidationError

import report_sync.config as config_module
from report_sync.config import ConfigError, load_sync_config
from report_sync.models.db.enums import ReconciliationPolicy, SnapshotMode

BASE_ENV = {"REPORT_API_KEY": "k", "REPORT_AFFILIATE_ID": "26142"}
ROOT_DIR = Path(__file__).resolve().parents[1]


def test_defaults_from_env():
    config = load_sync_config(env=BASE_ENV)
    assert config.api_key == "k"
    assert config.affiliate_id == "26142"
    assert config.start_date == date(2025, 12, 1)
    assert config.window_days == 28
    assert config.page_size == 500
    assert config.policy == ReconciliationPolicy.REPLACE_SNAPSHOT
    assert config.snapshot_mode == SnapshotMode.PREVIOUS_COMPLETED_LOCAL_DAY
    assert config.timezone == "UTC"
    assert config.response_format == "xml"


def test_env_values_parsed():
    config = load_sync_config(env={
        **BASE_ENV,
        "SYNC_START_DATE": "2026-01-01",
        "SYNC_POLICY": "accumulate_lifetime",
        "SYNC_SNAPSHOT_MODE": "explicit",
        "SYNC_SNAPSHOT_DATE": "2026-01-05",
        "SYNC_TIMEZONE": "Europe/London",
        "SYNC_PAGE_SIZE": "250",
    })
    assert config.policy == ReconciliationPolicy.ACCUMULATE_LIFETIME
    assert config.snapshot_date == date(2026, 1, 5)
    assert config.page_size == 250
    assert config.zone.key == "Europe/London"


@pytest.mark.parametrize(
    "env",
    [
        {"REPORT_AFFILIATE_ID": "26142"},
        {**BASE_ENV, "SYNC_PAGE_SIZE": "501"},
        {**BASE_ENV, "SYNC_WINDOW_DAYS": "0"},
        {**BASE_ENV, "SYNC_TIMEZONE": "Mars/Olympus_Mons"},
        {**BASE_ENV, "SYNC_SNAPSHOT_MODE": "explicit"},
        {**BASE_ENV, "SYNC_POLICY": "merge"},
        {**BASE_ENV, "SYNC_KEY_PREFIX": "SP-K"},
        {**BASE_ENV, "SYNC_START_DATE": "yesterday"},
    ],
)
def test_invalid_config_rejected(env):
    with pytest.raises(ConfigError):
        load_sync_config(env=env)


def test_overrides_win_and_none_ignored():
    config = load_sync_config(env=BASE_ENV, page_size=100, policy=None, start_date=date(2026, 3, 1))
    assert config.page_size == 100
    assert config.policy == ReconciliationPolicy.REPLACE_SNAPSHOT
    assert config.start_date == date(2026, 3, 1)


def test_module_constants_used_without_env(monkeypatch):
    monkeypatch.setattr(config_module, "REPORT_API_KEY", "from-module")
    monkeypatch.setattr(config_module, "REPORT_AFFILIATE_ID", "1")
    config = load_sync_config(snapshot_mode="explicit", snapshot_date=date(2026, 1, 5))
    assert config.api_key == "from-module"


def test_config_is_frozen():
    config = load_sync_config(env=BASE_ENV)
    with pytest.raises(ValidationError):
        config.page_size = 10


def test_malformed_env_does_not_break_import():
    env = {
        **os.environ,
        "PYTHONPATH": str(ROOT_DIR),
        "SYNC_PAGE_SIZE": "abc",
        "SYNC_WINDOW_DAYS": "many",
        "REPORT_HTTP_TIMEOUT": "soon",
        "REPORT_HTTP_MAX_ATTEMPTS": "lots",
        "REPORT_API_KEY": "k",
        "REPORT_AFFILIATE_ID": "1",
    }
    code = (
        "import report_sync.cli\n"
        "from report_sync.config import ConfigError, load_sync_config\n"
        "try:\n"
        "    load_sync_config()\n"
        "except ConfigError:\n"
        "    raise SystemExit(0)\n"
        "raise SystemExit(3)\n"
    )
    result = subprocess.run([sys.executable, "-c", code], env=env, cwd=ROOT_DIR, capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
