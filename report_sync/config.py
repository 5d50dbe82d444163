"""Process configuration & tunable sync rules.

Environment variables are read once at import into module constants and
grouped settings dicts. Values stay raw strings here; parsing and validation
happen in ``SyncConfig`` so a bad value surfaces as ``ConfigError``.
The sync core never reads these globals directly: ``load_sync_config`` folds
them (plus any CLI overrides) into an immutable ``SyncConfig`` that is passed
explicitly into ``run_sync``.
"""
from __future__ import annotations

import os
from typing import Any, Mapping

from pydantic import ValidationError

from report_sync.models.schemas.sync import SyncConfig

# ------------------------------ Reporting API ----------------------------- #
REPORT_API_URL: str = os.getenv(
    "REPORT_API_URL",
    "https://mymonetise.co.uk/affiliates/api/Reports/SubAffiliateSummary",
)
REPORT_API_KEY: str | None = os.getenv("REPORT_API_KEY") or None
REPORT_AFFILIATE_ID: str | None = os.getenv("REPORT_AFFILIATE_ID") or None

HTTP_SETTINGS: dict[str, Any] = {
	"response_format": os.getenv("REPORT_RESPONSE_FORMAT", "xml"),   # xml | json
	"timeout_seconds": os.getenv("REPORT_HTTP_TIMEOUT", "60"),
	"max_attempts": os.getenv("REPORT_HTTP_MAX_ATTEMPTS", "3"),  # transient failures only
	"user_agent": "affiliate-report-sync/1.0",
}

# --------------------------------- Backoff -------------------------------- #
BACKOFF_POLICY: dict[str, int | float] = {
	"base_seconds": 1,
	"factor": 2,          # Exponential factor
	"max_seconds": 30,
	"jitter_pct": 0.10,   # +/-10% jitter
}

# ---------------------------------- Sync ---------------------------------- #
SYNC_DEFAULTS: dict[str, Any] = {
	"start_date": os.getenv("SYNC_START_DATE", "2025-12-01"),
	"window_days": os.getenv("SYNC_WINDOW_DAYS", "28"),   # API caps a single query span
	"page_size": os.getenv("SYNC_PAGE_SIZE", "500"),      # API caps row_limit at 500
	"policy": os.getenv("SYNC_POLICY", "replace_snapshot"),
	"snapshot_mode": os.getenv("SYNC_SNAPSHOT_MODE", "previous_completed_local_day"),
	"snapshot_date": os.getenv("SYNC_SNAPSHOT_DATE") or None,  # explicit mode only
	"snapshot_stamp": os.getenv("SYNC_SNAPSHOT_STAMP") or None,  # optional stamp override
	"timezone": os.getenv("SYNC_TIMEZONE", "UTC"),
	"key_prefix": os.getenv("SYNC_KEY_PREFIX", "SPK"),
}

# -------------------------------- Logging --------------------------------- #
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str | None = os.getenv("LOG_FILE") or None


class ConfigError(ValueError):
	"""Raised when the sync configuration is missing or invalid."""


def load_sync_config(env: Mapping[str, str] | None = None, **overrides: Any) -> SyncConfig:
	"""Build the immutable run configuration.

	Values come from ``env`` when given (tests), otherwise from the module
	constants captured at import. Keyword overrides (CLI flags) win over both;
	``None`` overrides are ignored.
	"""
	if env is None:
		values: dict[str, Any] = {
			"api_url": REPORT_API_URL,
			"api_key": REPORT_API_KEY,
			"affiliate_id": REPORT_AFFILIATE_ID,
			"response_format": HTTP_SETTINGS["response_format"],
			"http_timeout": HTTP_SETTINGS["timeout_seconds"],
			"http_max_attempts": HTTP_SETTINGS["max_attempts"],
			**SYNC_DEFAULTS,
		}
	else:
		values = {
			"api_url": env.get("REPORT_API_URL", REPORT_API_URL),
			"api_key": env.get("REPORT_API_KEY"),
			"affiliate_id": env.get("REPORT_AFFILIATE_ID"),
			"response_format": env.get("REPORT_RESPONSE_FORMAT", "xml"),
			"http_timeout": env.get("REPORT_HTTP_TIMEOUT", "60"),
			"http_max_attempts": env.get("REPORT_HTTP_MAX_ATTEMPTS", "3"),
			"start_date": env.get("SYNC_START_DATE", "2025-12-01"),
			"window_days": env.get("SYNC_WINDOW_DAYS", "28"),
			"page_size": env.get("SYNC_PAGE_SIZE", "500"),
			"policy": env.get("SYNC_POLICY", "replace_snapshot"),
			"snapshot_mode": env.get("SYNC_SNAPSHOT_MODE", "previous_completed_local_day"),
			"snapshot_date": env.get("SYNC_SNAPSHOT_DATE") or None,
			"snapshot_stamp": env.get("SYNC_SNAPSHOT_STAMP") or None,
			"timezone": env.get("SYNC_TIMEZONE", "UTC"),
			"key_prefix": env.get("SYNC_KEY_PREFIX", "SPK"),
		}
	values.update({k: v for k, v in overrides.items() if v is not None})
	try:
		return SyncConfig(**values)
	except ValidationError as e:
		raise ConfigError(f"Invalid sync configuration: {e}") from e


__all__ = [
	"REPORT_API_URL",
	"REPORT_API_KEY",
	"REPORT_AFFILIATE_ID",
	"HTTP_SETTINGS",
	"BACKOFF_POLICY",
	"SYNC_DEFAULTS",
	"LOG_LEVEL",
	"LOG_FILE",
	"ConfigError",
	"load_sync_config",
]
