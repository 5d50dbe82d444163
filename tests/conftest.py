import sys
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure project root on sys.path so 'report_sync' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from report_sync.database import Base  # noqa: E402
"""Pytest fixtures.

All model modules are imported before Base.metadata.create_all() so every
table is registered on the metadata.
"""
from report_sync.models.db import AffiliateEarning, SyncRun  # noqa: E402,F401
from report_sync.models.db.enums import ReconciliationPolicy, SnapshotMode  # noqa: E402
from report_sync.models.schemas.sync import SyncConfig  # noqa: E402
from report_sync.services.record_store import SqlAlchemyRecordStore  # noqa: E402

# Single shared in-memory connection; every test gets fresh tables.
engine = create_engine(
    "sqlite+pysqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(create_test_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db_session):
    return SqlAlchemyRecordStore(db_session)


@pytest.fixture()
def sync_config():
    def _create(**overrides) -> SyncConfig:
        values = {
            "api_url": "https://reports.example.test/affiliates/api/Reports/SubAffiliateSummary",
            "api_key": "test-key",
            "affiliate_id": "26142",
            "start_date": date(2026, 1, 1),
            "window_days": 28,
            "page_size": 500,
            "policy": ReconciliationPolicy.REPLACE_SNAPSHOT,
            "snapshot_mode": SnapshotMode.EXPLICIT,
            "snapshot_date": date(2026, 1, 5),
        }
        values.update(overrides)
        return SyncConfig(**values)
    return _create
