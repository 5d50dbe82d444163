"""Persistence capability for reconciled rows, plus its SQLAlchemy implementation.

The writer only talks to the ``RecordStore`` protocol. ``SqlAlchemyRecordStore``
backs it with the ``affiliate_earnings_daily`` table whose unique
``(affiliate_key, report_date)`` constraint is the upsert conflict target.
Nothing here commits implicitly; the caller decides when a write becomes
durable.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Protocol, Sequence, TypeVar

from sqlalchemy import insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from report_sync.models.db.earnings import AffiliateEarning
from report_sync.utils import get_logger

logger = get_logger(__name__)

# 5 bound parameters per row keeps a chunk under SQLite's legacy 999 limit.
UPSERT_CHUNK_SIZE = 150
KEY_PROBE_CHUNK_SIZE = 500

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ReconciliationRow:
    key: str
    date: date
    clicks: int = 0
    conversions: int = 0
    revenue: Decimal = Decimal("0")


class RecordStoreError(RuntimeError):
    """Storage-level failure that must abort the run."""


class DuplicateRecordError(RecordStoreError):
    """Insert lost to a concurrent writer that created the same (key, date) row first."""


class RecordStore(Protocol):
    def upsert(self, rows: Sequence[ReconciliationRow]) -> int: ...
    def select_existing(self, keys: Iterable[str], on: date) -> set[str]: ...
    def read_one(self, key: str, on: date) -> Optional[ReconciliationRow]: ...
    def write_one(self, row: ReconciliationRow, *, create: bool) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


def _chunks(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def _row_values(row: ReconciliationRow) -> dict:
    return {
        "affiliate_key": row.key,
        "report_date": row.date,
        "clicks": row.clicks,
        "conversions": row.conversions,
        "revenue": row.revenue,
    }


class SqlAlchemyRecordStore:
    def __init__(self, session: Session):
        self.session = session
        self.table = AffiliateEarning.__table__

    def _dialect_insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert
        if dialect == "sqlite":
            return sqlite_insert
        return None

    def _conflict_target(self) -> list:
        return [self.table.c.affiliate_key, self.table.c.report_date]

    def upsert(self, rows: Sequence[ReconciliationRow]) -> int:
        """Insert rows, fully overwriting metrics of any existing (key, date) row."""
        if not rows:
            return 0
        values = [_row_values(r) for r in rows]
        dialect_insert = self._dialect_insert()
        for chunk in _chunks(values, UPSERT_CHUNK_SIZE):
            if dialect_insert is None:
                self._upsert_portable(chunk)
                continue
            stmt = dialect_insert(self.table).values(list(chunk))
            stmt = stmt.on_conflict_do_update(
                index_elements=self._conflict_target(),
                set_={
                    "clicks": stmt.excluded.clicks,
                    "conversions": stmt.excluded.conversions,
                    "revenue": stmt.excluded.revenue,
                    "updated_at": func.now(),
                },
            )
            self.session.execute(stmt)
        return len(values)

    def _upsert_portable(self, chunk: Sequence[dict]) -> None:
        for v in chunk:
            if self.read_one(v["affiliate_key"], v["report_date"]) is None:
                self.session.execute(insert(self.table).values(v))
            else:
                self._update(v)

    def select_existing(self, keys: Iterable[str], on: date) -> set[str]:
        key_list = sorted(set(keys))
        found: set[str] = set()
        for chunk in _chunks(key_list, KEY_PROBE_CHUNK_SIZE):
            stmt = select(self.table.c.affiliate_key).where(
                self.table.c.report_date == on,
                self.table.c.affiliate_key.in_(chunk),
            )
            found.update(self.session.execute(stmt).scalars())
        return found

    def read_one(self, key: str, on: date) -> Optional[ReconciliationRow]:
        stmt = select(
            self.table.c.clicks,
            self.table.c.conversions,
            self.table.c.revenue,
        ).where(self.table.c.affiliate_key == key, self.table.c.report_date == on)
        found = self.session.execute(stmt).one_or_none()
        if found is None:
            return None
        return ReconciliationRow(
            key=key,
            date=on,
            clicks=int(found.clicks or 0),
            conversions=int(found.conversions or 0),
            revenue=Decimal(found.revenue or 0),
        )

    def write_one(self, row: ReconciliationRow, *, create: bool) -> None:
        """Insert (``create=True``) or overwrite a single row.

        Raises DuplicateRecordError when an insert hits an existing (key, date).
        """
        values = _row_values(row)
        if not create:
            self._update(values)
            return
        dialect_insert = self._dialect_insert()
        if dialect_insert is not None:
            stmt = dialect_insert(self.table).values(values).on_conflict_do_nothing(
                index_elements=self._conflict_target()
            )
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                raise DuplicateRecordError(f"row for {row.key} on {row.date} already exists")
            return
        try:
            with self.session.begin_nested():
                self.session.execute(insert(self.table).values(values))
        except IntegrityError as e:
            raise DuplicateRecordError(f"row for {row.key} on {row.date} already exists") from e

    def _update(self, values: dict) -> None:
        stmt = (
            update(self.table)
            .where(
                self.table.c.affiliate_key == values["affiliate_key"],
                self.table.c.report_date == values["report_date"],
            )
            .values(
                clicks=values["clicks"],
                conversions=values["conversions"],
                revenue=values["revenue"],
                updated_at=func.now(),
            )
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            raise RecordStoreError(
                f"row for {values['affiliate_key']} on {values['report_date']} disappeared before update"
            )

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


__all__ = [
    "ReconciliationRow",
    "RecordStore",
    "RecordStoreError",
    "DuplicateRecordError",
    "SqlAlchemyRecordStore",
]
