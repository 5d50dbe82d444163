"""Merge a run's per-key totals into the record store.

Two policies, selected explicitly by configuration:

* ``replace_snapshot``: one row per (key, snapshot date). The whole batch is
  written with a single upsert that overwrites the stored metrics, so
  re-running the same range with the same snapshot date is idempotent.
  Overlapping runs are safe; the last writer for a (key, date) wins.

* ``accumulate_lifetime``: one cumulative row per key stored under
  ``LIFETIME_SENTINEL_DATE``. Each run reads the stored row, adds its totals
  and writes the sum back. This is NOT idempotent: re-running a range that
  was already synced counts it twice. Use it only with strictly advancing,
  non-overlapping ranges across runs, and serialize runs externally since
  concurrent read-modify-write cycles can lose updates. An insert that loses
  a creation race to another writer is logged and counted as a conflict
  rather than failing the run.

The writer commits once after all rows are written; any storage error rolls
the transaction back and propagates.
"""
from __future__ import annotations

from datetime import date

from report_sync.models.db.earnings import LIFETIME_SENTINEL_DATE, quantize_revenue
from report_sync.models.db.enums import ReconciliationPolicy
from report_sync.models.schemas.sync import ReconcileCounts
from report_sync.services.aggregator import AggregateTotal, Totals
from report_sync.services.record_store import DuplicateRecordError, ReconciliationRow, RecordStore
from report_sync.utils import get_logger

logger = get_logger(__name__)


def _row_for(total: AggregateTotal, on: date) -> ReconciliationRow:
    return ReconciliationRow(
        key=total.key,
        date=on,
        clicks=total.clicks,
        conversions=total.conversions,
        revenue=quantize_revenue(total.revenue),
    )


class ReconciliationWriter:
    def __init__(self, store: RecordStore, policy: ReconciliationPolicy):
        self.store = store
        self.policy = ReconciliationPolicy(policy)

    def reconcile(self, totals: Totals, snapshot_date: date) -> ReconcileCounts:
        """Write ``totals`` under the configured policy and return what changed.

        ``snapshot_date`` stamps replace-snapshot rows; lifetime rows always use
        the sentinel date.
        """
        if not totals:
            logger.info("No aggregate totals to reconcile", policy=self.policy.value)
            return ReconcileCounts()

        try:
            if self.policy == ReconciliationPolicy.REPLACE_SNAPSHOT:
                counts = self._replace_snapshot(totals, snapshot_date)
            else:
                counts = self._accumulate_lifetime(totals)
            self.store.commit()
        except Exception as e:
            logger.error(
                "Reconciliation write failed; rolling back",
                policy=self.policy.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            self.store.rollback()
            raise

        logger.info(
            "Reconciliation write committed",
            policy=self.policy.value,
            written=counts.written,
            created=counts.created,
            updated=counts.updated,
            conflicts=counts.conflicts,
        )
        return counts

    def _replace_snapshot(self, totals: Totals, snapshot_date: date) -> ReconcileCounts:
        keys = set(totals)
        # Existence probe only feeds the created/updated split; the upsert is uniform.
        existing = self.store.select_existing(keys, snapshot_date) & keys
        rows = [_row_for(totals[key], snapshot_date) for key in sorted(keys)]
        written = self.store.upsert(rows)
        return ReconcileCounts(
            written=written,
            created=len(keys) - len(existing),
            updated=len(existing),
        )

    def _accumulate_lifetime(self, totals: Totals) -> ReconcileCounts:
        created = updated = conflicts = 0
        for key in sorted(totals):
            total = totals[key]
            current = self.store.read_one(key, LIFETIME_SENTINEL_DATE)
            if current is not None:
                self.store.write_one(
                    ReconciliationRow(
                        key=key,
                        date=LIFETIME_SENTINEL_DATE,
                        clicks=current.clicks + total.clicks,
                        conversions=current.conversions + total.conversions,
                        revenue=quantize_revenue(current.revenue + total.revenue),
                    ),
                    create=False,
                )
                updated += 1
                continue
            try:
                self.store.write_one(_row_for(total, LIFETIME_SENTINEL_DATE), create=True)
                created += 1
            except DuplicateRecordError:
                # Another writer created the row first; it exists either way.
                logger.warning("Lifetime row created concurrently; skipping insert", affiliate_key=key)
                conflicts += 1
        return ReconcileCounts(
            written=created + updated,
            created=created,
            updated=updated,
            conflicts=conflicts,
        )


__all__ = ["ReconciliationWriter"]
