"""Per-key running totals across every page and window of a run.

``accumulate`` is the fold step: it only adds, so the final totals do not
depend on the order in which rows, pages or windows arrive.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import reduce
from typing import Dict, Iterable, Optional

from report_sync.services.row_normalizer import AffiliateRecord


@dataclass(slots=True)
class AggregateTotal:
    key: str
    clicks: int = 0
    conversions: int = 0
    revenue: Decimal = Decimal("0")

    def add(self, record: AffiliateRecord) -> None:
        self.clicks += record.clicks
        self.conversions += record.conversions
        self.revenue += record.revenue


Totals = Dict[str, AggregateTotal]


def accumulate(totals: Totals, record: AffiliateRecord) -> Totals:
    """Fold ``record`` into ``totals`` and return the same mapping."""
    entry = totals.get(record.key)
    if entry is None:
        totals[record.key] = AggregateTotal(
            key=record.key,
            clicks=record.clicks,
            conversions=record.conversions,
            revenue=record.revenue,
        )
    else:
        entry.add(record)
    return totals


def aggregate(records: Iterable[AffiliateRecord], totals: Optional[Totals] = None) -> Totals:
    return reduce(accumulate, records, totals if totals is not None else {})


__all__ = ["AggregateTotal", "Totals", "accumulate", "aggregate"]
