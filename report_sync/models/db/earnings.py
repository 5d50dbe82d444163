"""
SQLAlchemy model for per-affiliate earnings reconciled from the reporting API.
"""
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import Integer, String, Numeric, Date, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from report_sync.database import Base

# report_date used for the single cumulative row per key (accumulate-lifetime policy)
LIFETIME_SENTINEL_DATE = date(1970, 1, 1)

# Matches the scale of the revenue column.
REVENUE_QUANTUM = Decimal("0.0001")


def quantize_revenue(value: Decimal) -> Decimal:
    return value.quantize(REVENUE_QUANTUM, rounding=ROUND_HALF_UP)


class AffiliateEarning(Base):
    __tablename__ = "affiliate_earnings_daily"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    affiliate_key: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    report_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    conversions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revenue: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False, default=Decimal("0"))

    created_at = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Backs the upsert conflict target; one row per key per date.
    __table_args__ = (
        UniqueConstraint("affiliate_key", "report_date", name="unique_affiliate_key_date"),
    )
