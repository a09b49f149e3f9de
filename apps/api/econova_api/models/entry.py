"""Daily waste entry model."""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text

from econova_api.db.base import Base
from econova_api.utils.clock import utcnow


class DailyWasteEntry(Base):
    """A single disposal observation. Rows are never updated or deleted."""

    __tablename__ = "daily_waste_entries"
    __table_args__ = (
        CheckConstraint("kg >= 0", name="ck_daily_waste_entries_kg_non_negative"),
        CheckConstraint(
            "category IN ('recycling', 'compost', 'reuse', 'landfill')",
            name="ck_daily_waste_entries_category",
        ),
        Index("ix_daily_waste_entries_tenant_month", "tenant_id", "year", "month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    entry_date = Column(Date, nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    category = Column(String(20), nullable=False)
    material = Column(String(120), nullable=False)
    kg = Column(Float, nullable=False)
    location = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    correlation_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
