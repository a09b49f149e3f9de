"""Official ledger (certification dataset) model."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, JSON, String, UniqueConstraint

from econova_api.db.base import Base
from econova_api.utils.clock import utcnow


class OfficialLedgerRecord(Base):
    """Certified monthly totals, written only by a month transfer."""

    __tablename__ = "official_ledger_records"
    __table_args__ = (
        UniqueConstraint("tenant_id", "year", "month", name="uq_official_ledger_tenant_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    month = Column(Integer, nullable=False)
    label = Column(String(20), nullable=False)  # e.g. "Ene 2025"

    total_recycling = Column(Float, nullable=False)
    total_compost = Column(Float, nullable=False)
    total_reuse = Column(Float, nullable=False)
    total_landfill = Column(Float, nullable=False)
    total_diverted = Column(Float, nullable=False)
    total_generated = Column(Float, nullable=False)
    deviation_percentage = Column(Float, nullable=False)
    diverted_breakdown = Column(JSON, nullable=False)  # {category: {material: kg}}
    not_diverted_breakdown = Column(JSON, nullable=False)  # {material: kg}

    source_summary_id = Column(Integer, ForeignKey("monthly_summaries.id"), nullable=False)
    source_entry_count = Column(Integer, nullable=False)
    closed_at = Column(DateTime, nullable=False)
    closed_by = Column(String(255), nullable=False)
    recorded_at = Column(DateTime, default=utcnow, nullable=False)
