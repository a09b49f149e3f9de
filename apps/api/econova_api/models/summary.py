"""Monthly summary model."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
)

from econova_api.accounting import status as states
from econova_api.db.base import Base
from econova_api.utils.clock import utcnow


class MonthlySummary(Base):
    """Aggregated, lifecycle-tracked rollup of one tenant-month."""

    __tablename__ = "monthly_summaries"
    __table_args__ = (
        UniqueConstraint("tenant_id", "year", "month", name="uq_monthly_summaries_tenant_month"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_monthly_summaries_month"),
        CheckConstraint("entry_count >= 0", name="ck_monthly_summaries_entry_count"),
        CheckConstraint(
            "(status = 'open' AND closed_at IS NULL AND closed_by IS NULL AND transferred_at IS NULL)"
            " OR (status = 'closed' AND closed_at IS NOT NULL AND closed_by IS NOT NULL"
            " AND transferred_at IS NULL)"
            " OR (status = 'transferred' AND closed_at IS NOT NULL AND closed_by IS NOT NULL"
            " AND transferred_at IS NOT NULL)",
            name="ck_monthly_summaries_lifecycle",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    status = Column(String(20), default=states.OPEN, nullable=False)

    total_recycling = Column(Float, default=0.0, nullable=False)
    total_compost = Column(Float, default=0.0, nullable=False)
    total_reuse = Column(Float, default=0.0, nullable=False)
    total_landfill = Column(Float, default=0.0, nullable=False)
    total_waste = Column(Float, default=0.0, nullable=False)
    recycling_breakdown = Column(JSON, default=dict, nullable=False)
    compost_breakdown = Column(JSON, default=dict, nullable=False)
    reuse_breakdown = Column(JSON, default=dict, nullable=False)
    landfill_breakdown = Column(JSON, default=dict, nullable=False)
    entry_count = Column(Integer, default=0, nullable=False)

    closed_at = Column(DateTime, nullable=True)
    closed_by = Column(String(255), nullable=True)
    transferred_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def lifecycle(self) -> states.LifecycleState:
        return states.from_columns(self.status, self.closed_at, self.closed_by, self.transferred_at)

    @property
    def is_open(self) -> bool:
        return self.status == states.OPEN

    @property
    def transferred_to_official(self) -> bool:
        return self.status == states.TRANSFERRED

    @property
    def can_close(self) -> bool:
        return self.status == states.OPEN and self.entry_count > 0

    @property
    def breakdowns_by_material(self) -> dict:
        return {
            "recycling": dict(self.recycling_breakdown or {}),
            "compost": dict(self.compost_breakdown or {}),
            "reuse": dict(self.reuse_breakdown or {}),
            "landfill": dict(self.landfill_breakdown or {}),
        }
