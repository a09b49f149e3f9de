"""Monthly summary persistence: creation, locking, recomputation and transitions."""

import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from econova_api.accounting import status as states
from econova_api.accounting.aggregator import MonthlyAggregate, aggregate
from econova_api.accounting.errors import ValidationError
from econova_api.models import DailyWasteEntry, MonthlySummary
from econova_api.utils.clock import utcnow

logger = logging.getLogger(__name__)


def validate_period(year: int, month: int) -> None:
    """Reject tenant-month keys that cannot exist."""
    if not isinstance(year, int) or not 1900 <= year <= 9999:
        raise ValidationError(f"Invalid year {year!r}", field="year")
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {month!r}", field="month")


class SummaryRepository:
    """Access to MonthlySummary rows keyed by (tenant_id, year, month)."""

    def __init__(self, db: Session):
        """Initialize repository."""
        self.db = db

    def _query(self, tenant_id: int, year: int, month: int):
        return self.db.query(MonthlySummary).filter(
            MonthlySummary.tenant_id == tenant_id,
            MonthlySummary.year == year,
            MonthlySummary.month == month,
        )

    def find(self, tenant_id: int, year: int, month: int) -> Optional[MonthlySummary]:
        return self._query(tenant_id, year, month).first()

    def get_or_create(self, tenant_id: int, year: int, month: int, lock: bool = False) -> MonthlySummary:
        """Return the unique summary for the tenant-month, creating an empty Open one if unseen.

        With ``lock=True`` the row is selected ``FOR UPDATE`` so the caller holds it
        until the transaction ends. Backends without row locks ignore the clause.
        """
        validate_period(year, month)
        query = self._query(tenant_id, year, month).populate_existing()
        if lock:
            query = query.with_for_update()
        summary = query.first()
        if summary is not None:
            return summary

        try:
            with self.db.begin_nested():
                summary = MonthlySummary(
                    tenant_id=tenant_id,
                    year=year,
                    month=month,
                    status=states.OPEN,
                    recycling_breakdown={},
                    compost_breakdown={},
                    reuse_breakdown={},
                    landfill_breakdown={},
                )
                self.db.add(summary)
                self.db.flush()
        except IntegrityError:
            # Another request created the same tenant-month first.
            logger.info(
                "Monthly summary created concurrently",
                extra={"tenant_id": tenant_id, "year": year, "month": month},
            )
            summary = query.one()
        else:
            logger.info(
                "Monthly summary opened",
                extra={"tenant_id": tenant_id, "year": year, "month": month},
            )
        return summary

    def entries(self, tenant_id: int, year: int, month: int):
        """Query of the tenant-month's entries in (date, created_at, id) order."""
        return (
            self.db.query(DailyWasteEntry)
            .filter(
                DailyWasteEntry.tenant_id == tenant_id,
                DailyWasteEntry.year == year,
                DailyWasteEntry.month == month,
            )
            .order_by(
                DailyWasteEntry.entry_date.asc(),
                DailyWasteEntry.created_at.asc(),
                DailyWasteEntry.id.asc(),
            )
        )

    def count_entries(self, tenant_id: int, year: int, month: int) -> int:
        return self.entries(tenant_id, year, month).order_by(None).count()

    def recompute(self, summary: MonthlySummary) -> Optional[MonthlyAggregate]:
        """Replace an Open summary's totals with a full recomputation.

        Closed and transferred summaries are frozen and left untouched.
        """
        if not summary.is_open:
            return None

        result = aggregate(self.entries(summary.tenant_id, summary.year, summary.month))
        breakdowns = result.breakdowns_by_material
        summary.total_recycling = result.total_recycling
        summary.total_compost = result.total_compost
        summary.total_reuse = result.total_reuse
        summary.total_landfill = result.total_landfill
        summary.total_waste = result.total_waste
        summary.recycling_breakdown = breakdowns["recycling"]
        summary.compost_breakdown = breakdowns["compost"]
        summary.reuse_breakdown = breakdowns["reuse"]
        summary.landfill_breakdown = breakdowns["landfill"]
        summary.entry_count = result.entry_count
        summary.updated_at = utcnow()
        self.db.flush()
        return result

    def transition(
        self,
        summary: MonthlySummary,
        expected: str,
        target: states.LifecycleState,
        min_entry_count: Optional[int] = None,
    ) -> bool:
        """Compare-and-set the lifecycle columns.

        The UPDATE only matches while the stored status still equals ``expected``
        (and the entry count guard holds), so of two concurrent callers at
        most one sees a matched row. Returns whether this caller won.
        """
        conditions = [MonthlySummary.id == summary.id, MonthlySummary.status == expected]
        if min_entry_count is not None:
            conditions.append(MonthlySummary.entry_count >= min_entry_count)

        values = states.to_columns(target)
        values["updated_at"] = utcnow()
        self.db.flush()
        result = self.db.execute(
            update(MonthlySummary)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(summary)
        return result.rowcount == 1
