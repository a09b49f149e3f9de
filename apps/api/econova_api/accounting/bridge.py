"""Official ledger bridge: publishes frozen monthly summaries for certification."""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from econova_api.accounting import status as states
from econova_api.accounting.catalog import DIVERTED_CATEGORIES, LANDFILL, month_label
from econova_api.accounting.errors import BridgeError, PreconditionError
from econova_api.models import MonthlySummary, OfficialLedgerRecord
from econova_api.settings import get_settings
from econova_api.utils import metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiversionTotals:
    total_diverted: float
    total_generated: float
    deviation_percentage: float


def diversion_totals(
    recycling: float,
    compost: float,
    reuse: float,
    landfill: float,
    decimals: Optional[int] = None,
) -> DiversionTotals:
    """Diverted and generated weight plus the diversion percentage.

    Landfill is the only non-diverted category. The percentage is 0 when
    nothing was generated and is clamped to [0, 100].
    """
    if decimals is None:
        decimals = get_settings().deviation_decimals
    total_diverted = math.fsum((recycling, compost, reuse))
    total_generated = total_diverted + landfill
    if total_generated <= 0:
        percentage = 0.0
    else:
        percentage = round(total_diverted / total_generated * 100, decimals)
    return DiversionTotals(
        total_diverted=total_diverted,
        total_generated=total_generated,
        deviation_percentage=min(100.0, max(0.0, percentage)),
    )


class OfficialLedgerBridge:
    """Upserts certification records keyed by (tenant_id, year, month)."""

    def __init__(self, db: Session):
        """Initialize bridge."""
        self.db = db

    def find(self, tenant_id: int, year: int, month: int) -> Optional[OfficialLedgerRecord]:
        return (
            self.db.query(OfficialLedgerRecord)
            .filter(
                OfficialLedgerRecord.tenant_id == tenant_id,
                OfficialLedgerRecord.year == year,
                OfficialLedgerRecord.month == month,
            )
            .first()
        )

    def build_values(self, summary: MonthlySummary) -> dict:
        """Map a frozen summary onto official ledger columns."""
        state = summary.lifecycle
        if isinstance(state, states.Open):
            raise PreconditionError(
                "Only closed months can be published to the official ledger",
                tenant_id=summary.tenant_id,
                year=summary.year,
                month=summary.month,
            )

        totals = diversion_totals(
            summary.total_recycling,
            summary.total_compost,
            summary.total_reuse,
            summary.total_landfill,
        )
        breakdowns = summary.breakdowns_by_material
        return {
            "label": month_label(summary.year, summary.month),
            "total_recycling": summary.total_recycling,
            "total_compost": summary.total_compost,
            "total_reuse": summary.total_reuse,
            "total_landfill": summary.total_landfill,
            "total_diverted": totals.total_diverted,
            "total_generated": totals.total_generated,
            "deviation_percentage": totals.deviation_percentage,
            "diverted_breakdown": {category: breakdowns[category] for category in DIVERTED_CATEGORIES},
            "not_diverted_breakdown": breakdowns[LANDFILL],
            "source_summary_id": summary.id,
            "source_entry_count": summary.entry_count,
            "closed_at": state.closed_at,
            "closed_by": state.closed_by,
        }

    def _upsert(self, summary: MonthlySummary, values: dict) -> OfficialLedgerRecord:
        record = self.find(summary.tenant_id, summary.year, summary.month)
        if record is None:
            record = OfficialLedgerRecord(
                tenant_id=summary.tenant_id,
                year=summary.year,
                month=summary.month,
                **values,
            )
            self.db.add(record)
        else:
            for column, value in values.items():
                setattr(record, column, value)
        self.db.flush()
        return record

    def write(self, summary: MonthlySummary) -> OfficialLedgerRecord:
        """Publish the summary. Raises BridgeError if storage fails; nothing is left half-written."""
        values = self.build_values(summary)
        try:
            with self.db.begin_nested():
                record = self._upsert(summary, values)
        except SQLAlchemyError as e:
            metrics.bridge_writes.labels(status="failed").inc()
            logger.error(
                f"Official ledger write failed: {e}",
                extra={"tenant_id": summary.tenant_id, "year": summary.year, "month": summary.month},
                exc_info=True,
            )
            raise BridgeError(
                "Official ledger is unavailable; the month stays closed and transfer can be retried",
                tenant_id=summary.tenant_id,
                year=summary.year,
                month=summary.month,
            ) from e

        metrics.bridge_writes.labels(status="written").inc()
        logger.info(
            "Official ledger record written",
            extra={
                "tenant_id": summary.tenant_id,
                "year": summary.year,
                "month": summary.month,
                "deviation_percentage": record.deviation_percentage,
            },
        )
        return record
