"""Lifecycle controller for monthly summaries.

    open ──close()──▶ closed ──transfer()──▶ transferred

No transition goes backwards. Each transition locks the summary row and
applies the new state with a conditional UPDATE, so concurrent callers on the
same tenant-month cannot both succeed.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from econova_api.accounting import status as states
from econova_api.accounting.bridge import OfficialLedgerBridge
from econova_api.accounting.errors import PreconditionError, ValidationError
from econova_api.accounting.summaries import SummaryRepository
from econova_api.models import MonthlySummary, OfficialLedgerRecord
from econova_api.utils import metrics
from econova_api.utils.clock import utcnow

logger = logging.getLogger(__name__)


class LifecycleController:
    """Guards and applies Open -> Closed -> Transferred transitions."""

    def __init__(
        self,
        db: Session,
        summaries: Optional[SummaryRepository] = None,
        bridge: Optional[OfficialLedgerBridge] = None,
    ):
        """Initialize controller."""
        self.db = db
        self.summaries = summaries or SummaryRepository(db)
        self.bridge = bridge or OfficialLedgerBridge(db)

    def _fail(self, transition: str, message: str, summary: MonthlySummary):
        metrics.month_transitions.labels(transition=transition, outcome="rejected").inc()
        logger.warning(
            message,
            extra={
                "tenant_id": summary.tenant_id,
                "year": summary.year,
                "month": summary.month,
                "status": summary.status,
            },
        )
        raise PreconditionError(
            message,
            tenant_id=summary.tenant_id,
            year=summary.year,
            month=summary.month,
            status=summary.status,
        )

    def close(self, tenant_id: int, year: int, month: int, closed_by: str) -> MonthlySummary:
        """Close an Open month with at least one entry, freezing its totals."""
        if not isinstance(closed_by, str) or not closed_by.strip():
            raise ValidationError("closed_by is required to close a month", field="closed_by")

        summary = self.summaries.get_or_create(tenant_id, year, month, lock=True)
        if summary.status != states.OPEN:
            self._fail("close", f"{year}-{month:02d} is already {summary.status}", summary)

        # Freeze exactly what is stored right now.
        self.summaries.recompute(summary)
        if summary.entry_count <= 0:
            self._fail("close", f"{year}-{month:02d} has no entries to close", summary)

        target = states.Closed(closed_at=utcnow(), closed_by=closed_by.strip())
        if not self.summaries.transition(summary, states.OPEN, target, min_entry_count=1):
            self._fail("close", f"{year}-{month:02d} was modified by a concurrent request", summary)

        metrics.month_transitions.labels(transition="close", outcome="applied").inc()
        logger.info(
            "Month closed",
            extra={
                "tenant_id": tenant_id,
                "year": year,
                "month": month,
                "closed_by": summary.closed_by,
                "entry_count": summary.entry_count,
            },
        )
        return summary

    def transfer(self, tenant_id: int, year: int, month: int) -> tuple[MonthlySummary, OfficialLedgerRecord, bool]:
        """Publish a Closed month to the official ledger and mark it Transferred.

        Calling it again for a Transferred month returns the existing record.
        The last element of the result tells whether this call applied the
        transition. BridgeError propagates with the month still Closed.
        """
        summary = self.summaries.get_or_create(tenant_id, year, month, lock=True)

        if summary.status == states.TRANSFERRED:
            record = self.bridge.find(tenant_id, year, month)
            if record is None:
                self._fail("transfer", f"{year}-{month:02d} is transferred but has no official record", summary)
            metrics.month_transitions.labels(transition="transfer", outcome="replayed").inc()
            return summary, record, False

        if summary.status != states.CLOSED:
            self._fail("transfer", f"{year}-{month:02d} must be closed before transfer", summary)

        record = self.bridge.write(summary)

        closed = summary.lifecycle
        target = states.Transferred(
            closed_at=closed.closed_at,
            closed_by=closed.closed_by,
            transferred_at=utcnow(),
        )
        if not self.summaries.transition(summary, states.CLOSED, target):
            # A concurrent transfer won; its record is the one we just re-upserted.
            if summary.status == states.TRANSFERRED:
                metrics.month_transitions.labels(transition="transfer", outcome="replayed").inc()
                return summary, self.bridge.find(tenant_id, year, month), False
            self._fail("transfer", f"{year}-{month:02d} was modified by a concurrent request", summary)

        metrics.month_transitions.labels(transition="transfer", outcome="applied").inc()
        logger.info(
            "Month transferred to official ledger",
            extra={
                "tenant_id": tenant_id,
                "year": year,
                "month": month,
                "deviation_percentage": record.deviation_percentage,
            },
        )
        return summary, record, True
