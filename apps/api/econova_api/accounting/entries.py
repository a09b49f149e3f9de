"""Daily entry store: validation, persistence and tenant-month queries."""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session

from econova_api.accounting import status as states
from econova_api.accounting.directory import TenantDirectory
from econova_api.accounting.errors import ImmutableLedgerError, ValidationError
from econova_api.accounting.summaries import SummaryRepository
from econova_api.models import DailyWasteEntry, MonthlySummary
from econova_api.settings import Settings, get_settings
from econova_api.utils import metrics
from econova_api.utils.clock import utc_today

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryInput:
    """Raw daily observation as submitted by site staff."""

    date: Union[date, str]
    category: str
    material: str
    kg: Union[float, int, str]
    location: str
    notes: Optional[str] = None


class EntrySequence:
    """Lazy view over one tenant-month's entries.

    Every iteration issues a fresh query, so the sequence can be walked any
    number of times and always reflects the committed entry set.
    """

    def __init__(self, store: "DailyEntryStore", tenant_id: int, year: int, month: int):
        self._summaries = store.summaries
        self.tenant_id = tenant_id
        self.year = year
        self.month = month

    def __iter__(self):
        return iter(self._summaries.entries(self.tenant_id, self.year, self.month).yield_per(200))

    def __len__(self):
        return self._summaries.count_entries(self.tenant_id, self.year, self.month)


class DailyEntryStore:
    """Append-only store of daily waste entries."""

    def __init__(
        self,
        db: Session,
        directory: Optional[TenantDirectory] = None,
        summaries: Optional[SummaryRepository] = None,
        clock: Callable[[], date] = utc_today,
        settings: Optional[Settings] = None,
    ):
        """Initialize entry store."""
        self.db = db
        self.directory = directory or TenantDirectory(db)
        self.summaries = summaries or SummaryRepository(db)
        self.clock = clock
        self.settings = settings or get_settings()

    def _reject(self, reason: str, message: str, **context):
        metrics.entries_rejected.labels(reason=reason).inc()
        raise ValidationError(message, **context)

    def _parse_date(self, value) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                pass
        self._reject("invalid_date", f"Invalid entry date {value!r}; expected YYYY-MM-DD", field="date")

    def _parse_kg(self, value) -> float:
        if isinstance(value, bool):
            self._reject("invalid_weight", "kg must be a number", field="kg")
        try:
            kg = float(value)
        except (TypeError, ValueError):
            self._reject("invalid_weight", f"kg must be a number, got {value!r}", field="kg")
        if not math.isfinite(kg):
            self._reject("invalid_weight", "kg must be a finite number", field="kg")
        if kg < 0:
            self._reject("negative_weight", f"kg must be >= 0, got {kg}", field="kg")
        if kg > self.settings.max_entry_kg:
            self._reject(
                "implausible_weight",
                f"kg {kg} exceeds the plausible maximum of {self.settings.max_entry_kg}",
                field="kg",
            )
        return kg

    def validate(self, tenant, data: EntryInput) -> dict:
        """Validate and normalize an entry. Raises ValidationError; never writes."""
        entry_date = self._parse_date(data.date)
        latest = self.clock() + timedelta(days=self.settings.max_future_days)
        if entry_date < self.settings.earliest_entry_date or entry_date > latest:
            self._reject(
                "implausible_date",
                f"Entry date {entry_date.isoformat()} is outside the accepted range "
                f"{self.settings.earliest_entry_date.isoformat()} .. {latest.isoformat()}",
                field="date",
            )

        kg = self._parse_kg(data.kg)

        try:
            material = self.directory.canonical_material(tenant, data.category, data.material)
        except ValidationError:
            metrics.entries_rejected.labels(reason="unknown_material").inc()
            raise

        location = data.location.strip() if isinstance(data.location, str) else ""
        if not location:
            self._reject("missing_location", "location is required", field="location")

        notes = data.notes.strip() if isinstance(data.notes, str) and data.notes.strip() else None

        return {
            "entry_date": entry_date,
            "year": entry_date.year,
            "month": entry_date.month,
            "category": data.category,
            "material": material,
            "kg": kg,
            "location": location,
            "notes": notes,
        }

    def append(
        self,
        tenant_id: int,
        data: EntryInput,
        correlation_id: Optional[str] = None,
    ) -> tuple[DailyWasteEntry, MonthlySummary]:
        """Validate, persist and re-aggregate.

        The insert and the recomputation share one savepoint: if either fails
        nothing is left behind.
        """
        tenant = self.directory.resolve(tenant_id)
        fields = self.validate(tenant, data)
        year, month = fields["year"], fields["month"]

        with self.db.begin_nested():
            summary = self.summaries.get_or_create(tenant.id, year, month, lock=True)
            if summary.status == states.TRANSFERRED:
                metrics.entries_rejected.labels(reason="month_transferred").inc()
                raise ImmutableLedgerError(
                    f"{year}-{month:02d} was already transferred to the official ledger; "
                    "record the entry against an open month",
                    tenant_id=tenant.id,
                    year=year,
                    month=month,
                )

            entry = DailyWasteEntry(tenant_id=tenant.id, correlation_id=correlation_id, **fields)
            self.db.add(entry)
            self.db.flush()
            self.summaries.recompute(summary)

        if summary.status == states.CLOSED:
            logger.warning(
                "Entry recorded against closed month; snapshot stays frozen",
                extra={"tenant_id": tenant.id, "year": year, "month": month, "entry_id": entry.id},
            )

        metrics.entries_recorded.labels(tenant_id=str(tenant.id), category=entry.category).inc()
        metrics.recorded_kg.observe(entry.kg)
        logger.info(
            "Daily waste entry recorded",
            extra={
                "tenant_id": tenant.id,
                "correlation_id": correlation_id,
                "entry_id": entry.id,
                "year": year,
                "month": month,
            },
        )
        return entry, summary

    def query(self, tenant_id: int, year: int, month: int) -> EntrySequence:
        """Entries of a tenant-month ordered by (date, created_at)."""
        return EntrySequence(self, tenant_id, year, month)

    def on_date(self, tenant_id: int, day: date):
        """Entries recorded for one calendar day."""
        return (
            self.db.query(DailyWasteEntry)
            .filter(DailyWasteEntry.tenant_id == tenant_id, DailyWasteEntry.entry_date == day)
            .order_by(DailyWasteEntry.created_at.asc(), DailyWasteEntry.id.asc())
            .all()
        )
