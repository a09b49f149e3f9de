"""Waste accounting service: the operations exposed to the API and reporting layers."""

import csv
import io
import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from econova_api.accounting.bridge import OfficialLedgerBridge, diversion_totals
from econova_api.accounting.catalog import CATEGORIES
from econova_api.accounting.directory import TenantDirectory
from econova_api.accounting.entries import DailyEntryStore, EntryInput
from econova_api.accounting.lifecycle import LifecycleController
from econova_api.accounting.summaries import SummaryRepository
from econova_api.audit.service import AuditTrail
from econova_api.models import DailyWasteEntry, MonthlySummary, OfficialLedgerRecord

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Mes",
    "Reciclaje (kg)",
    "Composta (kg)",
    "Reuso (kg)",
    "Relleno sanitario (kg)",
    "Total desviado (kg)",
    "Total generado (kg)",
    "Desviación de Relleno Sanitario (%)",
]


@dataclass
class MonthView:
    """A monthly summary together with its entries."""

    summary: MonthlySummary
    entries: list[DailyWasteEntry]
    can_close: bool
    unaggregated_entry_count: int


@dataclass
class TransferResult:
    summary: MonthlySummary
    record: OfficialLedgerRecord
    applied: bool


class WasteAccountingService:
    """Facade over the entry store, lifecycle controller and official ledger."""

    def __init__(self, db: Session, tenant_id: Optional[int] = None, entry_store: Optional[DailyEntryStore] = None):
        """Initialize service with tenant context."""
        self.db = db
        self.tenant_id = tenant_id
        self.directory = TenantDirectory(db)
        self.summaries = SummaryRepository(db)
        self.bridge = OfficialLedgerBridge(db)
        self.entries = entry_store or DailyEntryStore(db, directory=self.directory, summaries=self.summaries)
        self.lifecycle = LifecycleController(db, summaries=self.summaries, bridge=self.bridge)
        self.audit = AuditTrail(db)

    def _enforce_tenant(self, tenant_id: Optional[int] = None) -> int:
        """Resolve the tenant through the directory and return its id."""
        return self.directory.resolve(tenant_id or self.tenant_id).id

    def record_entry(self, data: EntryInput, tenant_id: Optional[int] = None, correlation_id: Optional[str] = None) -> DailyWasteEntry:
        """Record a daily observation and re-aggregate its month."""
        tenant_id = self._enforce_tenant(tenant_id)
        correlation_id = correlation_id or str(uuid.uuid4())
        with self.db.begin_nested():
            entry, summary = self.entries.append(tenant_id, data, correlation_id=correlation_id)
            self.audit.append_event(
                tenant_id,
                correlation_id,
                "entry.recorded",
                {
                    "entry_id": entry.id,
                    "date": entry.entry_date.isoformat(),
                    "category": entry.category,
                    "material": entry.material,
                    "kg": entry.kg,
                    "location": entry.location,
                    "summary_status": summary.status,
                },
            )
        return entry

    def get_summary(self, year: int, month: int, tenant_id: Optional[int] = None) -> MonthView:
        """Summary, entries and whether the month can be closed. Creates the summary if unseen."""
        tenant_id = self._enforce_tenant(tenant_id)
        summary = self.summaries.get_or_create(tenant_id, year, month)
        entries = list(self.entries.query(tenant_id, year, month))
        return MonthView(
            summary=summary,
            entries=entries,
            can_close=summary.can_close,
            unaggregated_entry_count=max(0, len(entries) - summary.entry_count),
        )

    def close_month(self, year: int, month: int, closed_by: str, tenant_id: Optional[int] = None, correlation_id: Optional[str] = None) -> MonthlySummary:
        """Close the month, freezing its totals."""
        tenant_id = self._enforce_tenant(tenant_id)
        summary = self.lifecycle.close(tenant_id, year, month, closed_by)
        self.audit.append_event(
            tenant_id,
            correlation_id or str(uuid.uuid4()),
            "month.closed",
            {
                "year": year,
                "month": month,
                "closed_by": summary.closed_by,
                "entry_count": summary.entry_count,
                "total_waste": summary.total_waste,
            },
        )
        return summary

    def transfer_month(self, year: int, month: int, tenant_id: Optional[int] = None, correlation_id: Optional[str] = None) -> TransferResult:
        """Publish a closed month to the official ledger. Safe to retry."""
        tenant_id = self._enforce_tenant(tenant_id)
        summary, record, applied = self.lifecycle.transfer(tenant_id, year, month)
        if applied:
            self.audit.append_event(
                tenant_id,
                correlation_id or str(uuid.uuid4()),
                "month.transferred",
                {
                    "year": year,
                    "month": month,
                    "official_record_id": record.id,
                    "deviation_percentage": record.deviation_percentage,
                },
            )
        return TransferResult(summary=summary, record=record, applied=applied)

    def daily_totals(self, day: date, tenant_id: Optional[int] = None) -> dict:
        """Per-category kg recorded on one day."""
        tenant_id = self._enforce_tenant(tenant_id)
        weights = {category: [] for category in CATEGORIES}
        for entry in self.entries.on_date(tenant_id, day):
            weights[entry.category].append(entry.kg)
        totals = {category: math.fsum(kgs) for category, kgs in weights.items()}
        totals["total"] = math.fsum(totals.values())
        return totals

    def official_year(self, year: int, tenant_id: Optional[int] = None) -> dict:
        """Official ledger records of a year with the annual diversion rate."""
        tenant_id = self._enforce_tenant(tenant_id)
        records = (
            self.db.query(OfficialLedgerRecord)
            .filter(OfficialLedgerRecord.tenant_id == tenant_id, OfficialLedgerRecord.year == year)
            .order_by(OfficialLedgerRecord.month.asc())
            .all()
        )
        annual = diversion_totals(
            math.fsum(r.total_recycling for r in records),
            math.fsum(r.total_compost for r in records),
            math.fsum(r.total_reuse for r in records),
            math.fsum(r.total_landfill for r in records),
        )
        return {
            "year": year,
            "records": records,
            "annual": {
                "total_diverted": annual.total_diverted,
                "total_generated": annual.total_generated,
                "deviation_percentage": annual.deviation_percentage,
            },
        }

    def export_official_csv(self, year: int, tenant_id: Optional[int] = None) -> str:
        """CSV of the year's official records, prefixed with a BOM for spreadsheet tools."""
        view = self.official_year(year, tenant_id=tenant_id)
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for record in view["records"]:
            writer.writerow(
                [
                    record.label,
                    record.total_recycling,
                    record.total_compost,
                    record.total_reuse,
                    record.total_landfill,
                    record.total_diverted,
                    record.total_generated,
                    record.deviation_percentage,
                ]
            )
        return "\ufeff" + output.getvalue()

    def materials(self, tenant_id: Optional[int] = None) -> dict[str, list[str]]:
        tenant = self.directory.resolve(tenant_id or self.tenant_id)
        return self.directory.allowed_materials(tenant)
