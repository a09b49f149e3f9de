"""Database models - import all models here for Alembic discovery."""

from econova_api.models.audit import AuditEvent, TenantSequence
from econova_api.models.entry import DailyWasteEntry
from econova_api.models.official import OfficialLedgerRecord
from econova_api.models.summary import MonthlySummary
from econova_api.models.tenant import APIKey, Tenant

__all__ = [
    "Tenant",
    "APIKey",
    "DailyWasteEntry",
    "MonthlySummary",
    "OfficialLedgerRecord",
    "AuditEvent",
    "TenantSequence",
]
