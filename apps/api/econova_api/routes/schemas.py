"""Request and response models shared by the API routes."""

import datetime as dt
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field


class EntryCreate(BaseModel):
    """Daily waste entry request."""

    date: dt.date = Field(..., description="Observation date (YYYY-MM-DD); selects the tenant-month")
    category: str = Field(..., description="recycling, compost, reuse or landfill")
    material: str = Field(..., description="Material from the tenant's catalog for the category")
    kg: float = Field(..., description="Weight in kilograms, >= 0")
    location: str = Field(..., description="Where on site the waste was collected")
    notes: Optional[str] = Field(None, description="Free-form observations")


class EntryResponse(BaseModel):
    """Daily waste entry."""

    id: int
    tenant_id: int
    date: dt.date = Field(validation_alias=AliasChoices("entry_date", "date"))
    category: str
    material: str
    kg: float
    location: str
    notes: Optional[str] = None
    created_at: dt.datetime

    class Config:
        from_attributes = True


class SummaryResponse(BaseModel):
    """Monthly summary with lifecycle status."""

    id: int
    tenant_id: int
    year: int
    month: int
    status: str
    total_recycling: float
    total_compost: float
    total_reuse: float
    total_landfill: float
    total_waste: float
    recycling_breakdown: dict[str, float]
    compost_breakdown: dict[str, float]
    reuse_breakdown: dict[str, float]
    landfill_breakdown: dict[str, float]
    entry_count: int
    closed_at: Optional[dt.datetime] = None
    closed_by: Optional[str] = None
    transferred_to_official: bool
    transferred_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class MonthResponse(BaseModel):
    """Summary, entries and closability of a tenant-month."""

    summary: SummaryResponse
    entries: list[EntryResponse]
    can_close: bool
    unaggregated_entry_count: int = 0


class CloseRequest(BaseModel):
    """Month close request."""

    closed_by: str = Field(..., description="Person or team closing the month")


class OfficialRecordResponse(BaseModel):
    """Official ledger record."""

    id: int
    tenant_id: int
    year: int
    month: int
    label: str
    total_recycling: float
    total_compost: float
    total_reuse: float
    total_landfill: float
    total_diverted: float
    total_generated: float
    deviation_percentage: float
    diverted_breakdown: dict[str, dict[str, float]]
    not_diverted_breakdown: dict[str, float]
    source_entry_count: int
    closed_at: dt.datetime
    closed_by: str
    recorded_at: dt.datetime

    class Config:
        from_attributes = True


class TransferResponse(BaseModel):
    """Result of a month transfer."""

    summary: SummaryResponse
    official_record: OfficialRecordResponse
    replayed: bool


class DailyTotalsResponse(BaseModel):
    date: dt.date
    recycling: float
    compost: float
    reuse: float
    landfill: float
    total: float


class AnnualTotals(BaseModel):
    total_diverted: float
    total_generated: float
    deviation_percentage: float


class OfficialYearResponse(BaseModel):
    """Certification view of a year."""

    year: int
    records: list[OfficialRecordResponse]
    annual: AnnualTotals


class ErrorResponse(BaseModel):
    detail: str
    error_code: str
    context: dict[str, Any] = Field(default_factory=dict)
