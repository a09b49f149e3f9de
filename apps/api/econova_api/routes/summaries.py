"""Monthly summary and lifecycle endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.orm import Session

from econova_api.accounting.errors import AccountingError
from econova_api.accounting.service import WasteAccountingService
from econova_api.auth.api_key import Principal
from econova_api.auth.scopes import LEDGER_READ, MONTHS_CLOSE, MONTHS_TRANSFER, require_scope
from econova_api.db.session import get_db
from econova_api.routes.schemas import (
    CloseRequest,
    EntryResponse,
    MonthResponse,
    OfficialRecordResponse,
    SummaryResponse,
    TransferResponse,
)

router = APIRouter(prefix="/v1/monthly-summary", tags=["monthly-summary"])

YearParam = Annotated[int, Path(ge=1900, le=9999)]
MonthParam = Annotated[int, Path(ge=1, le=12)]


@router.get("/{year}/{month}", response_model=MonthResponse)
async def get_summary(
    year: YearParam,
    month: MonthParam,
    principal: Principal = Depends(require_scope(LEDGER_READ)),
    db: Session = Depends(get_db),
):
    """Summary, entries and closability of a tenant-month."""
    service = WasteAccountingService(db, tenant_id=principal.tenant.id)
    try:
        view = service.get_summary(year, month)
        response = MonthResponse(
            summary=SummaryResponse.model_validate(view.summary),
            entries=[EntryResponse.model_validate(entry) for entry in view.entries],
            can_close=view.can_close,
            unaggregated_entry_count=view.unaggregated_entry_count,
        )
        db.commit()
    except AccountingError:
        db.rollback()
        raise
    return response


@router.post("/{year}/{month}/close", response_model=SummaryResponse)
async def close_month(
    request_data: CloseRequest,
    request: Request,
    year: YearParam,
    month: MonthParam,
    principal: Principal = Depends(require_scope(MONTHS_CLOSE)),
    db: Session = Depends(get_db),
):
    """Close the month and freeze its totals."""
    service = WasteAccountingService(db, tenant_id=principal.tenant.id)
    try:
        summary = service.close_month(
            year,
            month,
            request_data.closed_by,
            correlation_id=getattr(request.state, "correlation_id", None),
        )
        response = SummaryResponse.model_validate(summary)
        db.commit()
    except AccountingError:
        db.rollback()
        raise
    return response


@router.post("/{year}/{month}/transfer", response_model=TransferResponse)
async def transfer_month(
    request: Request,
    year: YearParam,
    month: MonthParam,
    principal: Principal = Depends(require_scope(MONTHS_TRANSFER)),
    db: Session = Depends(get_db),
):
    """Publish a closed month to the official ledger. Retrying is safe."""
    service = WasteAccountingService(db, tenant_id=principal.tenant.id)
    try:
        result = service.transfer_month(
            year,
            month,
            correlation_id=getattr(request.state, "correlation_id", None),
        )
        response = TransferResponse(
            summary=SummaryResponse.model_validate(result.summary),
            official_record=OfficialRecordResponse.model_validate(result.record),
            replayed=not result.applied,
        )
        db.commit()
    except AccountingError:
        db.rollback()
        raise
    return response
