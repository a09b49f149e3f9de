"""Daily waste entry endpoints."""

import datetime as dt

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from econova_api.accounting.entries import EntryInput
from econova_api.accounting.errors import AccountingError
from econova_api.accounting.service import WasteAccountingService
from econova_api.auth.api_key import Principal
from econova_api.auth.scopes import ENTRIES_WRITE, LEDGER_READ, require_scope
from econova_api.db.session import get_db
from econova_api.routes.schemas import DailyTotalsResponse, EntryCreate, EntryResponse

router = APIRouter(prefix="/v1/entries", tags=["entries"])


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def record_entry(
    request_data: EntryCreate,
    request: Request,
    principal: Principal = Depends(require_scope(ENTRIES_WRITE)),
    db: Session = Depends(get_db),
):
    """Record a daily disposal observation."""
    service = WasteAccountingService(db, tenant_id=principal.tenant.id)
    try:
        entry = service.record_entry(
            EntryInput(
                date=request_data.date,
                category=request_data.category,
                material=request_data.material,
                kg=request_data.kg,
                location=request_data.location,
                notes=request_data.notes,
            ),
            correlation_id=getattr(request.state, "correlation_id", None),
        )
        db.commit()
    except AccountingError:
        db.rollback()
        raise

    db.refresh(entry)
    return EntryResponse.model_validate(entry)


@router.get("/daily-totals/{day}", response_model=DailyTotalsResponse)
async def daily_totals(
    day: dt.date,
    principal: Principal = Depends(require_scope(LEDGER_READ)),
    db: Session = Depends(get_db),
):
    """Per-category totals recorded on one day."""
    service = WasteAccountingService(db, tenant_id=principal.tenant.id)
    totals = service.daily_totals(day)
    db.commit()
    return DailyTotalsResponse(date=day, **totals)
