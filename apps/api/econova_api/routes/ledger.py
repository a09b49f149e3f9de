"""Official ledger (certification dataset) endpoints."""

from fastapi import APIRouter, Depends, Path, Response
from sqlalchemy.orm import Session

from econova_api.accounting.service import WasteAccountingService
from econova_api.auth.api_key import Principal
from econova_api.auth.scopes import LEDGER_READ, require_scope
from econova_api.db.session import get_db
from econova_api.routes.schemas import AnnualTotals, OfficialRecordResponse, OfficialYearResponse

router = APIRouter(prefix="/v1", tags=["official-ledger"])


@router.get("/official-ledger/{year}", response_model=OfficialYearResponse)
async def official_year(
    year: int = Path(..., ge=1900, le=9999),
    principal: Principal = Depends(require_scope(LEDGER_READ)),
    db: Session = Depends(get_db),
):
    """Transferred months of a year with the annual diversion rate."""
    service = WasteAccountingService(db, tenant_id=principal.tenant.id)
    view = service.official_year(year)
    db.commit()
    return OfficialYearResponse(
        year=year,
        records=[OfficialRecordResponse.model_validate(record) for record in view["records"]],
        annual=AnnualTotals(**view["annual"]),
    )


@router.get("/official-ledger/{year}/export.csv")
async def export_official_year(
    year: int = Path(..., ge=1900, le=9999),
    principal: Principal = Depends(require_scope(LEDGER_READ)),
    db: Session = Depends(get_db),
):
    """CSV export of the year's official records."""
    service = WasteAccountingService(db, tenant_id=principal.tenant.id)
    content = service.export_official_csv(year)
    db.commit()
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="trazabilidad_{principal.tenant.label}_{year}.csv"',
            "Cache-Control": "no-cache",
        },
    )


@router.get("/materials")
async def materials(
    principal: Principal = Depends(require_scope(LEDGER_READ)),
    db: Session = Depends(get_db),
):
    """Allowed materials per category for the calling tenant."""
    service = WasteAccountingService(db, tenant_id=principal.tenant.id)
    catalog = service.materials()
    db.commit()
    return catalog
