"""Admin routes for tenant management and audit verification."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from econova_api.accounting.catalog import CATEGORIES
from econova_api.audit.service import AuditTrail
from econova_api.auth.api_key import issue_api_key
from econova_api.auth.scopes import ALL_SCOPES, require_admin
from econova_api.db.session import get_db
from econova_api.models import Tenant

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


class TenantCreate(BaseModel):
    """Tenant creation request."""

    label: str = Field(..., min_length=1, max_length=255)
    display_name: Optional[str] = None
    api_key: Optional[str] = Field(None, min_length=8, description="Raw key; generated when omitted")
    scopes: list[str] = Field(default_factory=lambda: list(ALL_SCOPES))
    materials: Optional[dict[str, list[str]]] = Field(
        None, description="Per-category material catalog override"
    )


class TenantResponse(BaseModel):
    """Tenant response."""

    id: int
    label: str
    display_name: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class TenantCreatedResponse(BaseModel):
    tenant: TenantResponse
    api_key: str
    scopes: list[str]


class AuditVerification(BaseModel):
    tenant_id: int
    valid: bool
    error: Optional[str] = None


@router.post("/tenants", response_model=TenantCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    tenant_data: TenantCreate,
    db: Session = Depends(get_db),
):
    """Create a new tenant and its first API key."""
    existing = db.query(Tenant).filter(Tenant.label == tenant_data.label).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Tenant with label '{tenant_data.label}' already exists",
        )

    unknown_scopes = sorted(set(tenant_data.scopes) - set(ALL_SCOPES))
    if unknown_scopes:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown scopes: {', '.join(unknown_scopes)}",
        )

    if tenant_data.materials:
        unknown_categories = sorted(set(tenant_data.materials) - set(CATEGORIES))
        if unknown_categories:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Unknown waste categories: {', '.join(unknown_categories)}",
            )

    tenant = Tenant(
        label=tenant_data.label,
        display_name=tenant_data.display_name,
        status="active",
        materials_json=tenant_data.materials,
    )
    db.add(tenant)
    db.flush()

    _, raw_key = issue_api_key(
        db,
        tenant,
        raw_key=tenant_data.api_key,
        scopes=tenant_data.scopes,
        label="Initial API Key",
    )
    db.commit()
    db.refresh(tenant)

    return TenantCreatedResponse(
        tenant=TenantResponse.model_validate(tenant),
        api_key=raw_key,
        scopes=tenant_data.scopes,
    )


@router.get("/tenants/{tenant_id}/audit/verify", response_model=AuditVerification)
async def verify_audit_trail(
    tenant_id: int,
    db: Session = Depends(get_db),
):
    """Recompute the tenant's audit hash chain."""
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant {tenant_id} not found",
        )

    valid, error = AuditTrail(db).verify_chain(tenant_id)
    return AuditVerification(tenant_id=tenant_id, valid=valid, error=error)
