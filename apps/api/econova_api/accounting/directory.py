"""Tenant directory: tenant validation and allowed material sets."""

import unicodedata
from typing import Optional

from sqlalchemy.orm import Session

from econova_api.accounting.catalog import CATEGORIES, DEFAULT_MATERIALS
from econova_api.accounting.errors import TenantNotFoundError, ValidationError
from econova_api.models import Tenant


def _normalize(value: str) -> str:
    return unicodedata.normalize("NFC", value).strip().casefold()


class TenantDirectory:
    """Resolve tenants and the materials each one may record."""

    def __init__(self, db: Session):
        """Initialize directory."""
        self.db = db

    def resolve(self, tenant_id: Optional[int]) -> Tenant:
        """Return the active tenant or raise TenantNotFoundError."""
        if not tenant_id:
            raise TenantNotFoundError("tenant_id must be provided for tenant-isolated operations")
        tenant = self.db.query(Tenant).filter(Tenant.id == tenant_id).first()
        if tenant is None:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found", tenant_id=tenant_id)
        if tenant.status != "active":
            raise TenantNotFoundError(
                f"Tenant {tenant_id} is {tenant.status}", tenant_id=tenant_id
            )
        return tenant

    def allowed_materials(self, tenant: Tenant) -> dict[str, list[str]]:
        """Material catalog for the tenant, falling back to the default catalog per category."""
        override = tenant.materials_json or {}
        return {
            category: list(override.get(category) or DEFAULT_MATERIALS[category])
            for category in CATEGORIES
        }

    def canonical_material(self, tenant: Tenant, category: str, material: str) -> str:
        """Return the catalog spelling of ``material`` or raise ValidationError."""
        if category not in CATEGORIES:
            raise ValidationError(
                f"Unknown waste category '{category}'. Expected one of: {', '.join(CATEGORIES)}",
                field="category",
            )
        if not isinstance(material, str) or not material.strip():
            raise ValidationError("material is required", field="material")

        wanted = _normalize(material)
        for candidate in self.allowed_materials(tenant)[category]:
            if _normalize(candidate) == wanted:
                return candidate
        raise ValidationError(
            f"Material '{material}' is not allowed for category '{category}'",
            field="material",
        )
