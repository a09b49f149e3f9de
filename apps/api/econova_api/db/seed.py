"""Seed data for development and testing."""

from sqlalchemy.orm import Session

from econova_api.auth.api_key import issue_api_key
from econova_api.auth.scopes import ALL_SCOPES, STAFF_SCOPES
from econova_api.models import APIKey, Tenant

DEMO_TENANT_LABEL = "avandaro"
DEMO_ADMIN_KEY = "demo-api-key-12345"
DEMO_STAFF_KEY = "demo-staff-key-12345"


def seed_tenants(db: Session) -> Tenant:
    """Seed the demo tenant with a full-access key and an on-site staff key."""
    demo_tenant = db.query(Tenant).filter(Tenant.label == DEMO_TENANT_LABEL).first()
    if not demo_tenant:
        demo_tenant = Tenant(
            label=DEMO_TENANT_LABEL,
            display_name="Club de Golf Avandaro",
            status="active",
        )
        db.add(demo_tenant)
        db.flush()

    has_keys = db.query(APIKey).filter(APIKey.tenant_id == demo_tenant.id).first()
    if not has_keys:
        issue_api_key(db, demo_tenant, raw_key=DEMO_ADMIN_KEY, scopes=ALL_SCOPES, label="Sustainability team")
        issue_api_key(db, demo_tenant, raw_key=DEMO_STAFF_KEY, scopes=STAFF_SCOPES, label="On-site staff")

    return demo_tenant


def seed_all(db: Session):
    """Seed all initial data."""
    seed_tenants(db)
    db.commit()
