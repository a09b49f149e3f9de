"""Pytest configuration and fixtures."""

import os
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from econova_api.accounting.entries import DailyEntryStore, EntryInput
from econova_api.accounting.service import WasteAccountingService
from econova_api.auth.api_key import issue_api_key
from econova_api.auth.scopes import ALL_SCOPES, STAFF_SCOPES
from econova_api.db.base import Base
from econova_api.db.session import enable_sqlite_savepoints, get_db
from econova_api.main import app
from econova_api.models import Tenant

# Use test database URL from environment or default to SQLite in-memory
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite:///:memory:"
)

# Entry dates in tests are plausible up to this day.
FIXED_TODAY = date(2025, 6, 30)

FULL_ACCESS_KEY = "test-full-access-key-0001"
STAFF_KEY = "test-staff-only-key-0002"


@pytest.fixture(scope="function")
def db():
    """
    Create a test database session.

    Set TEST_DATABASE_URL to run against a real PostgreSQL instance.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = enable_sqlite_savepoints(
            create_engine(
                TEST_DATABASE_URL,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        )
    else:
        engine = create_engine(TEST_DATABASE_URL)

    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def test_tenant(db: Session) -> Tenant:
    """Create a test tenant."""
    tenant = Tenant(label="test-tenant", display_name="Test Club", status="active")
    db.add(tenant)
    db.commit()
    return tenant


@pytest.fixture
def entry_store(db: Session) -> DailyEntryStore:
    return DailyEntryStore(db, clock=lambda: FIXED_TODAY)


@pytest.fixture
def service(db: Session, test_tenant: Tenant, entry_store: DailyEntryStore) -> WasteAccountingService:
    return WasteAccountingService(db, tenant_id=test_tenant.id, entry_store=entry_store)


@pytest.fixture
def make_entry():
    """Build an EntryInput with sensible defaults."""

    def _make(category="recycling", material="PET", kg=10.0, day=date(2025, 1, 15), location="Casa Club", notes=None):
        return EntryInput(date=day, category=category, material=material, kg=kg, location=location, notes=notes)

    return _make


@pytest.fixture
def api_keys(db: Session, test_tenant: Tenant) -> dict:
    """A full-access key and an on-site staff key for the test tenant."""
    issue_api_key(db, test_tenant, raw_key=FULL_ACCESS_KEY, scopes=ALL_SCOPES, label="full")
    issue_api_key(db, test_tenant, raw_key=STAFF_KEY, scopes=STAFF_SCOPES, label="staff")
    db.commit()
    return {"full": FULL_ACCESS_KEY, "staff": STAFF_KEY}


@pytest.fixture
def client(db: Session):
    """Test client bound to the test database session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)
