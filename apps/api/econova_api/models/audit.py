"""Accounting audit trail models."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, JSON, String, UniqueConstraint

from econova_api.db.base import Base
from econova_api.utils.clock import utcnow


class AuditEvent(Base):
    """Append-only audit trail with per-tenant hash chaining."""

    __tablename__ = "audit_events"
    __table_args__ = (
        # A second event claiming the same position would fork the chain.
        UniqueConstraint("tenant_id", "tenant_sequence", name="uq_audit_events_tenant_sequence"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_sequence = Column(BigInteger, nullable=False)
    event_hash = Column(String(64), nullable=False, unique=True, index=True)
    previous_event_hash = Column(String(64), nullable=True, index=True)  # NULL for first event
    correlation_id = Column(String(255), nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    event_type = Column(String(100), nullable=False, index=True)  # entry.recorded, month.closed, ...
    payload_json = Column(JSON, nullable=False)
    event_timestamp = Column(DateTime, default=utcnow, nullable=False)


class TenantSequence(Base):
    """Last allocated audit position per tenant. Locked while an event is appended."""

    __tablename__ = "tenant_sequences"

    tenant_id = Column(Integer, ForeignKey("tenants.id"), primary_key=True, index=True)
    last_sequence = Column(BigInteger, default=0, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
