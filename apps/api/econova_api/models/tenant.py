"""Tenant and API key models."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from econova_api.db.base import Base
from econova_api.utils.clock import utcnow


class Tenant(Base):
    """Client organization whose waste is accounted for."""

    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    label = Column(String(255), nullable=False, unique=True, index=True)
    display_name = Column(String(255), nullable=True)
    status = Column(String(50), default="active", nullable=False)  # active, suspended
    # Optional per-tenant override of the material catalog: {category: [material, ...]}
    materials_json = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    api_keys = relationship("APIKey", back_populates="tenant", cascade="all, delete-orphan")


class APIKey(Base):
    """API key model for tenant authentication."""

    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    prefix = Column(String(16), nullable=False, index=True)
    digest = Column(String(64), nullable=False, unique=True)
    label = Column(String(255), nullable=True)
    scopes = Column(Text, nullable=True)  # JSON array of scopes
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_used_at = Column(DateTime, nullable=True)
    revoked_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    tenant = relationship("Tenant", back_populates="api_keys")
