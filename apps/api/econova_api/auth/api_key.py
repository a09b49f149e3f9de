"""API key authentication with prefix+digest lookup."""

import hashlib
import hmac
import json
import logging
import secrets
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from econova_api.db.session import get_db
from econova_api.models import APIKey, Tenant
from econova_api.settings import get_settings
from econova_api.utils.clock import utcnow

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)

KEY_PREFIX_LENGTH = 8


@dataclass
class Principal:
    """Authenticated caller: the tenant and the scopes of the key used."""

    tenant: Tenant
    api_key_id: Optional[int] = None
    scopes: list[str] = field(default_factory=list)


def compute_key_prefix(raw_key: str) -> str:
    """Compute prefix (first 8 chars) of API key."""
    return raw_key[:KEY_PREFIX_LENGTH] if len(raw_key) >= KEY_PREFIX_LENGTH else raw_key


def compute_key_digest(raw_key: str) -> str:
    """Compute HMAC-SHA256 digest of API key."""
    secret = get_settings().secret_key.encode()
    return hmac.new(secret, raw_key.encode(), hashlib.sha256).hexdigest()


def generate_api_key() -> str:
    """Generate a new raw API key."""
    return f"eco_{secrets.token_urlsafe(32)}"


def issue_api_key(
    db: Session,
    tenant: Tenant,
    raw_key: Optional[str] = None,
    scopes: Optional[list[str]] = None,
    label: Optional[str] = None,
) -> tuple[APIKey, str]:
    """Store a key for the tenant and return it with the raw secret."""
    raw_key = raw_key or generate_api_key()
    if len(raw_key) < KEY_PREFIX_LENGTH:
        raise ValueError(f"API keys must be at least {KEY_PREFIX_LENGTH} characters")
    api_key = APIKey(
        tenant_id=tenant.id,
        prefix=compute_key_prefix(raw_key),
        digest=compute_key_digest(raw_key),
        label=label,
        scopes=json.dumps(scopes or []),
        is_active=True,
    )
    db.add(api_key)
    db.flush()
    return api_key, raw_key


def parse_scopes(api_key: APIKey) -> list[str]:
    """Decode the JSON scope list stored on a key."""
    if not api_key.scopes:
        return []
    try:
        scopes = json.loads(api_key.scopes)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Malformed scopes on API key", extra={"api_key_id": api_key.id})
        return []
    return [s for s in scopes if isinstance(s, str)] if isinstance(scopes, list) else []


def get_tenant_by_api_key(db: Session, api_key: str) -> Optional[tuple[Tenant, APIKey]]:
    """Get tenant and key row by API key using prefix+digest lookup."""
    if not api_key or len(api_key) < KEY_PREFIX_LENGTH:
        return None

    prefix = compute_key_prefix(api_key)
    digest = compute_key_digest(api_key)

    candidates = (
        db.query(APIKey)
        .filter(
            APIKey.prefix == prefix,
            APIKey.is_active == True,  # noqa: E712
            APIKey.revoked_at.is_(None),
        )
        .all()
    )
    for api_key_obj in candidates:
        # Constant-time comparison of digest
        if hmac.compare_digest(api_key_obj.digest, digest):
            api_key_obj.last_used_at = utcnow()
            db.flush()
            tenant = db.query(Tenant).filter(Tenant.id == api_key_obj.tenant_id).first()
            return (tenant, api_key_obj) if tenant else None

    return None


async def get_current_principal(
    request: Request,
    x_api_key: Optional[str] = Security(api_key_header),
    db: Session = Depends(get_db),
) -> Principal:
    """Authenticate the request and expose the tenant on ``request.state``."""
    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide x-api-key header.",
        )

    result = get_tenant_by_api_key(db, x_api_key)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or revoked API key.",
        )

    tenant, api_key_obj = result
    if tenant.status != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Tenant status is {tenant.status}.",
        )

    request.state.tenant = tenant
    request.state.tenant_id = tenant.id
    logger.info(
        "Authenticated request",
        extra={
            "tenant_id": tenant.id,
            "correlation_id": getattr(request.state, "correlation_id", None),
            "path": request.url.path,
        },
    )
    return Principal(tenant=tenant, api_key_id=api_key_obj.id, scopes=parse_scopes(api_key_obj))
