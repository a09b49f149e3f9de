"""API key scope enforcement."""

import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from econova_api.auth.api_key import Principal, get_current_principal
from econova_api.settings import get_settings

ENTRIES_WRITE = "entries:write"
LEDGER_READ = "ledger:read"
MONTHS_CLOSE = "months:close"
MONTHS_TRANSFER = "months:transfer"

ALL_SCOPES = [ENTRIES_WRITE, LEDGER_READ, MONTHS_CLOSE, MONTHS_TRANSFER]

# Scopes for keys used by on-site staff: they record and read, but cannot close or transfer.
STAFF_SCOPES = [ENTRIES_WRITE, LEDGER_READ]


def require_scope(scope: str):
    """Dependency factory: the caller's key must carry ``scope``."""

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if scope not in principal.scopes:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"API key lacks required scope '{scope}'.",
            )
        return principal

    return dependency


async def require_admin(x_admin_token: Optional[str] = Header(default=None)) -> None:
    """Admin endpoints require the configured admin token."""
    expected = get_settings().admin_token
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin token required.",
        )
