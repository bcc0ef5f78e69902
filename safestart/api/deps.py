"""
API Dependencies

Access guard and shared query parameters for all endpoints.

The access guard turns a bearer token into an immutable Actor:
    extract token -> verify -> load user -> check active -> Actor
Any failure along the way produces the same 401 so clients cannot tell
a malformed token from an expired one or a deactivated account.
"""
from typing import Optional
from fastapi import Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.models.user import User
from safestart.core.context import Actor
from safestart.core.security import InvalidTokenError, decode_access_token
from safestart.core.exceptions import AuthenticationError
from safestart.core import permissions
from safestart.services.base import PageRequest
from safestart.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

# auto_error=False so a missing header gets our 401 envelope, not FastAPI's 403
security = HTTPBearer(auto_error=False)

INVALID_TOKEN = "Invalid or expired token"


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def get_current_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Actor:
    """
    Resolve the caller.

    The user row is re-read on every request so deactivation and role
    changes take effect before the token expires.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(INVALID_TOKEN)

    try:
        claims = decode_access_token(credentials.credentials)
    except InvalidTokenError as e:
        log_security_event("invalid_token", {"reason": str(e), "ip_address": client_ip(request)}, logger)
        raise AuthenticationError(INVALID_TOKEN)

    user = db.query(User).filter(User.id == claims.user_id).first()

    if user is None or not user.is_active:
        log_security_event(
            "invalid_token",
            {"reason": "user_missing_or_inactive", "user_id": claims.user_id},
            logger
        )
        raise AuthenticationError(INVALID_TOKEN)

    if user.company_id != claims.tenant_id:
        log_security_event(
            "invalid_token",
            {"reason": "tenant_mismatch", "user_id": user.id, "tenant_id": claims.tenant_id},
            logger
        )
        raise AuthenticationError(INVALID_TOKEN)

    request.state.tenant_id = user.company_id
    request.state.user_id = user.id

    return Actor.from_user(
        user,
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Admin-only endpoints."""
    permissions.require_admin(actor)
    return actor


async def require_manager(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Admin or supervisor."""
    permissions.require_manager(actor)
    return actor


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
) -> PageRequest:
    return PageRequest(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
