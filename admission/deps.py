"""Shared FastAPI dependencies for database access, admin authentication and rate limiting."""

from typing import Optional

from fastapi import Depends, Request
from sqlmodel import Session

from admission.config import TRUST_PROXY_HEADERS
from admission.database import get_session
from admission.errors import AuthenticationError
from admission.models import AdminUser
from admission.rate_limit import limiter


def is_admin(session: Session, admin_id: Optional[int]) -> bool:
    """Capability check consumed by the administrative surface only."""
    if admin_id is None:
        return False
    admin = session.get(AdminUser, admin_id)
    return admin is not None and admin.is_active


def get_current_admin(
    request: Request, session: Session = Depends(get_session)
) -> Optional[AdminUser]:
    """Return the logged-in administrator based on the session cookie, if any."""
    admin_id = request.session.get("admin_id")
    if not admin_id:
        return None

    if not is_admin(session, admin_id):
        # Clear any stale session
        request.session.clear()
        return None
    return session.get(AdminUser, admin_id)


def require_admin(current_admin: Optional[AdminUser] = Depends(get_current_admin)) -> AdminUser:
    if current_admin is None:
        raise AuthenticationError("Administrator login required")
    return current_admin


def client_identifier(request: Request) -> str:
    """Source address of the caller, used as the rate-limit key.

    X-Forwarded-For is client-controlled, so it is read only when the service
    is configured to sit behind a trusted proxy.
    """
    forwarded = request.headers.get("x-forwarded-for") if TRUST_PROXY_HEADERS else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limited(scope: str):
    """Dependency factory that charges one request against ``scope`` for the caller."""

    def wrapper(request: Request) -> None:
        limiter.hit(scope, client_identifier(request))

    return wrapper
