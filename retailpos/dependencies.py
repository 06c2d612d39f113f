"""
FastAPI dependency injection.
Backend client, cart store and session management, plus auth checks.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Request, HTTPException

from .config import settings
from .backend import BackendClient
from .db import CartStore, UserRole
from .auth import SessionManager, has_role, parse_role

logger = logging.getLogger(__name__)


# Global instances (initialized on startup)
_backend: Optional[BackendClient] = None
_cart_store: Optional[CartStore] = None
_session_manager: Optional[SessionManager] = None


@dataclass
class CurrentUser:
    """The signed-in user as recorded in the session cookie."""
    id: str
    email: str
    role: UserRole
    access_token: str
    cart_id: str

    def can(self, role) -> bool:
        return has_role(self.role, role)

    @classmethod
    def from_session(cls, data: dict) -> "CurrentUser":
        return cls(
            id=data["user_id"],
            email=data.get("email", ""),
            role=parse_role(data.get("role")) or UserRole.CASHIER,
            access_token=data.get("access_token", ""),
            cart_id=data.get("cart_id") or data["user_id"],
        )


async def init_dependencies():
    """Initialize global dependencies. Called on app startup."""
    global _backend, _cart_store, _session_manager

    _backend = BackendClient(
        settings.backend_url,
        settings.backend_api_key,
        timeout=settings.request_timeout,
    )

    _cart_store = CartStore(settings.database_path)
    await _cart_store.initialize()

    cutoff = datetime.utcnow() - timedelta(hours=settings.cart_max_age_hours)
    purged = await _cart_store.purge_older_than(cutoff)
    if purged:
        logger.info(f"Purged {purged} stale cart lines")

    _session_manager = SessionManager(settings.session_secret)


async def close_dependencies():
    """Close global dependencies. Called on app shutdown."""
    global _backend, _cart_store
    if _backend:
        await _backend.close()
    if _cart_store:
        await _cart_store.close()


def get_backend() -> BackendClient:
    """Get the shared (anonymous) backend client."""
    if _backend is None:
        raise RuntimeError("Backend client not initialized")
    return _backend


def get_cart_store() -> CartStore:
    """Get the cart store instance."""
    if _cart_store is None:
        raise RuntimeError("Cart store not initialized")
    return _cart_store


def get_session_manager() -> SessionManager:
    """Get the session manager instance."""
    if _session_manager is None:
        raise RuntimeError("Session manager not initialized")
    return _session_manager


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api/")


async def require_auth(request: Request) -> CurrentUser:
    """
    Dependency that requires authentication.
    Redirects to login if not authenticated.
    """
    session = get_session_manager().get_session(request)

    if session is None:
        if _is_api(request):
            raise HTTPException(status_code=401, detail="Not authenticated")
        raise HTTPException(status_code=307, headers={"Location": "/login"})

    user = CurrentUser.from_session(session)
    request.state.user = user
    return user


def require_role(role: UserRole):
    """
    Dependency factory: signed in with at least the given role.
    Pages send under-privileged users back to the dashboard with a notice.
    """

    async def dependency(request: Request, user: CurrentUser = Depends(require_auth)) -> CurrentUser:
        if not user.can(role):
            logger.warning(f"{user.email} ({user.role.value}) denied {request.url.path}")
            if _is_api(request):
                raise HTTPException(status_code=403, detail="Insufficient permissions")
            raise HTTPException(
                status_code=303,
                headers={"Location": "/?notice=You+do+not+have+access+to+that+page&level=error"},
            )
        return user

    return dependency


def check_auth(request: Request) -> bool:
    """Check if user is authenticated (without raising exception)."""
    return get_session_manager().is_authenticated(request)


def user_client(user: CurrentUser) -> BackendClient:
    """Backend client acting with the signed-in user's token."""
    return get_backend().with_token(user.access_token)
