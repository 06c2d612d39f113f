"""
Authentication accessor for the hosted backend.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

from .client import BackendAuthError, BackendError

if TYPE_CHECKING:
    from .client import BackendClient

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    """The signed-in account as the backend reports it."""
    id: str
    email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "AuthUser":
        return cls(
            id=payload["id"],
            email=payload.get("email"),
            metadata=payload.get("user_metadata") or {},
        )


@dataclass
class AuthSession:
    """Tokens returned by a successful sign-in."""
    access_token: str
    refresh_token: Optional[str]
    expires_in: Optional[int]
    user: AuthUser


class BackendAuth:
    """Sign-in, current-user lookup and sign-out."""

    def __init__(self, client: "BackendClient"):
        self._client = client

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """
        Exchange credentials for a session.

        Raises:
            BackendAuthError: If the credentials are rejected
        """
        try:
            data = await self._client.request(
                "POST",
                f"{self._client.AUTH_PATH}/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                authenticated=False,
            )
        except BackendAuthError:
            raise
        except BackendError as e:
            if e.status_code == 400:
                raise BackendAuthError(e.message, status_code=400, code=e.code) from e
            raise

        if not data or "access_token" not in data:
            raise BackendAuthError("Sign-in response did not include a token")

        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            user=AuthUser.from_payload(data["user"]),
        )

    async def get_user(self) -> Optional[AuthUser]:
        """Return the user behind the client's token, or None when anonymous."""
        if not self._client.access_token:
            return None
        data = await self._client.request("GET", f"{self._client.AUTH_PATH}/user")
        if not data:
            return None
        return AuthUser.from_payload(data)

    async def sign_out(self) -> None:
        """Revoke the client's token. Anonymous clients are a no-op."""
        if not self._client.access_token:
            return
        try:
            await self._client.request("POST", f"{self._client.AUTH_PATH}/logout")
        except BackendAuthError:
            # Token already expired or revoked
            logger.debug("Sign-out with an expired token")
