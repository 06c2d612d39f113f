"""
Cookie-based session management.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Request, Response
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from ..db.models import generate_uuid


# Session duration: 24 hours
SESSION_MAX_AGE = 24 * 60 * 60  # seconds
SESSION_COOKIE_NAME = "session"


class SessionManager:
    """Manages signed cookie-based sessions."""

    def __init__(self, secret_key: str):
        """
        Initialize session manager.

        Args:
            secret_key: Secret key for signing cookies
        """
        self._serializer = URLSafeTimedSerializer(secret_key)

    def build_session(
        self,
        user_id: str,
        email: str,
        role: str,
        access_token: str,
        cart_id: Optional[str] = None,
    ) -> dict:
        """Session payload for a freshly signed-in user."""
        return {
            "user_id": user_id,
            "email": email,
            "role": role,
            "access_token": access_token,
            "cart_id": cart_id or generate_uuid(),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

    def encode(self, session_data: dict) -> str:
        return self._serializer.dumps(session_data)

    def create_session(self, response: Response, session_data: dict) -> None:
        """
        Sign the session data and set the cookie.

        Args:
            response: FastAPI response object
            session_data: Payload from build_session
        """
        response.set_cookie(
            key=SESSION_COOKIE_NAME,
            value=self.encode(session_data),
            max_age=SESSION_MAX_AGE,
            httponly=True,  # Not accessible via JavaScript
            samesite="lax",  # CSRF protection
            secure=False,  # Set to True in production with HTTPS
        )

    def get_session(self, request: Request) -> Optional[dict]:
        """
        Get session data from request cookie.

        Args:
            request: FastAPI request object

        Returns:
            Session data dict or None if invalid/expired
        """
        token = request.cookies.get(SESSION_COOKIE_NAME)
        if not token:
            return None

        try:
            session_data = self._serializer.loads(
                token, max_age=SESSION_MAX_AGE
            )
        except (BadSignature, SignatureExpired):
            return None

        if not isinstance(session_data, dict) or not session_data.get("user_id"):
            return None
        return session_data

    def clear_session(self, response: Response) -> None:
        """
        Clear the session cookie.

        Args:
            response: FastAPI response object
        """
        response.delete_cookie(
            key=SESSION_COOKIE_NAME,
            httponly=True,
            samesite="lax",
        )

    def is_authenticated(self, request: Request) -> bool:
        return self.get_session(request) is not None
