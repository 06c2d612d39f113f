"""
Authentication routes - login/logout.
"""

import asyncio
import logging
import time
from collections import defaultdict
from fastapi import APIRouter, Request, Form
from fastapi.responses import HTMLResponse, RedirectResponse

from ..backend import BackendAuthError, BackendError
from ..dependencies import get_backend, get_cart_store, get_session_manager, check_auth
from ..auth import fetch_profile
from ..templating import render

logger = logging.getLogger(__name__)

router = APIRouter()

# Brute force protection: track failed login attempts by IP
failed_attempts = defaultdict(list)
LOCKOUT_THRESHOLD = 5  # Lock after 5 failed attempts
LOCKOUT_DURATION = 300  # 5 minutes in seconds


def _login_error(request: Request, message: str, status_code: int, email: str = ""):
    return render(
        request,
        "login.html",
        {"error": message, "email": email},
        status_code=status_code,
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, error: str = None):
    """Show login page."""
    if check_auth(request):
        return RedirectResponse(url="/", status_code=303)

    return render(request, "login.html", {"error": error, "email": ""})


@router.post("/login")
async def login(request: Request, email: str = Form(...), password: str = Form(...)):
    """Sign in against the backend, then load the profile role."""
    session_manager = get_session_manager()
    backend = get_backend()
    client_ip = request.client.host if request.client else "unknown"
    current_time = time.time()
    email = email.strip()

    # Clean up old attempts
    failed_attempts[client_ip] = [
        attempt_time for attempt_time in failed_attempts[client_ip]
        if current_time - attempt_time < LOCKOUT_DURATION
    ]

    if len(failed_attempts[client_ip]) >= LOCKOUT_THRESHOLD:
        remaining = int(LOCKOUT_DURATION - (current_time - failed_attempts[client_ip][0]))
        logger.warning(f"Login locked out for {client_ip}")
        return _login_error(
            request,
            f"Too many failed attempts. Try again in {remaining} seconds.",
            429,
            email,
        )

    try:
        auth_session = await backend.auth.sign_in_with_password(email, password)
    except BackendAuthError:
        failed_attempts[client_ip].append(current_time)
        logger.warning(f"Failed login for {email} from {client_ip}")

        # Small delay to slow down brute force (increases with each attempt)
        delay = min(len(failed_attempts[client_ip]) * 0.5, 3)
        await asyncio.sleep(delay)

        return _login_error(request, "Invalid email or password", 401, email)
    except BackendError as e:
        logger.error(f"Sign-in failed: {e}")
        return _login_error(request, f"Sign-in unavailable: {e.message}", 502, email)

    user_backend = backend.with_token(auth_session.access_token)
    try:
        profile = await fetch_profile(user_backend, auth_session.user.id)
    except BackendError as e:
        logger.error(f"Could not load profile for {email}: {e}")
        return _login_error(request, f"Could not load your profile: {e.message}", 502, email)

    if profile is None:
        return _login_error(request, "No profile is set up for this account", 403, email)
    if not profile.is_active:
        logger.warning(f"Inactive account {email} tried to sign in")
        await user_backend.auth.sign_out()
        return _login_error(request, "This account has been deactivated", 403, email)

    failed_attempts[client_ip] = []
    logger.info(f"{email} signed in as {profile.role.value}")

    response = RedirectResponse(url="/", status_code=303)
    session_manager.create_session(
        response,
        session_manager.build_session(
            user_id=auth_session.user.id,
            email=auth_session.user.email or email,
            role=profile.role.value,
            access_token=auth_session.access_token,
        ),
    )
    return response


@router.post("/logout")
async def logout(request: Request):
    """Handle logout: revoke the token and drop the cart."""
    session_manager = get_session_manager()
    session = session_manager.get_session(request)

    if session:
        try:
            await get_backend().with_token(session.get("access_token")).auth.sign_out()
        except BackendError as e:
            logger.warning(f"Sign-out failed: {e}")
        if session.get("cart_id"):
            await get_cart_store().clear(session["cart_id"])

    response = RedirectResponse(url="/login", status_code=303)
    session_manager.clear_session(response)
    return response


@router.get("/logout")
async def logout_get(request: Request):
    """Handle logout via GET."""
    return await logout(request)
