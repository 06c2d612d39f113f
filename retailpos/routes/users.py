"""
User management: profile roles and active flags (admin only).
"""

import logging

from fastapi import APIRouter, Request, Form, Depends
from fastapi.responses import HTMLResponse

from ..auth import ROLE_LABELS, fetch_profiles, update_profile
from ..backend import BackendError
from ..db import UserRole
from ..dependencies import CurrentUser, require_role, user_client
from ..templating import redirect_with_notice, render

logger = logging.getLogger(__name__)

require_admin = require_role(UserRole.ADMIN)

router = APIRouter(prefix="/users", dependencies=[Depends(require_admin)])


@router.get("", response_class=HTMLResponse)
async def list_users(request: Request, user: CurrentUser = Depends(require_admin)):
    profiles = await fetch_profiles(user_client(user))
    return render(
        request,
        "users.html",
        {"profiles": profiles, "roles": list(UserRole), "role_labels": ROLE_LABELS},
    )


@router.post("/{profile_id}/role")
async def change_role(profile_id: str, role: str = Form(...), user: CurrentUser = Depends(require_admin)):
    try:
        new_role = UserRole(role)
    except ValueError:
        return redirect_with_notice("/users", f"Unknown role '{role}'", "error")

    try:
        profile = await update_profile(user_client(user), profile_id, role=new_role)
    except BackendError as e:
        return redirect_with_notice("/users", f"Failed to change role: {e.message}", "error")

    if profile is None:
        return redirect_with_notice("/users", "User not found", "error")

    logger.info(f"{user.email} set role of {profile.user_id} to {new_role.value}")
    return redirect_with_notice("/users", f"Role changed to {ROLE_LABELS[new_role]}")


@router.post("/{profile_id}/toggle-active")
async def toggle_active(profile_id: str, active: bool = Form(...), user: CurrentUser = Depends(require_admin)):
    """Activate or deactivate an account. Admins cannot lock themselves out."""
    client = user_client(user)
    profiles = {p.id: p for p in await fetch_profiles(client)}
    target = profiles.get(profile_id)
    if target is None:
        return redirect_with_notice("/users", "User not found", "error")
    if target.user_id == user.id and not active:
        return redirect_with_notice("/users", "You cannot deactivate your own account", "error")

    try:
        await update_profile(client, profile_id, is_active=active)
    except BackendError as e:
        return redirect_with_notice("/users", f"Failed to update user: {e.message}", "error")

    state = "activated" if active else "deactivated"
    logger.info(f"{user.email} {state} {target.user_id}")
    return redirect_with_notice("/users", f"User {state}")
