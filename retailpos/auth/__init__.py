"""
Authentication module.
"""

from .session import SessionManager, SESSION_COOKIE_NAME, SESSION_MAX_AGE
from .roles import ROLE_LABELS, ROLE_RANK, has_role, parse_role
from .profiles import fetch_profile, fetch_profiles, update_profile

__all__ = [
    "SessionManager",
    "SESSION_COOKIE_NAME",
    "SESSION_MAX_AGE",
    "ROLE_LABELS",
    "ROLE_RANK",
    "has_role",
    "parse_role",
    "fetch_profile",
    "fetch_profiles",
    "update_profile",
]
