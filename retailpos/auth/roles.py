"""
Role hierarchy for route access.
"""

from typing import Optional, Union

from ..db.models import UserRole


ROLE_RANK = {
    UserRole.CASHIER: 1,
    UserRole.INVENTORY_STAFF: 2,
    UserRole.MANAGER: 3,
    UserRole.ADMIN: 4,
}

ROLE_LABELS = {
    UserRole.CASHIER: "Cashier",
    UserRole.INVENTORY_STAFF: "Inventory Staff",
    UserRole.MANAGER: "Manager",
    UserRole.ADMIN: "Admin",
}


def parse_role(value: Union[str, UserRole, None]) -> Optional[UserRole]:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None


def has_role(user_role: Union[str, UserRole, None], required: Union[str, UserRole]) -> bool:
    """True when user_role is at or above required. Unknown roles get nothing."""
    role = parse_role(user_role)
    needed = parse_role(required)
    if role is None or needed is None:
        return False
    return ROLE_RANK[role] >= ROLE_RANK[needed]
