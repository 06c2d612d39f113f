"""
Hosted backend module.
"""

from retailpos.backend.client import (
    BackendClient,
    BackendError,
    BackendAuthError,
    BackendNotFoundError,
)
from retailpos.backend.auth import AuthSession, AuthUser, BackendAuth
from retailpos.backend.query import QueryBuilder
from retailpos.backend.procedures import (
    generate_sale_number,
    update_product_stock,
    get_stock_status,
    has_role,
)

__all__ = [
    "BackendClient",
    "BackendError",
    "BackendAuthError",
    "BackendNotFoundError",
    "AuthSession",
    "AuthUser",
    "BackendAuth",
    "QueryBuilder",
    "generate_sale_number",
    "update_product_stock",
    "get_stock_status",
    "has_role",
]
