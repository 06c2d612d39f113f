"""
Routes package.
"""

from .auth import router as auth_router
from .dashboard import router as dashboard_router
from .sales import router as sales_router
from .invoices import router as invoices_router
from .inventory import router as inventory_router
from .records import categories_router, suppliers_router, customers_router
from .finance import router as finance_router
from .reports import router as reports_router
from .users import router as users_router
from .data import router as data_router

__all__ = [
    "auth_router",
    "dashboard_router",
    "sales_router",
    "invoices_router",
    "inventory_router",
    "categories_router",
    "suppliers_router",
    "customers_router",
    "finance_router",
    "reports_router",
    "users_router",
    "data_router",
]
