"""
Database package - backend row models and the local cart store.
"""

from .models import (
    Category, CategoryRef, Customer, Expense, ExpenseInput, MovementType,
    PaymentMethod, Product, ProductCost, ProductInput, Profile, Sale, SaleItem,
    StockMovement, StockStatus, Supplier, SupplierRef, UserRole, generate_uuid
)
from .sqlite import CartStore

__all__ = [
    "CartStore",
    "Category",
    "CategoryRef",
    "Customer",
    "Expense",
    "ExpenseInput",
    "MovementType",
    "PaymentMethod",
    "Product",
    "ProductCost",
    "ProductInput",
    "Profile",
    "Sale",
    "SaleItem",
    "StockMovement",
    "StockStatus",
    "Supplier",
    "SupplierRef",
    "UserRole",
    "generate_uuid",
]
