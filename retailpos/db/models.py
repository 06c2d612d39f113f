"""
Pydantic models for backend rows.
The hosted backend owns these tables; the models only validate what comes back.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Role stored on a user's profile."""
    ADMIN = "admin"
    MANAGER = "manager"
    CASHIER = "cashier"
    INVENTORY_STAFF = "inventory_staff"


class PaymentMethod(str, Enum):
    """How a sale was paid."""
    CASH = "cash"
    CARD = "card"
    DIGITAL_WALLET = "digital_wallet"


class StockStatus(str, Enum):
    """Stock level relative to a product's thresholds."""
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    OVER_STOCK = "over_stock"


class MovementType(str, Enum):
    """Reason recorded with a stock adjustment."""
    SALE = "sale"
    RESTOCK = "restock"
    ADJUSTMENT = "adjustment"
    DAMAGE = "damage"
    RETURN = "return"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class Row(BaseModel):
    """Base for backend rows: unknown columns are ignored, aliases optional."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CategoryRef(Row):
    name: str


class SupplierRef(Row):
    name: str


class Category(Row):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Supplier(Row):
    id: str
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Customer(Row):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Product(Row):
    """A sellable catalog item."""
    id: str
    name: str
    description: Optional[str] = None
    barcode: Optional[str] = None
    category_id: Optional[str] = None
    supplier_id: Optional[str] = None
    unit_price: Decimal = Decimal("0")
    cost_price: Decimal = Decimal("0")
    current_stock: int = 0
    min_stock_threshold: int = 10
    max_stock_threshold: int = 1000
    unit: str = "pcs"
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Embedded relations
    category: Optional[CategoryRef] = Field(default=None, alias="categories")
    supplier: Optional[SupplierRef] = Field(default=None, alias="suppliers")

    @property
    def category_name(self) -> Optional[str]:
        return self.category.name if self.category else None


class ProductCost(Row):
    """Product columns embedded in a sale item for COGS and grouping."""
    cost_price: Decimal = Decimal("0")
    category_id: Optional[str] = None
    category: Optional[CategoryRef] = Field(default=None, alias="categories")


class SaleItem(Row):
    id: Optional[str] = None
    sale_id: Optional[str] = None
    product_id: Optional[str] = None
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    created_at: Optional[datetime] = None

    product: Optional[ProductCost] = Field(default=None, alias="products")


class Sale(Row):
    """A completed transaction."""
    id: str
    sale_number: str
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_received: Decimal = Decimal("0")
    change_amount: Decimal = Decimal("0")
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    cashier_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    items: List[SaleItem] = Field(default_factory=list, alias="sale_items")


class Expense(Row):
    id: str
    description: str
    amount: Decimal
    category: str
    expense_date: date
    receipt_url: Optional[str] = None
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Profile(Row):
    """Per-user profile carrying the role."""
    id: str
    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.CASHIER
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts)


class StockMovement(Row):
    id: str
    product_id: str
    quantity: int
    movement_type: str
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class ProductInput(BaseModel):
    """Form input for creating or editing a product."""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    barcode: Optional[str] = None
    category_id: Optional[str] = None
    supplier_id: Optional[str] = None
    unit_price: Decimal = Field(ge=0)
    cost_price: Decimal = Field(default=Decimal("0"), ge=0)
    current_stock: int = Field(default=0, ge=0)
    min_stock_threshold: int = Field(default=10, ge=0)
    max_stock_threshold: int = Field(default=1000, ge=0)
    unit: str = "pcs"
    is_active: bool = True

    def to_row(self) -> dict:
        """Row payload for insert/update; blank optionals become null."""
        row = self.model_dump()
        for key in ("description", "barcode", "category_id", "supplier_id"):
            if not row[key]:
                row[key] = None
        row["unit_price"] = float(self.unit_price)
        row["cost_price"] = float(self.cost_price)
        return row


class ExpenseInput(BaseModel):
    """Form input for an expense."""
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    category: str = Field(min_length=1)
    expense_date: date
    receipt_url: Optional[str] = None

    def to_row(self) -> dict:
        return {
            "description": self.description,
            "amount": float(self.amount),
            "category": self.category,
            "expense_date": self.expense_date.isoformat(),
            "receipt_url": self.receipt_url or None,
        }
