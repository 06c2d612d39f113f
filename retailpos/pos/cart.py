"""
Checkout cart: stock-aware line items and sale totals.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from ..currency import format_currency, quantize_money, to_decimal
from ..db.models import PaymentMethod, Product

# Default sales tax
TAX_RATE = Decimal("0.08")


class CartError(Exception):
    """Rejected cart operation."""
    pass


class InsufficientStockError(CartError):
    """The requested quantity exceeds the stock on hand."""

    def __init__(self, product_name: str, available: int):
        if available <= 0:
            message = f"'{product_name}' is out of stock"
        else:
            message = f"Only {available} of '{product_name}' in stock"
        super().__init__(message)
        self.product_name = product_name
        self.available = available


class PaymentError(CartError):
    """Payment does not cover the sale."""
    pass


@dataclass
class CartLine:
    """One product in the cart."""
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    stock: int
    unit: str = "pcs"
    barcode: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> "CartLine":
        return cls(
            product_id=product.id,
            name=product.name,
            unit_price=to_decimal(product.unit_price),
            quantity=quantity,
            stock=product.current_stock,
            unit=product.unit,
            barcode=product.barcode,
        )

    def to_row(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "stock": self.stock,
            "unit": self.unit,
            "barcode": self.barcode,
        }

    @classmethod
    def from_row(cls, row: dict) -> "CartLine":
        return cls(
            product_id=row["product_id"],
            name=row["name"],
            unit_price=to_decimal(row["unit_price"]),
            quantity=int(row["quantity"]),
            stock=int(row["stock"]),
            unit=row.get("unit") or "pcs",
            barcode=row.get("barcode"),
        )


@dataclass
class CartTotals:
    """Amounts shown in the order summary."""
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    item_count: int


@dataclass
class Cart:
    """Ordered list of cart lines."""
    lines: List[CartLine] = field(default_factory=list)

    @classmethod
    def from_rows(cls, rows: List[dict]) -> "Cart":
        return cls(lines=[CartLine.from_row(row) for row in rows])

    def to_rows(self) -> List[dict]:
        return [line.to_row() for line in self.lines]

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def get(self, product_id: str) -> Optional[CartLine]:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def add_product(self, product: Product) -> CartLine:
        """
        Add one unit of a product.

        The product row is the freshly fetched one, so its stock replaces
        whatever the cart remembered.

        Raises:
            InsufficientStockError: If no more units are available
        """
        if product.current_stock <= 0:
            raise InsufficientStockError(product.name, product.current_stock)

        line = self.get(product.id)
        if line is None:
            line = CartLine.from_product(product)
            self.lines.append(line)
            return line

        line.stock = product.current_stock
        line.unit_price = to_decimal(product.unit_price)
        if line.quantity + 1 > line.stock:
            raise InsufficientStockError(line.name, line.stock)
        line.quantity += 1
        return line

    def update_quantity(self, product_id: str, change: int) -> Optional[CartLine]:
        """
        Increment or decrement a line.

        Returns the line, or None when it dropped to zero and was removed.

        Raises:
            CartError: If the product is not in the cart
            InsufficientStockError: If the new quantity exceeds stock
        """
        line = self.get(product_id)
        if line is None:
            raise CartError("Product is not in the cart")
        return self.set_quantity(product_id, line.quantity + change)

    def set_quantity(self, product_id: str, quantity: int) -> Optional[CartLine]:
        line = self.get(product_id)
        if line is None:
            raise CartError("Product is not in the cart")

        quantity = max(0, quantity)
        if quantity > line.quantity and quantity > line.stock:
            raise InsufficientStockError(line.name, line.stock)

        line.quantity = quantity
        self.lines = [item for item in self.lines if item.quantity > 0]
        return line if quantity > 0 else None

    def remove(self, product_id: str) -> None:
        self.lines = [line for line in self.lines if line.product_id != product_id]

    def clear(self) -> None:
        self.lines = []

    def totals(self, tax_rate: Decimal = TAX_RATE) -> CartTotals:
        """subtotal = sum(price x qty), tax = subtotal x rate, total = subtotal + tax."""
        subtotal = sum((line.line_total for line in self.lines), Decimal("0"))
        tax = subtotal * to_decimal(tax_rate)
        return CartTotals(
            subtotal=quantize_money(subtotal),
            tax=quantize_money(tax),
            total=quantize_money(subtotal + tax),
            item_count=sum(line.quantity for line in self.lines),
        )


def calculate_change(
    total: Decimal,
    payment_received: Optional[Decimal],
    method: PaymentMethod,
) -> tuple:
    """
    Work out what the customer paid and the change due.

    Card and digital wallet payments are taken for the exact total.

    Returns:
        (payment_received, change_amount)

    Raises:
        PaymentError: If a cash payment is missing or short
    """
    total = quantize_money(total)
    if PaymentMethod(method) != PaymentMethod.CASH:
        return total, Decimal("0.00")

    if payment_received is None:
        raise PaymentError("Enter the cash amount received")

    received = quantize_money(payment_received)
    if received < total:
        raise PaymentError(f"Cash received is less than the total due ({format_currency(total)})")

    return received, received - total
