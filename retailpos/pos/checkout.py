"""
Checkout: turn a cart into a recorded sale.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from ..backend import BackendClient, BackendError, generate_sale_number, update_product_stock
from ..db.models import Customer, MovementType, PaymentMethod, Sale, SaleItem
from .cart import TAX_RATE, Cart, calculate_change

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Checkout could not be completed."""

    def __init__(self, message: str, step: Optional[str] = None, sale_number: Optional[str] = None):
        super().__init__(message)
        self.step = step
        self.sale_number = sale_number


@dataclass
class CheckoutResult:
    """The recorded sale and its line items."""
    sale: Sale
    items: List[SaleItem]
    stock_failures: List[str]

    @property
    def complete(self) -> bool:
        return not self.stock_failures


@dataclass
class CustomerDetails:
    """Optional customer captured at the till."""
    name: Optional[str] = None
    phone: Optional[str] = None
    customer_id: Optional[str] = None

    @classmethod
    def from_customer(cls, customer: Customer) -> "CustomerDetails":
        return cls(name=customer.name, phone=customer.phone, customer_id=customer.id)


async def fetch_customers(client: BackendClient) -> List[Customer]:
    rows = await client.table("customers").select("*").order("name").execute()
    return [Customer.model_validate(row) for row in rows]


async def fetch_customer(client: BackendClient, customer_id: str) -> Optional[Customer]:
    rows = await client.table("customers").select("*").eq("id", customer_id).limit(1).execute()
    return Customer.model_validate(rows[0]) if rows else None


def _money(value: Decimal) -> float:
    return float(value)


async def checkout(
    client: BackendClient,
    cart: Cart,
    cashier_id: str,
    payment_method: PaymentMethod,
    payment_received: Optional[Decimal] = None,
    customer: Optional[CustomerDetails] = None,
    notes: Optional[str] = None,
    tax_rate: Decimal = TAX_RATE,
) -> CheckoutResult:
    """
    Record a sale: number it, insert the sale and its items, then move stock.

    The steps are independent backend calls. Nothing is rolled back when a
    later step fails; the error names the step so staff can reconcile.

    Raises:
        CheckoutError: If the cart is empty, payment is short, or the sale
            or its items could not be recorded
        PaymentError: If a cash payment does not cover the total
    """
    if cart.is_empty:
        raise CheckoutError("Cart is empty", step="validate")

    totals = cart.totals(tax_rate)
    received, change = calculate_change(totals.total, payment_received, payment_method)
    customer = customer or CustomerDetails()

    sale_number = None
    try:
        sale_number = await generate_sale_number(client)
    except BackendError as e:
        raise CheckoutError(f"Could not generate a sale number: {e}", step="sale_number") from e

    sale_row = {
        "sale_number": sale_number,
        "subtotal": _money(totals.subtotal),
        "tax_amount": _money(totals.tax),
        "discount_amount": 0,
        "total_amount": _money(totals.total),
        "payment_method": PaymentMethod(payment_method).value,
        "payment_received": _money(received),
        "change_amount": _money(change),
        "customer_id": customer.customer_id or None,
        "customer_name": customer.name or None,
        "customer_phone": customer.phone or None,
        "cashier_id": cashier_id,
        "notes": notes or None,
    }

    try:
        rows = await client.table("sales").insert(sale_row).execute()
    except BackendError as e:
        raise CheckoutError(
            f"Could not record sale {sale_number}: {e}",
            step="sale",
            sale_number=sale_number,
        ) from e

    if not rows:
        raise CheckoutError(
            f"Backend did not return sale {sale_number}", step="sale", sale_number=sale_number
        )
    sale = Sale.model_validate(rows[0])
    logger.info(f"Recorded sale {sale.sale_number} ({totals.item_count} items, {totals.total})")

    item_rows = [
        {
            "sale_id": sale.id,
            "product_id": line.product_id,
            "product_name": line.name,
            "quantity": line.quantity,
            "unit_price": _money(line.unit_price),
            "total_price": _money(line.line_total),
        }
        for line in cart.lines
    ]

    try:
        inserted = await client.table("sale_items").insert(item_rows).execute()
    except BackendError as e:
        logger.error(f"Sale {sale.sale_number} recorded without items: {e}")
        raise CheckoutError(
            f"Sale {sale.sale_number} was recorded but its items were not: {e}",
            step="sale_items",
            sale_number=sale.sale_number,
        ) from e

    items = [SaleItem.model_validate(row) for row in inserted]
    sale.items = items

    stock_failures: List[str] = []
    for line in cart.lines:
        try:
            await update_product_stock(
                client,
                product_id=line.product_id,
                quantity_change=-line.quantity,
                movement_type=MovementType.SALE,
                reference_id=sale.id,
                reference_type="sale",
            )
        except BackendError as e:
            logger.error(f"Stock not updated for '{line.name}' on sale {sale.sale_number}: {e}")
            stock_failures.append(line.name)

    if stock_failures:
        logger.warning(
            f"Sale {sale.sale_number} completed with {len(stock_failures)} stock updates failed"
        )

    return CheckoutResult(sale=sale, items=items, stock_failures=stock_failures)
