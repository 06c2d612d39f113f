"""
Point-of-sale routes: product search, cart and checkout.
"""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Request, Form, Depends
from fastapi.responses import HTMLResponse

from ..config import settings
from ..backend import BackendAuthError, BackendError
from ..currency import parse_currency
from ..db import PaymentMethod
from ..dependencies import CurrentUser, get_cart_store, require_auth, user_client
from ..pos import (
    Cart,
    CartError,
    CheckoutError,
    CustomerDetails,
    checkout,
    fetch_customer,
    fetch_customers,
    find_product_by_code,
    get_product,
    normalize_scan,
    search_products,
)
from ..templating import redirect_with_notice, render

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_auth)])

TAX_RATE = Decimal(str(settings.tax_rate))


async def load_cart(user: CurrentUser) -> Cart:
    return Cart.from_rows(await get_cart_store().load(user.cart_id))


async def save_cart(user: CurrentUser, cart: Cart) -> None:
    await get_cart_store().save(user.cart_id, cart.to_rows())


def cart_payload(cart: Cart) -> dict:
    """JSON view of the cart for the till's script."""
    totals = cart.totals(TAX_RATE)
    return {
        "lines": [
            {
                "product_id": line.product_id,
                "name": line.name,
                "unit_price": float(line.unit_price),
                "quantity": line.quantity,
                "stock": line.stock,
                "unit": line.unit,
                "line_total": float(line.line_total),
            }
            for line in cart.lines
        ],
        "subtotal": float(totals.subtotal),
        "tax": float(totals.tax),
        "total": float(totals.total),
        "item_count": totals.item_count,
    }


@router.get("/sales", response_class=HTMLResponse)
async def sales_page(request: Request, q: str = "", user: CurrentUser = Depends(require_auth)):
    """Product grid, cart and payment form."""
    client = user_client(user)
    products = await search_products(client, q)
    cart = await load_cart(user)

    try:
        customers = await fetch_customers(client)
    except BackendAuthError:
        raise
    except BackendError as e:
        # Customer records are optional at the till
        logger.warning(f"Customer list unavailable for {user.email}: {e}")
        customers = []

    return render(
        request,
        "sales.html",
        {
            "products": products,
            "query": q,
            "cart": cart,
            "totals": cart.totals(TAX_RATE),
            "payment_methods": list(PaymentMethod),
            "customers": customers,
            "tax_percent": TAX_RATE * 100,
        },
    )


@router.post("/sales/cart/add")
async def add_to_cart(product_id: str = Form(...), user: CurrentUser = Depends(require_auth)):
    """Add one unit using the product's current stock."""
    product = await get_product(user_client(user), product_id)
    if product is None or not product.is_active:
        return redirect_with_notice("/sales", "Product not found", "error")

    cart = await load_cart(user)
    try:
        cart.add_product(product)
    except CartError as e:
        return redirect_with_notice("/sales", str(e), "error")

    await save_cart(user, cart)
    return redirect_with_notice("/sales", f"Added {product.name}")


@router.post("/sales/scan")
async def scan_barcode(code: str = Form(""), user: CurrentUser = Depends(require_auth)):
    """Resolve scanner output to a product and add it."""
    code = normalize_scan(code)
    if not code:
        return redirect_with_notice("/sales", "Nothing was scanned", "error")

    product = await find_product_by_code(user_client(user), code)
    if product is None:
        logger.warning(f"Scan did not match a product: {code}")
        return redirect_with_notice("/sales", f"No product with barcode {code}", "error")

    cart = await load_cart(user)
    try:
        cart.add_product(product)
    except CartError as e:
        return redirect_with_notice("/sales", str(e), "error")

    await save_cart(user, cart)
    return redirect_with_notice("/sales", f"Scanned {product.name}")


@router.post("/sales/cart/{product_id}/increment")
async def increment_line(product_id: str, user: CurrentUser = Depends(require_auth)):
    cart = await load_cart(user)
    line = cart.get(product_id)
    if line is None:
        return redirect_with_notice("/sales", "Product is not in the cart", "error")

    product = await get_product(user_client(user), product_id)
    if product is not None:
        line.stock = product.current_stock

    try:
        cart.update_quantity(product_id, 1)
    except CartError as e:
        await save_cart(user, cart)
        return redirect_with_notice("/sales", str(e), "error")

    await save_cart(user, cart)
    return redirect_with_notice("/sales", f"Updated {line.name}")


@router.post("/sales/cart/{product_id}/decrement")
async def decrement_line(product_id: str, user: CurrentUser = Depends(require_auth)):
    cart = await load_cart(user)
    try:
        remaining = cart.update_quantity(product_id, -1)
    except CartError as e:
        return redirect_with_notice("/sales", str(e), "error")

    await save_cart(user, cart)
    message = "Updated cart" if remaining else "Removed from cart"
    return redirect_with_notice("/sales", message)


@router.post("/sales/cart/{product_id}/remove")
async def remove_line(product_id: str, user: CurrentUser = Depends(require_auth)):
    cart = await load_cart(user)
    cart.remove(product_id)
    await save_cart(user, cart)
    return redirect_with_notice("/sales", "Removed from cart")


@router.post("/sales/cart/clear")
async def clear_cart(user: CurrentUser = Depends(require_auth)):
    await get_cart_store().clear(user.cart_id)
    return redirect_with_notice("/sales", "Cart cleared")


@router.post("/sales/checkout")
async def complete_sale(
    payment_method: str = Form(...),
    payment_received: str = Form(""),
    customer_id: str = Form(""),
    customer_name: str = Form(""),
    customer_phone: str = Form(""),
    notes: str = Form(""),
    user: CurrentUser = Depends(require_auth),
):
    """Record the sale, then show its invoice."""
    try:
        method = PaymentMethod(payment_method)
    except ValueError:
        return redirect_with_notice("/sales", "Choose a payment method", "error")

    received: Optional[Decimal] = None
    if payment_received.strip():
        received = parse_currency(payment_received)

    client = user_client(user)
    customer = CustomerDetails(
        name=customer_name.strip() or None,
        phone=customer_phone.strip() or None,
    )
    if customer_id.strip():
        record = await fetch_customer(client, customer_id.strip())
        if record is None:
            return redirect_with_notice("/sales", "Customer not found", "error")
        customer = CustomerDetails.from_customer(record)

    cart = await load_cart(user)
    try:
        result = await checkout(
            client,
            cart,
            cashier_id=user.id,
            payment_method=method,
            payment_received=received,
            customer=customer,
            notes=notes.strip() or None,
            tax_rate=TAX_RATE,
        )
    except CartError as e:
        return redirect_with_notice("/sales", str(e), "error")
    except CheckoutError as e:
        logger.error(f"Checkout failed at step {e.step}: {e}")
        # The cart is kept. Once a sale number exists the sale row may already be recorded
        if e.sale_number:
            return redirect_with_notice(
                "/sales",
                f"{e} Check sale {e.sale_number} in the invoice history before retrying.",
                "error",
            )
        return redirect_with_notice("/sales", str(e), "error")

    await get_cart_store().clear(user.cart_id)

    sale = result.sale
    if not result.complete:
        failed = ", ".join(result.stock_failures)
        return redirect_with_notice(
            f"/invoices/{sale.id}",
            f"Sale {sale.sale_number} completed, but stock was not updated for: {failed}",
            "warning",
        )
    return redirect_with_notice(f"/invoices/{sale.id}", f"Sale {sale.sale_number} completed")


@router.get("/api/cart")
async def cart_json(user: CurrentUser = Depends(require_auth)):
    """Current cart with totals."""
    return cart_payload(await load_cart(user))
