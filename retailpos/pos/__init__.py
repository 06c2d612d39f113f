"""
Point-of-sale package: cart, checkout, product lookup, invoices.
"""

from .cart import (
    TAX_RATE,
    Cart,
    CartError,
    CartLine,
    CartTotals,
    InsufficientStockError,
    PaymentError,
    calculate_change,
)
from .checkout import (
    CheckoutError,
    CheckoutResult,
    CustomerDetails,
    checkout,
    fetch_customer,
    fetch_customers,
)
from .barcode import find_product_by_code, get_product, normalize_scan, search_products
from .invoice import fetch_recent_sales, fetch_sale, render_receipt_text

__all__ = [
    "TAX_RATE",
    "Cart",
    "CartError",
    "CartLine",
    "CartTotals",
    "InsufficientStockError",
    "PaymentError",
    "calculate_change",
    "CheckoutError",
    "CheckoutResult",
    "CustomerDetails",
    "checkout",
    "fetch_customer",
    "fetch_customers",
    "find_product_by_code",
    "get_product",
    "normalize_scan",
    "search_products",
    "fetch_recent_sales",
    "fetch_sale",
    "render_receipt_text",
]
