"""
Dashboard overview figures.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from ..backend import BackendClient
from ..currency import quantize_money
from ..db.models import Product, Sale
from .dates import in_window, start_of_day
from .inventory import fetch_products, low_stock_products

SALE_SUMMARY_COLUMNS = "id, sale_number, total_amount, payment_method, customer_name, created_at"


def percent_change(current: Decimal, previous: Decimal) -> Decimal:
    """Change versus the previous value in percent; 0 when there is no baseline."""
    current = Decimal(current)
    previous = Decimal(previous)
    if previous == 0:
        return Decimal("0.0")
    return quantize_money((current - previous) / previous * 100, 1)


def stock_fill_percent(product: Product) -> int:
    """How full stock is relative to the minimum, capped at 100."""
    if product.min_stock_threshold <= 0:
        return 100
    percent = max(product.current_stock, 0) * 100 // product.min_stock_threshold
    return min(100, percent)


@dataclass
class LowStockEntry:
    name: str
    current: int
    minimum: int
    unit: str
    fill_percent: int


@dataclass
class DashboardStats:
    daily_sales: Decimal
    daily_sales_change: Decimal
    transactions: int
    transactions_change: Decimal
    total_items: int
    low_stock: int
    recent_sales: List[Sale] = field(default_factory=list)
    low_stock_items: List[LowStockEntry] = field(default_factory=list)


def build_dashboard(
    sales: List[Sale],
    products: List[Product],
    recent_sales: List[Sale],
    now: Optional[datetime] = None,
    low_stock_preview: int = 5,
) -> DashboardStats:
    today = start_of_day(now)
    yesterday = today - timedelta(days=1)
    tomorrow = today + timedelta(days=1)

    today_sales = [s for s in sales if in_window(s.created_at, today, tomorrow)]
    yesterday_sales = [s for s in sales if in_window(s.created_at, yesterday, today)]

    today_total = sum((s.total_amount for s in today_sales), Decimal("0"))
    yesterday_total = sum((s.total_amount for s in yesterday_sales), Decimal("0"))

    flagged = low_stock_products(products)

    return DashboardStats(
        daily_sales=today_total,
        daily_sales_change=percent_change(today_total, yesterday_total),
        transactions=len(today_sales),
        transactions_change=percent_change(len(today_sales), len(yesterday_sales)),
        total_items=len(products),
        low_stock=len(flagged),
        recent_sales=recent_sales,
        low_stock_items=[
            LowStockEntry(
                name=p.name,
                current=p.current_stock,
                minimum=p.min_stock_threshold,
                unit=p.unit,
                fill_percent=stock_fill_percent(p),
            )
            for p in flagged[:low_stock_preview]
        ],
    )


async def fetch_dashboard(
    client: BackendClient,
    now: Optional[datetime] = None,
    low_stock_preview: int = 5,
) -> DashboardStats:
    yesterday = start_of_day(now) - timedelta(days=1)

    rows = await (
        client.table("sales")
        .select(SALE_SUMMARY_COLUMNS)
        .gte("created_at", yesterday)
        .execute()
    )
    sales = [Sale.model_validate(row) for row in rows]

    recent_rows = await (
        client.table("sales")
        .select(SALE_SUMMARY_COLUMNS)
        .order("created_at", ascending=False)
        .limit(5)
        .execute()
    )
    recent = [Sale.model_validate(row) for row in recent_rows]

    products = await fetch_products(client)
    return build_dashboard(sales, products, recent, now, low_stock_preview)
