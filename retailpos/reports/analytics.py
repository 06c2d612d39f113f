"""
Analytics: grouped sales and expense series for the chart layer.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from ..backend import BackendClient
from ..db.models import Expense, Sale
from .dates import as_utc, in_window, start_of_day, utcnow
from .expenses import totals_by_category
from .profit_loss import fetch_expenses_since, sale_cogs

logger = logging.getLogger(__name__)

ANALYTICS_SALES = """
    *,
    sale_items (
        *,
        products (
            cost_price,
            category_id,
            categories (name)
        )
    )
"""

UNCATEGORIZED = "Uncategorized"


@dataclass
class ChartSeries:
    """Parallel label/value arrays, the shape the chart library consumes."""
    labels: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)

    def add(self, label: str, value) -> None:
        self.labels.append(label)
        self.values.append(float(value))

    def to_dict(self) -> dict:
        return {"labels": self.labels, "values": self.values}


@dataclass
class ProductPerformance:
    name: str
    quantity: int
    revenue: Decimal


def sales_by_day(sales: Iterable[Sale], days: int = 30, now: Optional[datetime] = None) -> Dict[str, ChartSeries]:
    """Daily revenue and transaction counts, oldest day first."""
    sales = list(sales)
    today = start_of_day(now)
    revenue = ChartSeries()
    transactions = ChartSeries()

    for i in range(days - 1, -1, -1):
        start = today - timedelta(days=i)
        end = start + timedelta(days=1)
        day_sales = [s for s in sales if in_window(s.created_at, start, end)]
        label = f"{start:%b} {start.day}"
        revenue.add(label, sum((s.total_amount for s in day_sales), Decimal("0")))
        transactions.add(label, len(day_sales))

    return {"revenue": revenue, "transactions": transactions}


def revenue_by_category(sales: Iterable[Sale]) -> ChartSeries:
    """Line-item revenue grouped by the product's category, largest first."""
    totals: Dict[str, Decimal] = defaultdict(Decimal)
    for sale in sales:
        for item in sale.items:
            category = None
            if item.product and item.product.category:
                category = item.product.category.name
            totals[category or UNCATEGORIZED] += item.total_price

    series = ChartSeries()
    for name, total in sorted(totals.items(), key=lambda kv: kv[1], reverse=True):
        series.add(name, total)
    return series


def payment_method_breakdown(sales: Iterable[Sale]) -> Dict[str, dict]:
    breakdown: Dict[str, dict] = {}
    for sale in sales:
        method = sale.payment_method.value
        entry = breakdown.setdefault(method, {"count": 0, "total": Decimal("0")})
        entry["count"] += 1
        entry["total"] += sale.total_amount
    return breakdown


def top_products(sales: Iterable[Sale], limit: int = 5) -> List[ProductPerformance]:
    """Best sellers by line-item revenue."""
    stats: Dict[str, ProductPerformance] = {}
    for sale in sales:
        for item in sale.items:
            key = item.product_id or item.product_name
            entry = stats.get(key)
            if entry is None:
                entry = stats[key] = ProductPerformance(item.product_name, 0, Decimal("0"))
            entry.quantity += item.quantity
            entry.revenue += item.total_price

    ranked = sorted(stats.values(), key=lambda p: (p.revenue, p.quantity), reverse=True)
    return ranked[:limit]


def expenses_by_category(expenses: Iterable[Expense]) -> ChartSeries:
    series = ChartSeries()
    for name, total in totals_by_category(expenses).items():
        series.add(name, total)
    return series


def build_analytics(
    sales: List[Sale],
    expenses: List[Expense],
    days: int = 30,
    now: Optional[datetime] = None,
) -> dict:
    """JSON-ready bundle for the analytics page."""
    daily = sales_by_day(sales, days, now)
    methods = payment_method_breakdown(sales)
    revenue = sum((s.total_amount for s in sales), Decimal("0"))
    cogs = sum((sale_cogs(s) for s in sales), Decimal("0"))
    transactions = len(sales)

    return {
        "days": days,
        "summary": {
            "revenue": float(revenue),
            "cogs": float(cogs),
            "transactions": transactions,
            "average_sale": float(revenue / transactions) if transactions else 0.0,
            "expenses": float(sum((e.amount for e in expenses), Decimal("0"))),
        },
        "sales_by_day": {
            "labels": daily["revenue"].labels,
            "revenue": daily["revenue"].values,
            "transactions": daily["transactions"].values,
        },
        "revenue_by_category": revenue_by_category(sales).to_dict(),
        "payment_methods": {
            "labels": list(methods.keys()),
            "counts": [entry["count"] for entry in methods.values()],
            "totals": [float(entry["total"]) for entry in methods.values()],
        },
        "top_products": [
            {"name": p.name, "quantity": p.quantity, "revenue": float(p.revenue)}
            for p in top_products(sales)
        ],
        "expenses_by_category": expenses_by_category(expenses).to_dict(),
    }


async def fetch_analytics(client: BackendClient, days: int = 30, now: Optional[datetime] = None) -> dict:
    now = as_utc(now or utcnow())
    since = start_of_day(now) - timedelta(days=days - 1)

    rows = await (
        client.table("sales")
        .select(ANALYTICS_SALES)
        .gte("created_at", since)
        .order("created_at")
        .execute()
    )
    sales = [Sale.model_validate(row) for row in rows]
    expenses = await fetch_expenses_since(client, since.date())

    logger.debug(f"Analytics over {days} days: {len(sales)} sales, {len(expenses)} expenses")
    return build_analytics(sales, expenses, days, now)
