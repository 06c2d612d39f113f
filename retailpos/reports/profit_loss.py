"""
Profit & loss reporting.

All figures are reduced client-side from fetched sales (with item cost
prices) and expenses:

    revenue      = sum of sale totals
    cogs         = sum of item cost_price x quantity
    gross profit = revenue - cogs
    net profit   = gross profit - expenses
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional

from ..backend import BackendClient
from ..csv_io import to_csv_line
from ..currency import quantize_money
from ..db.models import Expense, Sale
from .dates import add_months, as_utc, in_window, start_of_day, utcnow

logger = logging.getLogger(__name__)

SALES_WITH_COST = """
    *,
    sale_items (
        *,
        products (cost_price)
    )
"""

ZERO = Decimal("0")


class Timeframe(str, Enum):
    """Bucket size for the trend report."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


PERIOD_COUNTS = {
    Timeframe.DAILY: 7,
    Timeframe.WEEKLY: 4,
    Timeframe.MONTHLY: 12,
}


@dataclass
class Period:
    """A half-open reporting window [start, end)."""
    label: str
    start: datetime
    end: datetime


@dataclass
class PeriodSummary:
    period: str
    revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    expenses: Decimal
    net_profit: Decimal
    gross_margin: Decimal
    net_margin: Decimal
    transaction_count: int

    @property
    def profitable(self) -> bool:
        return self.net_profit >= 0

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "revenue": float(self.revenue),
            "cogs": float(self.cogs),
            "gross_profit": float(self.gross_profit),
            "expenses": float(self.expenses),
            "net_profit": float(self.net_profit),
            "gross_margin": float(self.gross_margin),
            "net_margin": float(self.net_margin),
            "transaction_count": self.transaction_count,
        }


@dataclass
class ProfitabilityAnalysis:
    best_revenue: Decimal
    best_net_profit: Decimal
    average_gross_margin: Decimal
    average_net_margin: Decimal


def build_periods(timeframe: Timeframe, now: Optional[datetime] = None) -> List[Period]:
    """
    Reporting windows, oldest first.

    daily: the last 7 calendar days, today included
    weekly: the last 4 rolling 7-day windows ending now
    monthly: the last 12 calendar months, this month included
    """
    timeframe = Timeframe(timeframe)
    now = as_utc(now or utcnow())
    count = PERIOD_COUNTS[timeframe]
    periods = []

    for i in range(count - 1, -1, -1):
        if timeframe == Timeframe.DAILY:
            start = start_of_day(now) - timedelta(days=i)
            end = start + timedelta(days=1)
            label = f"{start:%a, %b} {start.day}"
        elif timeframe == Timeframe.WEEKLY:
            end = now - timedelta(days=7 * i)
            start = end - timedelta(days=7)
            label = f"Week of {start:%b} {start.day}"
        else:
            start = add_months(now, -i)
            end = add_months(now, -i + 1)
            label = f"{start:%b %Y}"
        periods.append(Period(label=label, start=start, end=end))

    return periods


def sale_cogs(sale: Sale) -> Decimal:
    """Cost of goods sold for one sale. Items whose product is gone cost 0."""
    total = ZERO
    for item in sale.items:
        cost = item.product.cost_price if item.product else ZERO
        total += cost * item.quantity
    return total


def margin(profit: Decimal, revenue: Decimal) -> Decimal:
    """Percentage of revenue, 0 when there is no revenue."""
    if revenue <= 0:
        return Decimal("0.00")
    return quantize_money(profit / revenue * 100)


def summarize(sales: Iterable[Sale], expenses: Iterable[Expense], label: str = "") -> PeriodSummary:
    sales = list(sales)
    revenue = sum((sale.total_amount for sale in sales), ZERO)
    cogs = sum((sale_cogs(sale) for sale in sales), ZERO)
    expense_total = sum((expense.amount for expense in expenses), ZERO)
    gross_profit = revenue - cogs
    net_profit = gross_profit - expense_total

    return PeriodSummary(
        period=label,
        revenue=revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        expenses=expense_total,
        net_profit=net_profit,
        gross_margin=margin(gross_profit, revenue),
        net_margin=margin(net_profit, revenue),
        transaction_count=len(sales),
    )


def generate_period_data(
    sales: List[Sale],
    expenses: List[Expense],
    periods: List[Period],
) -> List[PeriodSummary]:
    """One summary per period; rows outside every window are ignored."""
    rows = []
    for period in periods:
        period_sales = [s for s in sales if in_window(s.created_at, period.start, period.end)]
        period_expenses = [
            e for e in expenses if in_window(e.expense_date, period.start, period.end)
        ]
        rows.append(summarize(period_sales, period_expenses, period.label))
    return rows


def profitability_analysis(rows: List[PeriodSummary]) -> Optional[ProfitabilityAnalysis]:
    if not rows:
        return None
    count = Decimal(len(rows))
    return ProfitabilityAnalysis(
        best_revenue=max(r.revenue for r in rows),
        best_net_profit=max(r.net_profit for r in rows),
        average_gross_margin=quantize_money(sum((r.gross_margin for r in rows), ZERO) / count, 1),
        average_net_margin=quantize_money(sum((r.net_margin for r in rows), ZERO) / count, 1),
    )


async def fetch_sales_since(client: BackendClient, since: datetime) -> List[Sale]:
    rows = await (
        client.table("sales")
        .select(SALES_WITH_COST)
        .gte("created_at", as_utc(since))
        .order("created_at")
        .execute()
    )
    return [Sale.model_validate(row) for row in rows]


async def fetch_expenses_since(client: BackendClient, since: date) -> List[Expense]:
    if isinstance(since, datetime):
        since = since.date()
    rows = await (
        client.table("expenses")
        .select("*")
        .gte("expense_date", since)
        .order("expense_date")
        .execute()
    )
    return [Expense.model_validate(row) for row in rows]


async def fetch_realtime(client: BackendClient, now: Optional[datetime] = None) -> PeriodSummary:
    """Today's figures."""
    today = start_of_day(now)
    sales = await fetch_sales_since(client, today)
    expenses = await fetch_expenses_since(client, today.date())
    return summarize(sales, expenses, "Today")


async def fetch_period_report(
    client: BackendClient,
    timeframe: Timeframe,
    now: Optional[datetime] = None,
) -> List[PeriodSummary]:
    """Fetch everything since the first window opens and bucket it."""
    periods = build_periods(timeframe, now)
    since = periods[0].start
    sales = await fetch_sales_since(client, since)
    expenses = await fetch_expenses_since(client, since.date())
    logger.info(
        f"Profit & loss ({Timeframe(timeframe).value}): "
        f"{len(sales)} sales, {len(expenses)} expenses since {since.date()}"
    )
    return generate_period_data(sales, expenses, periods)


PROFIT_LOSS_HEADERS = [
    "Period", "Revenue", "COGS", "Gross Profit", "Expenses",
    "Net Profit", "Gross Margin %", "Net Margin %",
]


def export_profit_loss_csv(rows: List[PeriodSummary]) -> str:
    lines = [to_csv_line(PROFIT_LOSS_HEADERS)]
    for row in rows:
        lines.append(to_csv_line([
            row.period,
            row.revenue,
            row.cogs,
            row.gross_profit,
            row.expenses,
            row.net_profit,
            row.gross_margin,
            row.net_margin,
        ]))
    return "\n".join(lines)
