"""
Tests for profit & loss bucketing and figures.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from retailpos.db import Expense, Sale
from retailpos.reports import (
    Timeframe,
    build_periods,
    export_profit_loss_csv,
    generate_period_data,
    profitability_analysis,
    summarize,
)

from conftest import sale_row

NOW = datetime(2025, 3, 15, 14, 0, tzinfo=timezone.utc)


def make_sale(created_at: str, total: float, items=()) -> Sale:
    return Sale.model_validate(sale_row(
        id=created_at,
        created_at=created_at,
        total_amount=total,
        sale_items=list(items),
    ))


def make_item(quantity: int, cost: float) -> dict:
    return {
        "product_name": "Item",
        "quantity": quantity,
        "unit_price": 0,
        "total_price": 0,
        "products": {"cost_price": cost},
    }


def make_expense(day: date, amount: float) -> Expense:
    return Expense.model_validate({
        "id": str(day),
        "description": "Utilities",
        "amount": amount,
        "category": "Utilities",
        "expense_date": day.isoformat(),
    })


class TestBuildPeriods:
    """Tests for reporting windows."""

    def test_daily_calendar_days(self):
        periods = build_periods(Timeframe.DAILY, NOW)

        assert len(periods) == 7
        assert periods[-1].start == datetime(2025, 3, 15, tzinfo=timezone.utc)
        assert periods[-1].end == datetime(2025, 3, 16, tzinfo=timezone.utc)
        assert periods[0].start == datetime(2025, 3, 9, tzinfo=timezone.utc)
        assert periods[-1].label == "Sat, Mar 15"

    def test_weekly_rolling_windows(self):
        periods = build_periods(Timeframe.WEEKLY, NOW)

        assert len(periods) == 4
        assert periods[-1].end == NOW
        assert periods[0].start == datetime(2025, 2, 15, 14, 0, tzinfo=timezone.utc)
        assert periods[-1].label == "Week of Mar 8"

    def test_monthly_calendar_months(self):
        periods = build_periods(Timeframe.MONTHLY, NOW)

        assert len(periods) == 12
        assert periods[-1].start == datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert periods[-1].end == datetime(2025, 4, 1, tzinfo=timezone.utc)
        assert periods[0].start == datetime(2024, 4, 1, tzinfo=timezone.utc)
        assert periods[0].label == "Apr 2024"

    def test_windows_are_contiguous(self):
        for timeframe in Timeframe:
            periods = build_periods(timeframe, NOW)
            for earlier, later in zip(periods, periods[1:]):
                assert earlier.end == later.start


class TestSummarize:
    """revenue - cogs = gross profit; gross profit - expenses = net profit."""

    def test_figures(self):
        sales = [
            make_sale("2025-03-15T09:00:00+00:00", 1000, [make_item(2, 200)]),
            make_sale("2025-03-15T10:00:00+00:00", 500, [make_item(1, 100)]),
        ]
        expenses = [make_expense(date(2025, 3, 15), 300)]

        summary = summarize(sales, expenses, "Today")

        assert summary.revenue == Decimal("1500")
        assert summary.cogs == Decimal("500")
        assert summary.gross_profit == Decimal("1000")
        assert summary.net_profit == Decimal("700")
        assert summary.gross_margin == Decimal("66.67")
        assert summary.net_margin == Decimal("46.67")
        assert summary.transaction_count == 2
        assert summary.profitable

    def test_no_revenue_margins_are_zero(self):
        summary = summarize([], [make_expense(date(2025, 3, 15), 100)])

        assert summary.gross_margin == Decimal("0")
        assert summary.net_profit == Decimal("-100")
        assert not summary.profitable

    def test_item_without_product_costs_nothing(self):
        item = make_item(3, 0)
        item["products"] = None
        summary = summarize([make_sale("2025-03-15T09:00:00+00:00", 300, [item])], [])
        assert summary.cogs == Decimal("0")


class TestGeneratePeriodData:
    """Rows land in exactly one window."""

    def test_daily_bucketing(self):
        sales = [
            make_sale("2025-03-15T00:00:00+00:00", 100),
            make_sale("2025-03-14T23:59:59+00:00", 200),
            make_sale("2025-03-01T12:00:00+00:00", 999),
        ]
        expenses = [make_expense(date(2025, 3, 14), 50)]

        rows = generate_period_data(sales, expenses, build_periods(Timeframe.DAILY, NOW))

        assert rows[-1].revenue == Decimal("100")
        assert rows[-2].revenue == Decimal("200")
        assert rows[-2].expenses == Decimal("50")
        assert sum(r.revenue for r in rows) == Decimal("300")


class TestProfitabilityAnalysis:
    """Tests for the summary cards."""

    def test_empty(self):
        assert profitability_analysis([]) is None

    def test_best_and_averages(self):
        rows = [
            summarize([make_sale("2025-03-14T09:00:00+00:00", 1000, [make_item(1, 500)])], []),
            summarize([make_sale("2025-03-15T09:00:00+00:00", 400, [make_item(1, 100)])], []),
        ]

        analysis = profitability_analysis(rows)

        assert analysis.best_revenue == Decimal("1000")
        assert analysis.best_net_profit == Decimal("500")
        assert analysis.average_gross_margin == Decimal("62.5")


def test_export_csv():
    rows = [summarize([make_sale("2025-03-15T09:00:00+00:00", 1000)], [], "Mar 2025")]
    lines = export_profit_loss_csv(rows).split("\n")

    assert lines[0] == "Period,Revenue,COGS,Gross Profit,Expenses,Net Profit,Gross Margin %,Net Margin %"
    assert lines[1].startswith("Mar 2025,1000")
