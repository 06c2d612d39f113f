"""
Tests for inventory, expense, dashboard and analytics reports.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from retailpos.db import Expense, Product, Sale, StockStatus
from retailpos.reports import (
    build_analytics,
    build_dashboard,
    export_expenses_csv,
    filter_expenses,
    filter_products,
    inventory_stats,
    low_stock_products,
    percent_change,
    stock_status,
    total_expenses,
    validate_expense_form,
)
from retailpos.reports.dashboard import stock_fill_percent
from retailpos.reports.expenses import totals_by_category

from conftest import product_row, sale_row

NOW = datetime(2025, 3, 15, 14, 0, tzinfo=timezone.utc)


def make_product(**overrides) -> Product:
    return Product.model_validate(product_row(**overrides))


def make_expense(description: str, amount, category: str, day: date) -> Expense:
    return Expense.model_validate({
        "id": description,
        "description": description,
        "amount": amount,
        "category": category,
        "expense_date": day.isoformat(),
    })


class TestStockStatus:
    """Thresholds: out <= 0 < low <= min < normal <= max < over."""

    def test_boundaries(self):
        assert stock_status(make_product(current_stock=0)) == StockStatus.OUT_OF_STOCK
        assert stock_status(make_product(current_stock=5)) == StockStatus.LOW_STOCK
        assert stock_status(make_product(current_stock=6)) == StockStatus.IN_STOCK
        assert stock_status(make_product(current_stock=100)) == StockStatus.IN_STOCK
        assert stock_status(make_product(current_stock=101)) == StockStatus.OVER_STOCK


class TestInventory:
    """Tests for inventory figures and filters."""

    def test_stats(self):
        products = [
            make_product(current_stock=10, unit_price=150, cost_price=100),
            make_product(id="p2", current_stock=0),
            make_product(id="p3", current_stock=3, unit_price=10, cost_price=5),
        ]

        stats = inventory_stats(products)

        assert stats.total_items == 3
        assert stats.total_units == 13
        assert stats.inventory_value == Decimal("1530")
        assert stats.cost_value == Decimal("1015")
        assert stats.low_stock == 1
        assert stats.out_of_stock == 1

    def test_filter_by_name_barcode_and_status(self):
        products = [
            make_product(name="Whole Milk", barcode="111", current_stock=50),
            make_product(id="p2", name="Bread", barcode="222", current_stock=2),
        ]

        assert [p.id for p in filter_products(products, "milk")] == ["p1"]
        assert [p.id for p in filter_products(products, "222")] == ["p2"]
        assert [p.id for p in filter_products(products, status=StockStatus.LOW_STOCK)] == ["p2"]

    def test_low_stock_sorted_emptiest_first(self):
        products = [
            make_product(id="a", name="A", current_stock=4),
            make_product(id="b", name="B", current_stock=0),
            make_product(id="c", name="C", current_stock=50),
        ]
        assert [p.id for p in low_stock_products(products)] == ["b", "a"]


class TestExpenses:
    """Tests for expense filters and validation."""

    def setup_method(self):
        self.expenses = [
            make_expense("March rent", 50000, "Rent", date(2025, 3, 1)),
            make_expense("Electricity", 8000, "Utilities", date(2025, 3, 14)),
            make_expense("Flyers, A5", 1500, "Marketing", date(2025, 3, 15)),
        ]

    def test_search_and_category(self):
        assert len(filter_expenses(self.expenses, "rent")) == 1
        assert len(filter_expenses(self.expenses, "utilities")) == 1
        assert len(filter_expenses(self.expenses, category="Marketing")) == 1

    def test_date_filters(self):
        assert len(filter_expenses(self.expenses, date_filter="today", now=NOW)) == 1
        assert len(filter_expenses(self.expenses, date_filter="week", now=NOW)) == 2
        assert len(filter_expenses(self.expenses, date_filter="month", now=NOW)) == 3

    def test_totals(self):
        assert total_expenses(self.expenses) == Decimal("59500")
        assert list(totals_by_category(self.expenses)) == ["Rent", "Utilities", "Marketing"]

    def test_export_quotes_commas(self):
        lines = export_expenses_csv(self.expenses).split("\n")
        assert lines[0] == "Date,Description,Category,Amount"
        assert lines[3] == '2025-03-15,"Flyers, A5",Marketing,1500'

    def test_validate_requires_fields(self):
        data, error = validate_expense_form("", "100", "Rent", "2025-03-01")
        assert data is None
        assert error == "Please fill in all required fields"

    def test_validate_rejects_bad_amount(self):
        data, error = validate_expense_form("Rent", "-5", "Rent", "2025-03-01")
        assert data is None
        assert error == "Invalid amount"

    def test_validate_ok(self):
        data, error = validate_expense_form(" Rent ", "500.50", "Rent", "2025-03-01")
        assert error is None
        assert data.description == "Rent"
        assert data.to_row()["amount"] == 500.5


class TestDashboard:
    """Tests for the overview figures."""

    def test_percent_change(self):
        assert percent_change(Decimal("150"), Decimal("100")) == Decimal("50.0")
        assert percent_change(Decimal("50"), Decimal("0")) == Decimal("0")

    def test_fill_percent_capped(self):
        assert stock_fill_percent(make_product(current_stock=2, min_stock_threshold=8)) == 25
        assert stock_fill_percent(make_product(current_stock=20, min_stock_threshold=8)) == 100

    def test_today_vs_yesterday(self):
        sales = [
            Sale.model_validate(sale_row(id="t1", total_amount=300, created_at="2025-03-15T09:00:00+00:00")),
            Sale.model_validate(sale_row(id="t2", total_amount=300, created_at="2025-03-15T10:00:00+00:00")),
            Sale.model_validate(sale_row(id="y1", total_amount=400, created_at="2025-03-14T10:00:00+00:00")),
        ]
        products = [make_product(current_stock=2), make_product(id="p2", current_stock=50)]

        stats = build_dashboard(sales, products, sales[:1], NOW)

        assert stats.daily_sales == Decimal("600")
        assert stats.daily_sales_change == Decimal("50.0")
        assert stats.transactions == 2
        assert stats.transactions_change == Decimal("100.0")
        assert stats.total_items == 2
        assert stats.low_stock == 1
        assert stats.low_stock_items[0].fill_percent == 40


class TestAnalytics:
    """Tests for chart data."""

    def test_build_analytics(self):
        sales = [
            Sale.model_validate(sale_row(
                id="s1",
                total_amount=500,
                payment_method="cash",
                created_at="2025-03-15T09:00:00+00:00",
                sale_items=[
                    {"product_id": "p1", "product_name": "Milk", "quantity": 2, "unit_price": 150,
                     "total_price": 300, "products": {"cost_price": 100, "categories": {"name": "Dairy"}}},
                    {"product_id": "p2", "product_name": "Pen", "quantity": 1, "unit_price": 200,
                     "total_price": 200, "products": None},
                ],
            )),
            Sale.model_validate(sale_row(
                id="s2", total_amount=100, payment_method="card",
                created_at="2025-03-14T09:00:00+00:00",
            )),
        ]
        expenses = [make_expense("Rent", 1000, "Rent", date(2025, 3, 1))]

        data = build_analytics(sales, expenses, days=7, now=NOW)

        assert data["summary"]["revenue"] == 600.0
        assert data["summary"]["cogs"] == 200.0
        assert data["summary"]["transactions"] == 2
        assert data["summary"]["average_sale"] == 300.0
        assert len(data["sales_by_day"]["labels"]) == 7
        assert data["sales_by_day"]["labels"][-1] == "Mar 15"
        assert data["sales_by_day"]["revenue"][-2:] == [100.0, 500.0]
        assert data["revenue_by_category"] == {"labels": ["Dairy", "Uncategorized"], "values": [300.0, 200.0]}
        assert data["payment_methods"]["labels"] == ["cash", "card"]
        assert data["top_products"][0] == {"name": "Milk", "quantity": 2, "revenue": 300.0}
        assert data["expenses_by_category"]["values"] == [1000.0]
