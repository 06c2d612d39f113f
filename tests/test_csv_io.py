"""
Tests for the naive CSV import/export.
"""

from datetime import date

import pytest

from retailpos.csv_io import (
    CSVImportError,
    export_csv,
    export_filename,
    import_csv,
    parse_csv,
    parse_number,
    template_csv,
    to_csv_line,
    transform_rows,
)


class TestParseCSV:
    """Tests for splitting uploads."""

    def test_headers_lowercased_and_trimmed(self):
        rows = parse_csv("Name, Unit_Price\nMilk, 150\n\n")
        assert rows == [{"name": "Milk", "unit_price": "150"}]

    def test_needs_header_and_data(self):
        with pytest.raises(CSVImportError):
            parse_csv("name,unit_price\n")

    def test_quoted_commas_are_not_understood(self):
        rows = parse_csv('name,description\n"Milk, full cream",fresh')
        assert rows[0]["name"] == '"Milk'


class TestParseNumber:
    """Leading numeric prefix, default when missing or zero."""

    def test_prefix(self):
        assert parse_number("12.5kg") == 12.5

    def test_default(self):
        assert parse_number("", 10) == 10
        assert parse_number("0", 10) == 10
        assert parse_number("abc") == 0.0


class TestTransformRows:
    """Tests for building insert payloads."""

    def test_products_defaults(self):
        rows = transform_rows("products", [{"name": "Milk", "unit_price": "150"}], "u1")

        assert rows[0]["unit"] == "pcs"
        assert rows[0]["min_stock_threshold"] == 10
        assert rows[0]["max_stock_threshold"] == 1000
        assert rows[0]["current_stock"] == 0
        assert rows[0]["created_by"] == "u1"

    def test_expense_date_defaults_to_today(self):
        rows = transform_rows(
            "expenses",
            [{"description": "Rent", "amount": "5000", "category": "Rent"}],
            "u1",
            today=date(2025, 3, 15),
        )
        assert rows[0]["expense_date"] == "2025-03-15"
        assert rows[0]["amount"] == 5000.0

    def test_missing_required_column_names_line(self):
        with pytest.raises(CSVImportError, match="Line 3"):
            transform_rows("categories", [{"name": "Dairy"}, {"description": "no name"}], None)

    def test_sales_payment_method_checked(self):
        with pytest.raises(CSVImportError, match="payment method"):
            transform_rows("sales", [{"sale_number": "S1", "total_amount": "10", "payment_method": "cheque"}], "u1")

    def test_unknown_kind(self):
        with pytest.raises(CSVImportError):
            transform_rows("widgets", [], None)


class TestExport:
    """Tests for export lines."""

    def test_quotes_only_when_comma(self):
        assert to_csv_line(["a", "b,c", None, 0]) == 'a,"b,c",,0'

    def test_export_rows(self):
        rows = [
            {"name": "Milk", "description": "Fresh, full cream", "barcode": None, "current_stock": 0},
            {"name": "Bread", "description": "", "barcode": "222", "current_stock": 5},
        ]
        assert export_csv(rows).split("\n") == [
            "name,description,barcode,current_stock",
            'Milk,"Fresh, full cream",,',
            "Bread,,222,5",
        ]

    def test_export_empty(self):
        assert export_csv([]) == ""

    def test_template_and_filename(self):
        assert template_csv("categories") == "name,description"
        assert export_filename("products", date(2025, 3, 15)) == "products-export-2025-03-15.csv"


async def test_import_inserts_in_one_request(fake_backend):
    fake_backend.on("POST", "/rest/v1/categories", [], status=201)

    count = await import_csv(fake_backend.client(), "categories", "name,description\nDairy,Milk\nBakery,", "u1")

    assert count == 2
    assert len(fake_backend.requests) == 1
    assert fake_backend.body(fake_backend.requests[0]) == [
        {"name": "Dairy", "description": "Milk"},
        {"name": "Bakery", "description": None},
    ]
