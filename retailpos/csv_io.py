"""
CSV import/export for products, sales, expenses and categories.

Deliberately simple: lines are split on newlines and fields on commas.
Export wraps a string in double quotes only when it contains a comma.
Quoted commas on import are not understood.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from .backend import BackendClient

logger = logging.getLogger(__name__)


class CSVImportError(Exception):
    """The uploaded file could not be imported."""
    pass


@dataclass(frozen=True)
class ImportExportType:
    title: str
    table: str
    sample_headers: List[str]


IMPORT_EXPORT_TYPES: Dict[str, ImportExportType] = {
    "products": ImportExportType(
        title="Products",
        table="products",
        sample_headers=["name", "description", "unit_price", "cost_price",
                        "current_stock", "unit", "barcode"],
    ),
    "sales": ImportExportType(
        title="Sales",
        table="sales",
        sample_headers=["sale_number", "total_amount", "payment_method", "customer_name"],
    ),
    "expenses": ImportExportType(
        title="Expenses",
        table="expenses",
        sample_headers=["description", "amount", "category", "expense_date"],
    ),
    "categories": ImportExportType(
        title="Categories",
        table="categories",
        sample_headers=["name", "description"],
    ),
}

PRODUCT_EXPORT_COLUMNS = """
    name,
    description,
    unit_price,
    cost_price,
    current_stock,
    unit,
    barcode,
    min_stock_threshold,
    max_stock_threshold,
    created_at
"""

PAYMENT_METHODS = ("cash", "card", "digital_wallet")

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)")
_LEADING_INT = re.compile(r"^\s*[-+]?\d+")


def get_type(kind: str) -> ImportExportType:
    try:
        return IMPORT_EXPORT_TYPES[kind]
    except KeyError:
        raise CSVImportError(f"Unknown data type '{kind}'") from None


# ===== Parsing =====

def parse_csv(text: str) -> List[Dict[str, str]]:
    """
    Split CSV text into row dicts keyed by lowercased header.

    Raises:
        CSVImportError: If there is no header plus at least one data row
    """
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        raise CSVImportError("File must contain at least a header and one data row")

    headers = [h.strip().lower() for h in lines[0].split(",")]
    rows = []
    for line in lines[1:]:
        values = [v.strip() for v in line.split(",")]
        row = {}
        for index, header in enumerate(headers):
            if index < len(values):
                row[header] = values[index]
        rows.append(row)
    return rows


def parse_number(value: Optional[str], default: float = 0.0) -> float:
    """Leading numeric prefix of a cell; the default when none or zero."""
    match = _LEADING_NUMBER.match(value or "")
    if not match:
        return default
    number = float(match.group(0))
    return number or default


def parse_int(value: Optional[str], default: int = 0) -> int:
    match = _LEADING_INT.match(value or "")
    if not match:
        return default
    number = int(match.group(0))
    return number or default


def transform_rows(
    kind: str,
    rows: List[Dict[str, str]],
    user_id: Optional[str],
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """
    Coerce parsed rows into insert payloads for the target table.

    Raises:
        CSVImportError: If a row lacks a required column
    """
    get_type(kind)
    today = today or date.today()
    result = []

    for number, row in enumerate(rows, start=2):
        if kind == "products":
            if not row.get("name"):
                raise CSVImportError(f"Line {number}: name is required")
            result.append({
                "name": row["name"],
                "description": row.get("description") or None,
                "unit_price": parse_number(row.get("unit_price")),
                "cost_price": parse_number(row.get("cost_price")),
                "current_stock": parse_int(row.get("current_stock")),
                "unit": row.get("unit") or "pcs",
                "barcode": row.get("barcode") or None,
                "min_stock_threshold": parse_int(row.get("min_stock_threshold"), 10),
                "max_stock_threshold": parse_int(row.get("max_stock_threshold"), 1000),
                "created_by": user_id,
            })
        elif kind == "expenses":
            if not row.get("description") or not row.get("category"):
                raise CSVImportError(f"Line {number}: description and category are required")
            result.append({
                "description": row["description"],
                "amount": parse_number(row.get("amount")),
                "category": row["category"],
                "expense_date": row.get("expense_date") or today.isoformat(),
                "created_by": user_id,
            })
        elif kind == "categories":
            if not row.get("name"):
                raise CSVImportError(f"Line {number}: name is required")
            result.append({
                "name": row["name"],
                "description": row.get("description") or None,
            })
        else:
            if not row.get("sale_number"):
                raise CSVImportError(f"Line {number}: sale_number is required")
            total = parse_number(row.get("total_amount"))
            method = (row.get("payment_method") or "cash").lower()
            if method not in PAYMENT_METHODS:
                raise CSVImportError(f"Line {number}: unknown payment method '{method}'")
            result.append({
                "sale_number": row["sale_number"],
                "subtotal": total,
                "tax_amount": 0,
                "total_amount": total,
                "payment_method": method,
                "payment_received": total,
                "change_amount": 0,
                "customer_name": row.get("customer_name") or None,
                "cashier_id": user_id,
            })

    return result


async def import_csv(
    client: BackendClient,
    kind: str,
    text: str,
    user_id: Optional[str],
    today: Optional[date] = None,
) -> int:
    """Parse, transform and insert in one request. Returns the row count."""
    config = get_type(kind)
    rows = transform_rows(kind, parse_csv(text), user_id, today)
    await client.table(config.table).insert(rows).execute()
    logger.info(f"Imported {len(rows)} {kind}")
    return len(rows)


# ===== Export =====

def _quote(text: str) -> str:
    return f'"{text}"' if "," in text else text


def to_csv_line(values: Iterable[Any]) -> str:
    """One report line; None becomes empty, comma-bearing text is quoted."""
    cells = []
    for value in values:
        if value is None:
            cells.append("")
        elif isinstance(value, str):
            cells.append(_quote(value))
        else:
            cells.append(str(value))
    return ",".join(cells)


def _export_cell(value: Any) -> str:
    if isinstance(value, str) and "," in value:
        return f'"{value}"'
    if not value:
        return ""
    if isinstance(value, bool):
        return "true"
    return str(value)


def export_csv(rows: List[Dict[str, Any]]) -> str:
    """Header from the first row's keys, then one line per row."""
    if not rows:
        return ""
    headers = list(rows[0].keys())
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(_export_cell(row.get(header)) for header in headers))
    return "\n".join(lines)


async def fetch_export_rows(client: BackendClient, kind: str) -> List[Dict[str, Any]]:
    config = get_type(kind)
    columns = PRODUCT_EXPORT_COLUMNS if kind == "products" else "*"
    return await client.table(config.table).select(columns).execute()


def template_csv(kind: str) -> str:
    return ",".join(get_type(kind).sample_headers)


def export_filename(kind: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{kind}-export-{today.isoformat()}.csv"
