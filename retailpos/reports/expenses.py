"""
Expense logging: filters, totals, export and form validation.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from ..backend import BackendClient
from ..csv_io import to_csv_line
from ..db.models import Expense, ExpenseInput
from .dates import as_utc, start_of_day, utcnow

EXPENSE_CATEGORIES = [
    "Office Supplies",
    "Utilities",
    "Rent",
    "Marketing",
    "Equipment",
    "Maintenance",
    "Insurance",
    "Professional Services",
    "Travel",
    "Inventory Purchase",
    "Staff Salaries",
    "Other",
]

DATE_FILTERS = ("all", "today", "week", "month")


def date_filter_start(date_filter: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Earliest moment a filter lets through; None for 'all'."""
    now = as_utc(now or utcnow())
    if date_filter == "today":
        return start_of_day(now)
    if date_filter == "week":
        return now - timedelta(days=7)
    if date_filter == "month":
        return now - timedelta(days=30)
    return None


def filter_expenses(
    expenses: Iterable[Expense],
    query: str = "",
    category: str = "all",
    date_filter: str = "all",
    now: Optional[datetime] = None,
) -> List[Expense]:
    """Search description/category, then narrow by category and date."""
    needle = (query or "").strip().lower()
    start = date_filter_start(date_filter, now)
    # Expense dates carry no time; compare whole days
    start_date = start.date() if start else None

    result = []
    for expense in expenses:
        if needle and needle not in expense.description.lower() and needle not in expense.category.lower():
            continue
        if category and category != "all" and expense.category != category:
            continue
        if start_date and expense.expense_date < start_date:
            continue
        result.append(expense)
    return result


def total_expenses(expenses: Iterable[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), Decimal("0"))


def totals_by_category(expenses: Iterable[Expense]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, Decimal("0")) + expense.amount
    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


def export_expenses_csv(expenses: Iterable[Expense]) -> str:
    lines = [to_csv_line(["Date", "Description", "Category", "Amount"])]
    for expense in expenses:
        lines.append(to_csv_line([
            expense.expense_date.isoformat(),
            expense.description,
            expense.category,
            expense.amount,
        ]))
    return "\n".join(lines)


def validate_expense_form(
    description: str,
    amount: str,
    category: str,
    expense_date: str,
    receipt_url: str = "",
) -> Tuple[Optional[ExpenseInput], Optional[str]]:
    """
    Check the add/edit form.

    Returns:
        (input, None) when valid, (None, message) otherwise
    """
    if not (description or "").strip() or not (amount or "").strip() or not category:
        return None, "Please fill in all required fields"

    try:
        data = ExpenseInput(
            description=description.strip(),
            amount=amount.strip(),
            category=category,
            expense_date=expense_date or date.today().isoformat(),
            receipt_url=(receipt_url or "").strip() or None,
        )
    except ValidationError as e:
        field = e.errors()[0]["loc"][0] if e.errors() else "form"
        return None, f"Invalid {str(field).replace('_', ' ')}"

    return data, None


async def fetch_expenses(client: BackendClient) -> List[Expense]:
    rows = await (
        client.table("expenses")
        .select("*")
        .order("expense_date", ascending=False)
        .execute()
    )
    return [Expense.model_validate(row) for row in rows]


async def fetch_expense(client: BackendClient, expense_id: str) -> Optional[Expense]:
    rows = await client.table("expenses").select("*").eq("id", expense_id).limit(1).execute()
    return Expense.model_validate(rows[0]) if rows else None
