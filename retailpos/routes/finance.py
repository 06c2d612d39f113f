"""
Finance routes: expense log, add/edit/delete and CSV export.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Request, Form, Depends, HTTPException
from fastapi.responses import HTMLResponse, Response

from ..backend import BackendError
from ..db import UserRole
from ..dependencies import CurrentUser, require_role, user_client
from ..reports import (
    DATE_FILTERS,
    EXPENSE_CATEGORIES,
    export_expenses_csv,
    fetch_expense,
    fetch_expenses,
    filter_expenses,
    total_expenses,
    validate_expense_form,
)
from ..templating import redirect_with_notice, render

logger = logging.getLogger(__name__)

require_manager = require_role(UserRole.MANAGER)

router = APIRouter(prefix="/finance", dependencies=[Depends(require_manager)])


def _form(request: Request, values: dict, expense_id: Optional[str] = None,
          error: Optional[str] = None, status_code: int = 200):
    return render(
        request,
        "finance/form.html",
        {
            "values": values,
            "expense_id": expense_id,
            "categories": EXPENSE_CATEGORIES,
            "error": error,
        },
        status_code=status_code,
    )


@router.get("", response_class=HTMLResponse)
async def list_expenses(
    request: Request,
    q: str = "",
    category: str = "all",
    period: str = "all",
    user: CurrentUser = Depends(require_manager),
):
    expenses = await fetch_expenses(user_client(user))
    filtered = filter_expenses(expenses, q, category, period)

    return render(
        request,
        "finance/list.html",
        {
            "expenses": filtered,
            "total": total_expenses(filtered),
            "categories": EXPENSE_CATEGORIES,
            "date_filters": DATE_FILTERS,
            "query": q,
            "category": category,
            "period": period,
        },
    )


@router.get("/export")
async def export_expenses(
    q: str = "",
    category: str = "all",
    period: str = "all",
    user: CurrentUser = Depends(require_manager),
):
    """Download the filtered expenses."""
    expenses = filter_expenses(await fetch_expenses(user_client(user)), q, category, period)
    filename = f"expenses-{date.today().isoformat()}.csv"
    return Response(
        content=export_expenses_csv(expenses),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/new", response_class=HTMLResponse)
async def new_expense_form(request: Request):
    return _form(request, {"expense_date": date.today().isoformat()})


@router.post("/new")
async def create_expense(
    request: Request,
    description: str = Form(""),
    amount: str = Form(""),
    category: str = Form(""),
    expense_date: str = Form(""),
    receipt_url: str = Form(""),
    user: CurrentUser = Depends(require_manager),
):
    values = {
        "description": description,
        "amount": amount,
        "category": category,
        "expense_date": expense_date,
        "receipt_url": receipt_url,
    }
    data, error = validate_expense_form(description, amount, category, expense_date, receipt_url)
    if error:
        return _form(request, values, error=error, status_code=400)

    row = data.to_row()
    row["created_by"] = user.id
    try:
        await user_client(user).table("expenses").insert(row).execute()
    except BackendError as e:
        return _form(request, values, error=f"Failed to add expense: {e.message}", status_code=502)

    logger.info(f"Expense '{data.description}' ({data.amount}) added by {user.email}")
    return redirect_with_notice("/finance", "Expense added")


@router.get("/{expense_id}/edit", response_class=HTMLResponse)
async def edit_expense_form(request: Request, expense_id: str, user: CurrentUser = Depends(require_manager)):
    expense = await fetch_expense(user_client(user), expense_id)
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")

    values = {
        "description": expense.description,
        "amount": str(expense.amount),
        "category": expense.category,
        "expense_date": expense.expense_date.isoformat(),
        "receipt_url": expense.receipt_url or "",
    }
    return _form(request, values, expense_id)


@router.post("/{expense_id}/edit")
async def update_expense(
    request: Request,
    expense_id: str,
    description: str = Form(""),
    amount: str = Form(""),
    category: str = Form(""),
    expense_date: str = Form(""),
    receipt_url: str = Form(""),
    user: CurrentUser = Depends(require_manager),
):
    values = {
        "description": description,
        "amount": amount,
        "category": category,
        "expense_date": expense_date,
        "receipt_url": receipt_url,
    }
    data, error = validate_expense_form(description, amount, category, expense_date, receipt_url)
    if error:
        return _form(request, values, expense_id, error, 400)

    try:
        rows = await (
            user_client(user).table("expenses").update(data.to_row()).eq("id", expense_id).execute()
        )
    except BackendError as e:
        return _form(request, values, expense_id, f"Failed to update expense: {e.message}", 502)

    if not rows:
        raise HTTPException(status_code=404, detail="Expense not found")

    logger.info(f"Expense {expense_id} updated by {user.email}")
    return redirect_with_notice("/finance", "Expense updated")


@router.post("/{expense_id}/delete")
async def delete_expense(expense_id: str, user: CurrentUser = Depends(require_manager)):
    try:
        await user_client(user).table("expenses").delete().eq("id", expense_id).execute()
    except BackendError as e:
        return redirect_with_notice("/finance", f"Failed to delete expense: {e.message}", "error")

    logger.info(f"Expense {expense_id} deleted by {user.email}")
    return redirect_with_notice("/finance", "Expense deleted")
