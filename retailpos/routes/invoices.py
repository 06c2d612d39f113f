"""
Invoice routes: history, detail, print view and text download.
"""

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import HTMLResponse, PlainTextResponse

from ..config import settings
from ..dependencies import CurrentUser, require_auth, user_client
from ..pos import fetch_recent_sales, fetch_sale, render_receipt_text
from ..pos.invoice import WALK_IN_CUSTOMER, payment_label
from ..templating import render

router = APIRouter(prefix="/invoices", dependencies=[Depends(require_auth)])


def _store() -> dict:
    return {
        "name": settings.store_name,
        "address": settings.store_address,
        "phone": settings.store_phone,
    }


async def _get_sale_or_404(sale_id: str, user: CurrentUser):
    sale = await fetch_sale(user_client(user), sale_id)
    if sale is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return sale


@router.get("", response_class=HTMLResponse)
async def list_invoices(request: Request, q: str = "", user: CurrentUser = Depends(require_auth)):
    """Recent sales, newest first, filterable by number or customer."""
    sales = await fetch_recent_sales(user_client(user), settings.invoice_history_limit)

    needle = q.strip().lower()
    if needle:
        sales = [
            s for s in sales
            if needle in s.sale_number.lower() or needle in (s.customer_name or "").lower()
        ]

    return render(
        request,
        "invoices/list.html",
        {"sales": sales, "query": q, "walk_in": WALK_IN_CUSTOMER, "payment_label": payment_label},
    )


@router.get("/{sale_id}", response_class=HTMLResponse)
async def invoice_detail(request: Request, sale_id: str, user: CurrentUser = Depends(require_auth)):
    sale = await _get_sale_or_404(sale_id, user)
    return render(
        request,
        "invoices/detail.html",
        {"sale": sale, "store": _store(), "walk_in": WALK_IN_CUSTOMER, "payment": payment_label(sale)},
    )


@router.get("/{sale_id}/print", response_class=HTMLResponse)
async def invoice_print(request: Request, sale_id: str, user: CurrentUser = Depends(require_auth)):
    """Stand-alone invoice page that opens the print dialog."""
    sale = await _get_sale_or_404(sale_id, user)
    return render(
        request,
        "invoices/print.html",
        {"sale": sale, "store": _store(), "walk_in": WALK_IN_CUSTOMER, "payment": payment_label(sale)},
    )


@router.get("/{sale_id}/download")
async def invoice_download(sale_id: str, user: CurrentUser = Depends(require_auth)):
    sale = await _get_sale_or_404(sale_id, user)
    text = render_receipt_text(
        sale,
        settings.store_name,
        settings.store_address,
        settings.store_phone,
    )
    return PlainTextResponse(
        text,
        headers={"Content-Disposition": f'attachment; filename="invoice-{sale.sale_number}.txt"'},
    )
