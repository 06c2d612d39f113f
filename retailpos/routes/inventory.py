"""
Inventory routes: product list, create/edit/delete, stock adjustments.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request, Form, Depends, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import ValidationError

from ..backend import BackendClient, BackendError, update_product_stock
from ..db import Category, MovementType, Product, ProductInput, StockStatus, Supplier, UserRole
from ..dependencies import CurrentUser, require_role, user_client
from ..pos import get_product
from ..reports import (
    STATUS_LABELS,
    fetch_movements,
    fetch_products,
    filter_products,
    inventory_stats,
    stock_status,
)
from ..templating import redirect_with_notice, render

logger = logging.getLogger(__name__)

require_staff = require_role(UserRole.INVENTORY_STAFF)

router = APIRouter(prefix="/inventory", dependencies=[Depends(require_staff)])

ADJUSTMENT_TYPES = [
    MovementType.RESTOCK,
    MovementType.ADJUSTMENT,
    MovementType.DAMAGE,
    MovementType.RETURN,
]


async def fetch_categories(client: BackendClient):
    rows = await client.table("categories").select("*").order("name").execute()
    return [Category.model_validate(row) for row in rows]


async def fetch_suppliers(client: BackendClient):
    rows = await client.table("suppliers").select("*").order("name").execute()
    return [Supplier.model_validate(row) for row in rows]


async def _product_or_404(client: BackendClient, product_id: str) -> Product:
    product = await get_product(client, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def _render_form(
    request: Request,
    client: BackendClient,
    values: dict,
    product_id: Optional[str] = None,
    error: Optional[str] = None,
    status_code: int = 200,
):
    return render(
        request,
        "inventory/form.html",
        {
            "values": values,
            "product_id": product_id,
            "categories": await fetch_categories(client),
            "suppliers": await fetch_suppliers(client),
            "error": error,
        },
        status_code=status_code,
    )


def _form_error(e: ValidationError) -> str:
    error = e.errors()[0]
    field = str(error["loc"][0]).replace("_", " ") if error.get("loc") else "form"
    return f"Invalid {field}: {error['msg']}"


def _product_values(
    name: str,
    description: str,
    barcode: str,
    category_id: str,
    supplier_id: str,
    unit_price: str,
    cost_price: str,
    current_stock: str,
    min_stock_threshold: str,
    max_stock_threshold: str,
    unit: str,
) -> dict:
    return {
        "name": name.strip(),
        "description": description.strip(),
        "barcode": barcode.strip(),
        "category_id": category_id,
        "supplier_id": supplier_id,
        "unit_price": unit_price.strip(),
        "cost_price": cost_price.strip() or "0",
        "current_stock": current_stock.strip() or "0",
        "min_stock_threshold": min_stock_threshold.strip() or "10",
        "max_stock_threshold": max_stock_threshold.strip() or "1000",
        "unit": unit.strip() or "pcs",
    }


@router.get("", response_class=HTMLResponse)
async def list_products(
    request: Request,
    q: str = "",
    category: str = "all",
    status: str = "all",
    user: CurrentUser = Depends(require_staff),
):
    """All active products with stat cards and filters."""
    client = user_client(user)
    products = await fetch_products(client)

    try:
        status_filter = StockStatus(status) if status != "all" else None
    except ValueError:
        status_filter = None

    return render(
        request,
        "inventory/list.html",
        {
            "stats": inventory_stats(products),
            "products": filter_products(products, q, category, status_filter),
            "categories": await fetch_categories(client),
            "query": q,
            "category": category,
            "status": status,
            "status_labels": STATUS_LABELS,
            "stock_status": stock_status,
        },
    )


@router.get("/new", response_class=HTMLResponse)
async def new_product_form(request: Request, user: CurrentUser = Depends(require_staff)):
    return await _render_form(request, user_client(user), {})


@router.post("/new")
async def create_product(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    barcode: str = Form(""),
    category_id: str = Form(""),
    supplier_id: str = Form(""),
    unit_price: str = Form(""),
    cost_price: str = Form(""),
    current_stock: str = Form(""),
    min_stock_threshold: str = Form(""),
    max_stock_threshold: str = Form(""),
    unit: str = Form(""),
    user: CurrentUser = Depends(require_staff),
):
    """Create a new product."""
    client = user_client(user)
    values = _product_values(
        name, description, barcode, category_id, supplier_id, unit_price,
        cost_price, current_stock, min_stock_threshold, max_stock_threshold, unit,
    )

    if not values["name"] or not values["unit_price"]:
        return await _render_form(request, client, values, error="Name and price are required", status_code=400)

    try:
        data = ProductInput(**values)
    except ValidationError as e:
        return await _render_form(request, client, values, error=_form_error(e), status_code=400)

    row = data.to_row()
    row["created_by"] = user.id
    try:
        await client.table("products").insert(row).execute()
    except BackendError as e:
        return await _render_form(
            request, client, values, error=f"Failed to create product: {e.message}", status_code=502
        )

    logger.info(f"Product '{data.name}' created by {user.email}")
    return redirect_with_notice("/inventory", f"Added {data.name}")


@router.get("/{product_id}/edit", response_class=HTMLResponse)
async def edit_product_form(request: Request, product_id: str, user: CurrentUser = Depends(require_staff)):
    client = user_client(user)
    product = await _product_or_404(client, product_id)
    values = product.model_dump(exclude={"category", "supplier"})
    return await _render_form(request, client, values, product_id=product_id)


@router.post("/{product_id}/edit")
async def update_product(
    request: Request,
    product_id: str,
    name: str = Form(""),
    description: str = Form(""),
    barcode: str = Form(""),
    category_id: str = Form(""),
    supplier_id: str = Form(""),
    unit_price: str = Form(""),
    cost_price: str = Form(""),
    current_stock: str = Form(""),
    min_stock_threshold: str = Form(""),
    max_stock_threshold: str = Form(""),
    unit: str = Form(""),
    user: CurrentUser = Depends(require_staff),
):
    """Update product details. Stock changes go through adjustments."""
    client = user_client(user)
    product = await _product_or_404(client, product_id)
    values = _product_values(
        name, description, barcode, category_id, supplier_id, unit_price,
        cost_price, str(product.current_stock), min_stock_threshold, max_stock_threshold, unit,
    )

    if not values["name"] or not values["unit_price"]:
        return await _render_form(
            request, client, values, product_id, "Name and price are required", 400
        )

    try:
        data = ProductInput(**values)
    except ValidationError as e:
        return await _render_form(request, client, values, product_id, _form_error(e), 400)

    row = data.to_row()
    # Stock only moves through update_product_stock so every change is recorded
    row.pop("current_stock")
    try:
        await client.table("products").update(row).eq("id", product_id).execute()
    except BackendError as e:
        return await _render_form(
            request, client, values, product_id, f"Failed to update product: {e.message}", 502
        )

    logger.info(f"Product '{data.name}' updated by {user.email}")
    return redirect_with_notice("/inventory", f"Updated {data.name}")


@router.post("/{product_id}/delete")
async def delete_product(product_id: str, user: CurrentUser = Depends(require_staff)):
    """Retire a product. Sold products stay referenced by their sale items."""
    client = user_client(user)
    product = await _product_or_404(client, product_id)

    try:
        await client.table("products").update({"is_active": False}).eq("id", product_id).execute()
    except BackendError as e:
        return redirect_with_notice("/inventory", f"Failed to delete {product.name}: {e.message}", "error")

    logger.info(f"Product '{product.name}' deactivated by {user.email}")
    return redirect_with_notice("/inventory", f"Deleted {product.name}")


@router.get("/{product_id}/adjust", response_class=HTMLResponse)
async def adjust_stock_form(request: Request, product_id: str, user: CurrentUser = Depends(require_staff)):
    client = user_client(user)
    product = await _product_or_404(client, product_id)
    return render(
        request,
        "inventory/adjust.html",
        {"product": product, "movement_types": ADJUSTMENT_TYPES, "error": None},
    )


@router.post("/{product_id}/adjust")
async def adjust_stock(
    request: Request,
    product_id: str,
    quantity_change: str = Form(""),
    movement_type: str = Form(""),
    notes: str = Form(""),
    user: CurrentUser = Depends(require_staff),
):
    """Record a restock, correction, damage or return."""
    client = user_client(user)
    product = await _product_or_404(client, product_id)

    def form_error(message: str, status_code: int = 400):
        return render(
            request,
            "inventory/adjust.html",
            {"product": product, "movement_types": ADJUSTMENT_TYPES, "error": message},
            status_code=status_code,
        )

    try:
        movement = MovementType(movement_type)
    except ValueError:
        return form_error("Choose a movement type")
    if movement not in ADJUSTMENT_TYPES:
        return form_error("Choose a movement type")

    try:
        change = int(quantity_change.strip())
    except ValueError:
        return form_error("Quantity change must be a whole number")
    if change == 0:
        return form_error("Quantity change cannot be zero")
    if product.current_stock + change < 0:
        return form_error(f"Stock cannot go below zero (currently {product.current_stock})")

    try:
        await update_product_stock(
            client,
            product_id=product_id,
            quantity_change=change,
            movement_type=movement,
            reference_type="manual",
            notes=notes.strip() or None,
        )
    except BackendError as e:
        return form_error(f"Failed to adjust stock: {e.message}", 502)

    logger.info(f"Stock {change:+d} for '{product.name}' ({movement.value}) by {user.email}")
    return redirect_with_notice("/inventory", f"Stock updated for {product.name}")


@router.get("/{product_id}/movements", response_class=HTMLResponse)
async def stock_movements(request: Request, product_id: str, user: CurrentUser = Depends(require_staff)):
    client = user_client(user)
    product = await _product_or_404(client, product_id)
    movements = await fetch_movements(client, product_id)

    return render(
        request,
        "inventory/movements.html",
        {"product": product, "movements": movements},
    )
