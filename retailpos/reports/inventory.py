"""
Inventory screen figures: stock status, totals and filtering.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from ..backend import BackendClient
from ..db.models import Product, StockMovement, StockStatus

STATUS_LABELS = {
    StockStatus.IN_STOCK: "Normal",
    StockStatus.LOW_STOCK: "Low Stock",
    StockStatus.OUT_OF_STOCK: "Out of Stock",
    StockStatus.OVER_STOCK: "Overstock",
}

INVENTORY_COLUMNS = "*, categories(name), suppliers(name)"


def stock_status(product: Product) -> StockStatus:
    """Classify stock against the product's min/max thresholds."""
    if product.current_stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if product.current_stock <= product.min_stock_threshold:
        return StockStatus.LOW_STOCK
    if product.current_stock > product.max_stock_threshold:
        return StockStatus.OVER_STOCK
    return StockStatus.IN_STOCK


@dataclass
class InventoryStats:
    total_items: int
    total_units: int
    inventory_value: Decimal
    cost_value: Decimal
    low_stock: int
    out_of_stock: int


def inventory_stats(products: Iterable[Product]) -> InventoryStats:
    """Totals for the stat cards. Value is at selling price, cost value at cost."""
    total_items = total_units = low = out = 0
    value = cost = Decimal("0")

    for product in products:
        total_items += 1
        units = max(product.current_stock, 0)
        total_units += units
        value += product.unit_price * units
        cost += product.cost_price * units

        status = stock_status(product)
        if status == StockStatus.LOW_STOCK:
            low += 1
        elif status == StockStatus.OUT_OF_STOCK:
            out += 1

    return InventoryStats(
        total_items=total_items,
        total_units=total_units,
        inventory_value=value,
        cost_value=cost,
        low_stock=low,
        out_of_stock=out,
    )


def filter_products(
    products: Iterable[Product],
    query: str = "",
    category_id: Optional[str] = None,
    status: Optional[StockStatus] = None,
) -> List[Product]:
    """Client-side search by name/barcode plus category and status filters."""
    needle = (query or "").strip().lower()
    result = []
    for product in products:
        if needle and needle not in product.name.lower() and needle != (product.barcode or "").lower():
            continue
        if category_id and category_id != "all" and product.category_id != category_id:
            continue
        if status is not None and stock_status(product) != status:
            continue
        result.append(product)
    return result


def low_stock_products(products: Iterable[Product]) -> List[Product]:
    """Low and out-of-stock products, emptiest first."""
    flagged = [
        p for p in products
        if stock_status(p) in (StockStatus.LOW_STOCK, StockStatus.OUT_OF_STOCK)
    ]
    return sorted(flagged, key=lambda p: (p.current_stock, p.name.lower()))


async def fetch_products(client: BackendClient, include_inactive: bool = False) -> List[Product]:
    builder = client.table("products").select(INVENTORY_COLUMNS).order("name")
    if not include_inactive:
        builder = builder.eq("is_active", True)
    rows = await builder.execute()
    return [Product.model_validate(row) for row in rows]


async def fetch_movements(client: BackendClient, product_id: str, limit: int = 50) -> List[StockMovement]:
    rows = await (
        client.table("stock_movements")
        .select("*")
        .eq("product_id", product_id)
        .order("created_at", ascending=False)
        .limit(limit)
        .execute()
    )
    return [StockMovement.model_validate(row) for row in rows]
