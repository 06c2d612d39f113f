"""
Remote procedures exposed by the backend.
"""

import logging
from typing import Optional

from ..db.models import MovementType, StockStatus, UserRole
from .client import BackendClient, BackendError

logger = logging.getLogger(__name__)

GENERATE_SALE_NUMBER = "generate_sale_number"
UPDATE_PRODUCT_STOCK = "update_product_stock"
GET_STOCK_STATUS = "get_stock_status"
HAS_ROLE = "has_role"


async def generate_sale_number(client: BackendClient) -> str:
    """Ask the backend for the next unique sale number."""
    result = await client.rpc(GENERATE_SALE_NUMBER)
    if not result:
        raise BackendError("Backend returned no sale number")
    return str(result)


async def update_product_stock(
    client: BackendClient,
    product_id: str,
    quantity_change: int,
    movement_type: MovementType,
    reference_id: Optional[str] = None,
    reference_type: Optional[str] = None,
    notes: Optional[str] = None,
) -> None:
    """
    Atomically adjust a product's stock and record the movement.

    Args:
        client: Backend client acting as the current user
        product_id: Product to adjust
        quantity_change: Signed delta (negative for sales)
        movement_type: Why the stock moved
        reference_id: Related row, e.g. the sale id
        reference_type: Kind of related row, e.g. "sale"
        notes: Free text stored with the movement
    """
    params = {
        "product_id": product_id,
        "quantity_change": quantity_change,
        "movement_type": MovementType(movement_type).value,
    }
    if reference_id is not None:
        params["reference_id"] = reference_id
    if reference_type is not None:
        params["reference_type"] = reference_type
    if notes:
        params["notes"] = notes

    await client.rpc(UPDATE_PRODUCT_STOCK, params)
    logger.debug(f"Stock {quantity_change:+d} for {product_id} ({params['movement_type']})")


async def get_stock_status(client: BackendClient, product_id: str) -> StockStatus:
    result = await client.rpc(GET_STOCK_STATUS, {"product_id": product_id})
    return StockStatus(result)


async def has_role(client: BackendClient, required_role: UserRole) -> bool:
    """Server-side role check for the client's user."""
    result = await client.rpc(HAS_ROLE, {"required_role": UserRole(required_role).value})
    return bool(result)
