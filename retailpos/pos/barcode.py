"""
Product lookup for the POS search box and barcode scanner.
"""

import logging
import re
from typing import List, Optional

from ..backend import BackendClient
from ..db.models import Product

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "*, categories(name)"

# Characters with special meaning inside an or=(...) filter
_FILTER_SPECIAL = re.compile(r"[,()*\\\"]")


def normalize_scan(text: Optional[str]) -> str:
    """Strip whitespace and control characters a scanner may append (CR, LF, TAB)."""
    if not text:
        return ""
    return "".join(ch for ch in text if ch.isprintable()).strip()


async def find_product_by_code(client: BackendClient, code: str) -> Optional[Product]:
    """Return the active product whose barcode matches exactly, or None."""
    code = normalize_scan(code)
    if not code:
        return None

    rows = await (
        client.table("products")
        .select(PRODUCT_COLUMNS)
        .eq("barcode", code)
        .eq("is_active", True)
        .limit(1)
        .execute()
    )
    if not rows:
        logger.info(f"No product for scanned code '{code}'")
        return None
    return Product.model_validate(rows[0])


async def get_product(client: BackendClient, product_id: str) -> Optional[Product]:
    rows = await (
        client.table("products")
        .select(PRODUCT_COLUMNS)
        .eq("id", product_id)
        .limit(1)
        .execute()
    )
    return Product.model_validate(rows[0]) if rows else None


async def search_products(client: BackendClient, query: str = "", limit: int = 24) -> List[Product]:
    """
    Active products for the POS grid.

    Matches name (case-insensitive substring) or exact barcode.
    An empty query lists products by name.
    """
    builder = (
        client.table("products")
        .select(PRODUCT_COLUMNS)
        .eq("is_active", True)
        .order("name")
        .limit(limit)
    )

    term = _FILTER_SPECIAL.sub(" ", normalize_scan(query)).strip()
    if term:
        builder = builder.or_(f"name.ilike.*{term}*,barcode.eq.{term}")

    rows = await builder.execute()
    return [Product.model_validate(row) for row in rows]
