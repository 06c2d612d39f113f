"""
Invoice history and receipts.
"""

from typing import List, Optional

from ..backend import BackendClient
from ..currency import format_currency
from ..db.models import Sale

SALE_WITH_ITEMS = """
    *,
    sale_items (
        product_name,
        quantity,
        unit_price,
        total_price
    )
"""

WALK_IN_CUSTOMER = "Walk-in Customer"

PAYMENT_LABELS = {
    "cash": "Cash",
    "card": "Card",
    "digital_wallet": "Digital Wallet",
}


async def fetch_recent_sales(client: BackendClient, limit: int = 50) -> List[Sale]:
    """Newest sales first, with their line items."""
    rows = await (
        client.table("sales")
        .select(SALE_WITH_ITEMS)
        .order("created_at", ascending=False)
        .limit(limit)
        .execute()
    )
    return [Sale.model_validate(row) for row in rows]


async def fetch_sale(client: BackendClient, sale_id: str) -> Optional[Sale]:
    rows = await (
        client.table("sales")
        .select(SALE_WITH_ITEMS)
        .eq("id", sale_id)
        .limit(1)
        .execute()
    )
    return Sale.model_validate(rows[0]) if rows else None


def payment_label(sale: Sale) -> str:
    return PAYMENT_LABELS.get(sale.payment_method.value, sale.payment_method.value)


def render_receipt_text(
    sale: Sale,
    store_name: str,
    store_address: str = "",
    store_phone: str = "",
    width: int = 48,
) -> str:
    """Plain-text receipt for download or a receipt printer."""
    rule = "=" * width
    thin = "-" * width

    def row(label: str, value: str) -> str:
        gap = max(1, width - len(label) - len(value))
        return f"{label}{' ' * gap}{value}"

    lines = [rule, store_name.center(width)]
    if store_address:
        lines.append(store_address.center(width))
    if store_phone:
        lines.append(f"Tel: {store_phone}".center(width))
    lines.extend([
        rule,
        f"Invoice:  {sale.sale_number}",
        f"Date:     {sale.created_at.strftime('%Y-%m-%d %H:%M')}",
        f"Customer: {sale.customer_name or WALK_IN_CUSTOMER}",
    ])
    if sale.customer_phone:
        lines.append(f"Phone:    {sale.customer_phone}")
    lines.append(f"Payment:  {payment_label(sale)}")
    lines.append(thin)

    for item in sale.items:
        lines.append(item.product_name[:width])
        lines.append(row(
            f"  {item.quantity} x {format_currency(item.unit_price)}",
            format_currency(item.total_price),
        ))

    lines.append(thin)
    lines.append(row("Subtotal", format_currency(sale.subtotal)))
    if sale.discount_amount:
        lines.append(row("Discount", f"-{format_currency(sale.discount_amount)}"))
    lines.append(row("Tax", format_currency(sale.tax_amount)))
    lines.append(row("TOTAL", format_currency(sale.total_amount)))
    lines.append(row("Paid", format_currency(sale.payment_received)))
    if sale.change_amount > 0:
        lines.append(row("Change", format_currency(sale.change_amount)))
    lines.extend([rule, "Thank you for shopping with us!".center(width), rule, ""])

    return "\n".join(lines)
