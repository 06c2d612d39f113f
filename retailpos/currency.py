"""
Currency formatting utilities for PKR (Pakistani Rupees).
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Union

CURRENCY_SYMBOL = "₨"
CURRENCY_CODE = "PKR"

LAKH = Decimal("100000")
THOUSAND = Decimal("1000")
CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str, None]


def to_decimal(value: Number) -> Decimal:
    """
    Coerce a backend numeric to Decimal.

    Floats go through their string form so 2.99 stays 2.99.
    Missing or unparseable values count as zero.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value).strip() or "0")
    except InvalidOperation:
        return Decimal("0")


def quantize_money(value: Number, places: int = 2) -> Decimal:
    """Round half away from zero to a fixed number of places."""
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def format_currency(amount: Number, show_symbol: bool = True, decimals: int = 2) -> str:
    """
    Format a number as PKR currency.

    Args:
        amount: The amount to format
        show_symbol: Prefix the rupee sign
        decimals: Fixed number of decimal places

    Returns:
        Formatted string, e.g. "₨1,234.50"
    """
    value = quantize_money(amount, decimals)
    sign = "-" if value < 0 else ""
    formatted = f"{abs(value):,.{decimals}f}"
    symbol = CURRENCY_SYMBOL if show_symbol else ""
    return f"{sign}{symbol}{formatted}"


def parse_currency(text: str) -> Decimal:
    """
    Parse a currency string to a number.

    Strips the symbol, separators and any other characters except digits,
    the decimal point and minus sign. Returns 0 when nothing parses.
    """
    if not text:
        return Decimal("0")
    clean = re.sub(r"[^\d.\-]", "", text.replace(CURRENCY_SYMBOL, ""))
    match = re.match(r"-?(\d+(\.\d*)?|\.\d+)", clean)
    if not match:
        return Decimal("0")
    return to_decimal(match.group(0))


def format_currency_compact(amount: Number) -> str:
    """Shorter format for cards and lists: lakhs as L, thousands as K."""
    value = to_decimal(amount)
    if value >= LAKH:
        return f"{CURRENCY_SYMBOL}{quantize_money(value / LAKH, 1)}L"
    if value >= THOUSAND:
        return f"{CURRENCY_SYMBOL}{quantize_money(value / THOUSAND, 1)}K"
    return format_currency(value)


def currency_input_props() -> Dict[str, Any]:
    """HTML attributes for money inputs."""
    return {
        "type": "number",
        "min": "0",
        "step": "0.01",
        "placeholder": "0.00",
    }


def format_percent(value: Number, decimals: int = 1) -> str:
    return f"{quantize_money(value, decimals)}%"
