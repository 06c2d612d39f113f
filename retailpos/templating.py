"""
Shared Jinja2 environment and response helpers.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from .config import settings
from .currency import currency_input_props, format_currency, format_currency_compact, format_percent
from .auth import ROLE_LABELS, parse_role

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def format_datetime(value: Any, fmt: str = "%b %d, %Y %H:%M") -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, (datetime, date)):
        return value.strftime(fmt)
    return str(value)


def role_label(value: Any) -> str:
    role = parse_role(value)
    return ROLE_LABELS[role] if role else str(value or "")


templates.env.filters["currency"] = format_currency
templates.env.filters["currency_compact"] = format_currency_compact
templates.env.filters["percent"] = format_percent
templates.env.filters["datetime"] = format_datetime
templates.env.filters["role_label"] = role_label
templates.env.globals["store_name"] = settings.store_name
templates.env.globals["money_input"] = currency_input_props


def render(request: Request, name: str, context: Optional[dict] = None, status_code: int = 200):
    """Render a page with the signed-in user and any pending notice."""
    data = {
        "user": getattr(request.state, "user", None),
        "notice": request.query_params.get("notice"),
        "notice_level": request.query_params.get("level", "success"),
    }
    data.update(context or {})
    return templates.TemplateResponse(request, name, data, status_code=status_code)


def redirect_with_notice(url: str, message: str, level: str = "success") -> RedirectResponse:
    """Post/redirect/get with a toast message carried in the query string."""
    separator = "&" if "?" in url else "?"
    query = urlencode({"notice": message, "level": level})
    return RedirectResponse(url=f"{url}{separator}{query}", status_code=303)
