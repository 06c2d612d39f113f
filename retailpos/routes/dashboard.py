"""
Dashboard route.
"""

from fastapi import APIRouter, Request, Depends
from fastapi.responses import HTMLResponse

from ..config import settings
from ..dependencies import CurrentUser, require_auth, user_client
from ..reports import fetch_dashboard
from ..templating import render

router = APIRouter(dependencies=[Depends(require_auth)])


@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request, user: CurrentUser = Depends(require_auth)):
    """Today's figures, recent sales and low stock."""
    stats = await fetch_dashboard(user_client(user), low_stock_preview=settings.low_stock_preview)

    return render(request, "dashboard.html", {"stats": stats})
