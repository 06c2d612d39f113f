"""
Reporting routes: profit & loss and analytics.
"""

from datetime import date

from fastapi import APIRouter, Request, Depends, Query
from fastapi.responses import HTMLResponse, Response

from ..db import UserRole
from ..dependencies import CurrentUser, require_auth, require_role, user_client
from ..reports import (
    Timeframe,
    export_profit_loss_csv,
    fetch_analytics,
    fetch_period_report,
    fetch_realtime,
    profitability_analysis,
)
from ..templating import render

require_manager = require_role(UserRole.MANAGER)

router = APIRouter()

ANALYTICS_RANGES = (7, 30, 90)


@router.get("/profit-loss", response_class=HTMLResponse)
async def profit_loss_page(
    request: Request,
    timeframe: Timeframe = Timeframe.MONTHLY,
    user: CurrentUser = Depends(require_manager),
):
    """Today's figures plus the trend table for the chosen timeframe."""
    client = user_client(user)
    realtime = await fetch_realtime(client)
    rows = await fetch_period_report(client, timeframe)

    return render(
        request,
        "profit_loss.html",
        {
            "timeframe": timeframe,
            "timeframes": list(Timeframe),
            "realtime": realtime,
            "rows": rows,
            "analysis": profitability_analysis(rows),
            "chart": [row.to_dict() for row in rows],
        },
    )


@router.get("/profit-loss/export")
async def profit_loss_export(
    timeframe: Timeframe = Timeframe.MONTHLY,
    user: CurrentUser = Depends(require_manager),
):
    rows = await fetch_period_report(user_client(user), timeframe)
    filename = f"profit-loss-{timeframe.value}-{date.today().isoformat()}.csv"
    return Response(
        content=export_profit_loss_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/api/profit-loss/realtime")
async def profit_loss_realtime(user: CurrentUser = Depends(require_manager)):
    """Today's revenue, costs and profit for the auto-refreshing cards."""
    summary = await fetch_realtime(user_client(user))
    return summary.to_dict()


@router.get("/analytics", response_class=HTMLResponse)
async def analytics_page(
    request: Request,
    days: int = Query(30, ge=1, le=365),
    user: CurrentUser = Depends(require_auth),
):
    """Chart shell; data comes from /api/analytics."""
    return render(request, "analytics.html", {"days": days, "ranges": ANALYTICS_RANGES})


@router.get("/api/analytics")
async def analytics_data(
    days: int = Query(30, ge=1, le=365),
    user: CurrentUser = Depends(require_auth),
):
    return await fetch_analytics(user_client(user), days)
