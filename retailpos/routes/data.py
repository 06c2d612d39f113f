"""
CSV import/export routes.
"""

import logging

from fastapi import APIRouter, Request, Depends, File, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, Response

from ..backend import BackendError
from ..csv_io import (
    IMPORT_EXPORT_TYPES,
    CSVImportError,
    export_csv,
    export_filename,
    fetch_export_rows,
    import_csv,
    template_csv,
)
from ..db import UserRole
from ..dependencies import CurrentUser, require_role, user_client
from ..templating import redirect_with_notice, render

logger = logging.getLogger(__name__)

require_manager = require_role(UserRole.MANAGER)

router = APIRouter(prefix="/data", dependencies=[Depends(require_manager)])


def _csv_download(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _check_kind(kind: str) -> None:
    if kind not in IMPORT_EXPORT_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown data type '{kind}'")


@router.get("", response_class=HTMLResponse)
async def data_page(request: Request):
    return render(request, "data.html", {"types": IMPORT_EXPORT_TYPES})


@router.get("/{kind}/template")
async def download_template(kind: str):
    _check_kind(kind)
    return _csv_download(template_csv(kind), f"{kind}-template.csv")


@router.get("/{kind}/export")
async def export_data(kind: str, user: CurrentUser = Depends(require_manager)):
    _check_kind(kind)
    rows = await fetch_export_rows(user_client(user), kind)
    if not rows:
        return redirect_with_notice("/data", f"No {kind} to export", "warning")

    logger.info(f"{user.email} exported {len(rows)} {kind}")
    return _csv_download(export_csv(rows), export_filename(kind))


@router.post("/{kind}/import")
async def import_data(kind: str, file: UploadFile = File(...), user: CurrentUser = Depends(require_manager)):
    _check_kind(kind)
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return redirect_with_notice("/data", "File must be UTF-8 encoded CSV", "error")

    try:
        count = await import_csv(user_client(user), kind, text, user.id)
    except CSVImportError as e:
        return redirect_with_notice("/data", f"Import failed: {e}", "error")
    except BackendError as e:
        return redirect_with_notice("/data", f"Import failed: {e.message}", "error")

    return redirect_with_notice("/data", f"Imported {count} {kind}")
