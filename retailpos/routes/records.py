"""
Simple record management: categories, suppliers and customers.

The three tables share one shape (a name plus optional text fields), so
their list/create/edit/delete routes come from one factory.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Type

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import HTMLResponse

from ..backend import BackendError
from ..db import Category, Customer, Supplier, UserRole
from ..db.models import Row
from ..dependencies import CurrentUser, require_role, user_client
from ..templating import redirect_with_notice, render

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordField:
    name: str
    label: str
    input_type: str = "text"
    required: bool = False


@dataclass(frozen=True)
class RecordType:
    """One managed table and how its form looks."""
    table: str
    title: str
    singular: str
    model: Type[Row]
    fields: List[RecordField]
    role: UserRole

    @property
    def path(self) -> str:
        return f"/{self.table}"


CATEGORIES = RecordType(
    table="categories",
    title="Categories",
    singular="category",
    model=Category,
    fields=[
        RecordField("name", "Name", required=True),
        RecordField("description", "Description", "textarea"),
    ],
    role=UserRole.INVENTORY_STAFF,
)

SUPPLIERS = RecordType(
    table="suppliers",
    title="Suppliers",
    singular="supplier",
    model=Supplier,
    fields=[
        RecordField("name", "Name", required=True),
        RecordField("contact_person", "Contact person"),
        RecordField("email", "Email", "email"),
        RecordField("phone", "Phone", "tel"),
        RecordField("address", "Address", "textarea"),
    ],
    role=UserRole.INVENTORY_STAFF,
)

CUSTOMERS = RecordType(
    table="customers",
    title="Customers",
    singular="customer",
    model=Customer,
    fields=[
        RecordField("name", "Name", required=True),
        RecordField("email", "Email", "email"),
        RecordField("phone", "Phone", "tel"),
        RecordField("address", "Address", "textarea"),
    ],
    role=UserRole.MANAGER,
)


def form_values(record_type: RecordType, form) -> dict:
    """Trimmed form values; blank optional fields become null."""
    values = {}
    for field in record_type.fields:
        value = (form.get(field.name) or "").strip()
        values[field.name] = value or None
    return values


def missing_fields(record_type: RecordType, values: dict) -> List[str]:
    return [f.label for f in record_type.fields if f.required and not values.get(f.name)]


def record_router(record_type: RecordType) -> APIRouter:
    """List, create, edit and delete routes for one record type."""
    require = require_role(record_type.role)
    router = APIRouter(prefix=record_type.path, dependencies=[Depends(require)])

    async def fetch_all(user: CurrentUser):
        rows = await user_client(user).table(record_type.table).select("*").order("name").execute()
        return [record_type.model.model_validate(row) for row in rows]

    async def fetch_one(user: CurrentUser, record_id: str):
        rows = await (
            user_client(user).table(record_type.table).select("*").eq("id", record_id).limit(1).execute()
        )
        if not rows:
            raise HTTPException(status_code=404, detail=f"{record_type.singular.title()} not found")
        return record_type.model.model_validate(rows[0])

    async def render_page(
        request: Request,
        user: CurrentUser,
        values: Optional[dict] = None,
        editing: Optional[str] = None,
        error: Optional[str] = None,
        status_code: int = 200,
    ):
        return render(
            request,
            "records.html",
            {
                "record_type": record_type,
                "records": await fetch_all(user),
                "values": values or {},
                "editing": editing,
                "error": error,
            },
            status_code=status_code,
        )

    @router.get("", response_class=HTMLResponse)
    async def list_records(request: Request, user: CurrentUser = Depends(require)):
        return await render_page(request, user)

    @router.post("")
    async def create_record(request: Request, user: CurrentUser = Depends(require)):
        values = form_values(record_type, await request.form())
        missing = missing_fields(record_type, values)
        if missing:
            return await render_page(
                request, user, values, error=f"Required: {', '.join(missing)}", status_code=400
            )

        try:
            await user_client(user).table(record_type.table).insert(values).execute()
        except BackendError as e:
            return await render_page(
                request, user, values,
                error=f"Failed to create {record_type.singular}: {e.message}",
                status_code=502,
            )

        logger.info(f"Created {record_type.singular} '{values['name']}'")
        return redirect_with_notice(record_type.path, f"Added {values['name']}")

    @router.get("/{record_id}/edit", response_class=HTMLResponse)
    async def edit_record_form(request: Request, record_id: str, user: CurrentUser = Depends(require)):
        record = await fetch_one(user, record_id)
        values = {f.name: getattr(record, f.name) for f in record_type.fields}
        return await render_page(request, user, values, editing=record_id)

    @router.post("/{record_id}/edit")
    async def update_record(request: Request, record_id: str, user: CurrentUser = Depends(require)):
        await fetch_one(user, record_id)
        values = form_values(record_type, await request.form())
        missing = missing_fields(record_type, values)
        if missing:
            return await render_page(
                request, user, values, record_id, f"Required: {', '.join(missing)}", 400
            )

        try:
            await user_client(user).table(record_type.table).update(values).eq("id", record_id).execute()
        except BackendError as e:
            return await render_page(
                request, user, values, record_id,
                f"Failed to update {record_type.singular}: {e.message}", 502,
            )

        logger.info(f"Updated {record_type.singular} '{values['name']}'")
        return redirect_with_notice(record_type.path, f"Updated {values['name']}")

    @router.post("/{record_id}/delete")
    async def delete_record(record_id: str, user: CurrentUser = Depends(require)):
        record = await fetch_one(user, record_id)
        try:
            await user_client(user).table(record_type.table).delete().eq("id", record_id).execute()
        except BackendError as e:
            # Usually a foreign key: the record is still referenced
            return redirect_with_notice(
                record_type.path, f"Failed to delete {record.name}: {e.message}", "error"
            )

        logger.info(f"Deleted {record_type.singular} '{record.name}'")
        return redirect_with_notice(record_type.path, f"Deleted {record.name}")

    return router


categories_router = record_router(CATEGORIES)
suppliers_router = record_router(SUPPLIERS)
customers_router = record_router(CUSTOMERS)
