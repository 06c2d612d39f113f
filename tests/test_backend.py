"""
Tests for the backend client, query builder and remote procedures.
"""

from datetime import datetime, timezone

import httpx
import pytest

from retailpos.backend import (
    BackendAuthError,
    BackendError,
    BackendNotFoundError,
    generate_sale_number,
    get_stock_status,
    has_role,
    update_product_stock,
)
from retailpos.backend.query import format_value
from retailpos.db import MovementType, StockStatus, UserRole

from conftest import API_KEY


class TestFormatValue:
    """Tests for filter operand rendering."""

    def test_none_and_bools(self):
        assert format_value(None) == "null"
        assert format_value(True) == "true"
        assert format_value(False) == "false"

    def test_datetime_isoformat(self):
        moment = datetime(2025, 1, 6, tzinfo=timezone.utc)
        assert format_value(moment) == "2025-01-06T00:00:00+00:00"

    def test_enum_uses_value(self):
        assert format_value(MovementType.RESTOCK) == "restock"


class TestQueryBuilder:
    """Tests for request encoding."""

    async def test_select_with_filters_order_and_limit(self, fake_backend):
        fake_backend.on("GET", "/rest/v1/products", [])
        client = fake_backend.client()

        await (
            client.table("products")
            .select("*, categories (name)")
            .eq("is_active", True)
            .gte("current_stock", 1)
            .order("name")
            .limit(5)
            .execute()
        )

        request = fake_backend.requests[0]
        assert request.url.params.multi_items() == [
            ("select", "*,categories(name)"),
            ("is_active", "eq.true"),
            ("current_stock", "gte.1"),
            ("order", "name.asc"),
            ("limit", "5"),
        ]
        assert request.headers["apikey"] == API_KEY
        assert request.headers["Authorization"] == f"Bearer {API_KEY}"

    async def test_user_token_replaces_api_key_in_authorization(self, fake_backend):
        fake_backend.on("GET", "/rest/v1/sales", [])
        client = fake_backend.client().with_token("user-token")

        await client.table("sales").select().execute()

        request = fake_backend.requests[0]
        assert request.headers["apikey"] == API_KEY
        assert request.headers["Authorization"] == "Bearer user-token"

    async def test_insert_asks_for_representation(self, fake_backend):
        fake_backend.on("POST", "/rest/v1/expenses", [{"id": "e1"}], status=201)
        client = fake_backend.client()

        rows = await client.table("expenses").insert({"description": "Rent"}).execute()

        assert rows == [{"id": "e1"}]
        request = fake_backend.requests[0]
        assert request.headers["Prefer"] == "return=representation"
        assert fake_backend.body(request) == {"description": "Rent"}

    async def test_in_and_or_filters(self, fake_backend):
        fake_backend.on("GET", "/rest/v1/products", [])
        client = fake_backend.client()

        await (
            client.table("products")
            .select()
            .in_("id", ["a", "b,c"])
            .or_("name.ilike.*milk*,barcode.eq.123")
            .execute()
        )

        params = dict(fake_backend.requests[0].url.params.multi_items())
        assert params["id"] == 'in.(a,"b,c")'
        assert params["or"] == "(name.ilike.*milk*,barcode.eq.123)"

    async def test_range_sets_offset_and_limit(self, fake_backend):
        fake_backend.on("GET", "/rest/v1/sales", [])
        await fake_backend.client().table("sales").select().range(25, 49).execute()

        params = dict(fake_backend.requests[0].url.params.multi_items())
        assert params["offset"] == "25"
        assert params["limit"] == "25"

    async def test_update_without_filter_is_refused(self, fake_backend):
        client = fake_backend.client()
        with pytest.raises(ValueError):
            await client.table("products").update({"is_active": False}).execute()
        assert fake_backend.requests == []

    async def test_single_raises_when_nothing_matches(self, fake_backend):
        fake_backend.on("GET", "/rest/v1/products", [])
        with pytest.raises(BackendNotFoundError):
            await fake_backend.client().table("products").select().eq("id", "x").single().execute()

    async def test_single_returns_row(self, fake_backend):
        fake_backend.on("GET", "/rest/v1/products", [{"id": "x"}])
        row = await fake_backend.client().table("products").select().eq("id", "x").single().execute()
        assert row == {"id": "x"}


class TestErrors:
    """Failures surface once, with the backend's message, and are never retried."""

    async def test_error_body_becomes_backend_error(self, fake_backend):
        fake_backend.on(
            "POST", "/rest/v1/sales",
            {"message": "duplicate key", "code": "23505", "hint": "check sale_number"},
            status=409,
        )

        with pytest.raises(BackendError) as exc_info:
            await fake_backend.client().table("sales").insert({}).execute()

        error = exc_info.value
        assert error.message == "duplicate key"
        assert error.status_code == 409
        assert error.code == "23505"
        assert error.hint == "check sale_number"
        assert len(fake_backend.requests) == 1

    async def test_401_is_auth_error(self, fake_backend):
        fake_backend.on("GET", "/rest/v1/sales", {"message": "JWT expired"}, status=401)
        with pytest.raises(BackendAuthError):
            await fake_backend.client("old").table("sales").select().execute()

    async def test_403_is_not_auth_error(self, fake_backend):
        fake_backend.on("DELETE", "/rest/v1/expenses", {"message": "permission denied"}, status=403)

        with pytest.raises(BackendError) as exc_info:
            await fake_backend.client("tok").table("expenses").delete().eq("id", "e1").execute()

        assert not isinstance(exc_info.value, BackendAuthError)
        assert exc_info.value.status_code == 403

    async def test_connection_failure_is_backend_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        from retailpos.backend import BackendClient

        client = BackendClient("http://backend.test", "k", transport=httpx.MockTransport(handler))
        with pytest.raises(BackendError, match="Request error"):
            await client.table("sales").select().execute()


class TestProcedures:
    """Tests for remote procedure wrappers."""

    async def test_generate_sale_number(self, fake_backend):
        fake_backend.on("POST", "/rest/v1/rpc/generate_sale_number", "SALE-000042")
        assert await generate_sale_number(fake_backend.client()) == "SALE-000042"

    async def test_update_product_stock_sends_movement(self, fake_backend):
        fake_backend.on("POST", "/rest/v1/rpc/update_product_stock", None, status=204)

        await update_product_stock(
            fake_backend.client(),
            product_id="p1",
            quantity_change=-2,
            movement_type=MovementType.SALE,
            reference_id="s1",
            reference_type="sale",
        )

        body = fake_backend.body(fake_backend.requests[0])
        assert body == {
            "product_id": "p1",
            "quantity_change": -2,
            "movement_type": "sale",
            "reference_id": "s1",
            "reference_type": "sale",
        }

    async def test_get_stock_status(self, fake_backend):
        fake_backend.on("POST", "/rest/v1/rpc/get_stock_status", "low_stock")

        status = await get_stock_status(fake_backend.client("tok"), "p1")

        assert status == StockStatus.LOW_STOCK
        assert fake_backend.body(fake_backend.requests[0]) == {"product_id": "p1"}

    async def test_has_role_asks_the_backend(self, fake_backend):
        fake_backend.on("POST", "/rest/v1/rpc/has_role", True)

        assert await has_role(fake_backend.client("tok"), UserRole.MANAGER) is True
        assert fake_backend.body(fake_backend.requests[0]) == {"required_role": "manager"}


class TestAuth:
    """Tests for the auth accessor."""

    async def test_sign_in_returns_session(self, fake_backend):
        fake_backend.on("POST", "/auth/v1/token", {
            "access_token": "tok",
            "refresh_token": "ref",
            "expires_in": 3600,
            "user": {"id": "u1", "email": "cashier@shop.pk"},
        })

        session = await fake_backend.client().auth.sign_in_with_password("cashier@shop.pk", "pw")

        assert session.access_token == "tok"
        assert session.user.id == "u1"
        request = fake_backend.requests[0]
        assert request.url.params["grant_type"] == "password"

    async def test_bad_credentials_raise_auth_error(self, fake_backend):
        fake_backend.on("POST", "/auth/v1/token", {"error_description": "Invalid login credentials"}, status=400)

        with pytest.raises(BackendAuthError, match="Invalid login credentials"):
            await fake_backend.client().auth.sign_in_with_password("a@b.c", "wrong")

    async def test_get_user_without_token_is_none(self, fake_backend):
        assert await fake_backend.client().auth.get_user() is None
        assert fake_backend.requests == []

    async def test_get_user_with_token(self, fake_backend):
        fake_backend.on("GET", "/auth/v1/user", {"id": "u1", "email": "a@b.c"})
        user = await fake_backend.client("tok").auth.get_user()
        assert user.id == "u1"
