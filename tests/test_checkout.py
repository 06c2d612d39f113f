"""
Tests for the multi-step checkout.
"""

from decimal import Decimal

import httpx
import pytest

from retailpos.db import PaymentMethod, Product
from retailpos.pos import Cart, CheckoutError, CustomerDetails, PaymentError, checkout

from conftest import product_row


def cart_with(*rows) -> Cart:
    cart = Cart()
    for row in rows:
        cart.add_product(Product.model_validate(row))
    return cart


def sale_insert_handler(request: httpx.Request) -> httpx.Response:
    import json

    body = json.loads(request.content)
    body.update({"id": "s1", "created_at": "2025-01-15T10:30:00+00:00"})
    return httpx.Response(201, json=[body])


def items_insert_handler(request: httpx.Request) -> httpx.Response:
    import json

    rows = json.loads(request.content)
    return httpx.Response(201, json=[dict(row, id=f"i{n}") for n, row in enumerate(rows)])


@pytest.fixture
def checkout_backend(fake_backend):
    fake_backend.on("POST", "/rest/v1/rpc/generate_sale_number", "SALE-000007")
    fake_backend.on("POST", "/rest/v1/sales", handler=sale_insert_handler)
    fake_backend.on("POST", "/rest/v1/sale_items", handler=items_insert_handler)
    fake_backend.on("POST", "/rest/v1/rpc/update_product_stock", None, status=204)
    return fake_backend


class TestCheckout:
    """Tests for checkout()."""

    async def test_records_sale_items_and_stock_in_order(self, checkout_backend):
        cart = cart_with(product_row(), product_row(id="p2", name="Bread", unit_price=50))
        cart.update_quantity("p1", 1)

        result = await checkout(
            checkout_backend.client("tok"),
            cart,
            cashier_id="u1",
            payment_method=PaymentMethod.CASH,
            payment_received=Decimal("500"),
            customer=CustomerDetails(name="Ayesha"),
        )

        paths = [r.url.path for r in checkout_backend.requests]
        assert paths == [
            "/rest/v1/rpc/generate_sale_number",
            "/rest/v1/sales",
            "/rest/v1/sale_items",
            "/rest/v1/rpc/update_product_stock",
            "/rest/v1/rpc/update_product_stock",
        ]

        sale_body = checkout_backend.body(checkout_backend.requests[1])
        assert sale_body["sale_number"] == "SALE-000007"
        assert sale_body["subtotal"] == 350.0
        assert sale_body["tax_amount"] == 28.0
        assert sale_body["total_amount"] == 378.0
        assert sale_body["change_amount"] == 122.0
        assert sale_body["customer_name"] == "Ayesha"
        assert sale_body["cashier_id"] == "u1"

        items_body = checkout_backend.body(checkout_backend.requests[2])
        assert items_body[0] == {
            "sale_id": "s1",
            "product_id": "p1",
            "product_name": "Whole Milk",
            "quantity": 2,
            "unit_price": 150.0,
            "total_price": 300.0,
        }

        stock_body = checkout_backend.body(checkout_backend.requests[3])
        assert stock_body["quantity_change"] == -2
        assert stock_body["movement_type"] == "sale"
        assert stock_body["reference_id"] == "s1"
        assert stock_body["reference_type"] == "sale"

        assert result.complete
        assert result.sale.sale_number == "SALE-000007"
        assert len(result.items) == 2

    async def test_empty_cart(self, checkout_backend):
        with pytest.raises(CheckoutError) as exc_info:
            await checkout(checkout_backend.client(), Cart(), "u1", PaymentMethod.CARD)
        assert exc_info.value.step == "validate"
        assert checkout_backend.requests == []

    async def test_short_cash_makes_no_backend_calls(self, checkout_backend):
        cart = cart_with(product_row())
        with pytest.raises(PaymentError):
            await checkout(checkout_backend.client(), cart, "u1", PaymentMethod.CASH, Decimal("10"))
        assert checkout_backend.requests == []

    async def test_item_failure_leaves_sale_recorded(self, checkout_backend):
        """No rollback: the sale row stays and the error names the step."""
        checkout_backend.on("POST", "/rest/v1/sale_items", {"message": "insert failed"}, status=500)
        cart = cart_with(product_row())

        with pytest.raises(CheckoutError) as exc_info:
            await checkout(checkout_backend.client(), cart, "u1", PaymentMethod.CARD)

        assert exc_info.value.step == "sale_items"
        assert exc_info.value.sale_number == "SALE-000007"
        assert checkout_backend.sent("DELETE", "/rest/v1/sales") == []
        assert checkout_backend.sent("POST", "/rest/v1/rpc/update_product_stock") == []

    async def test_stock_failures_are_collected(self, checkout_backend):
        calls = []

        def flaky_stock(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(400, json={"message": "Insufficient stock"})
            return httpx.Response(204)

        checkout_backend.on("POST", "/rest/v1/rpc/update_product_stock", handler=flaky_stock)
        cart = cart_with(product_row(), product_row(id="p2", name="Bread"))

        result = await checkout(checkout_backend.client(), cart, "u1", PaymentMethod.CARD)

        assert len(calls) == 2
        assert not result.complete
        assert result.stock_failures == ["Whole Milk"]

    async def test_sale_number_failure(self, checkout_backend):
        checkout_backend.on("POST", "/rest/v1/rpc/generate_sale_number", {"message": "boom"}, status=500)
        cart = cart_with(product_row())

        with pytest.raises(CheckoutError) as exc_info:
            await checkout(checkout_backend.client(), cart, "u1", PaymentMethod.CARD)

        assert exc_info.value.step == "sale_number"
        assert checkout_backend.sent("POST", "/rest/v1/sales") == []
