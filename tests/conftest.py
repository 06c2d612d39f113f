"""
Shared fixtures: a scripted backend behind httpx.MockTransport.
"""

import json
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest

from retailpos.backend import BackendClient

BACKEND_URL = "http://backend.test"
API_KEY = "anon-key"


class FakeBackend:
    """
    Records every request and answers from registered routes.

    Routes are keyed by (method, path). A route's reply is either a
    static JSON body or a callable taking the request.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], Any] = {}

    def on(self, method: str, path: str, body: Any = None, status: int = 200,
           handler: Callable[[httpx.Request], httpx.Response] = None):
        if handler is None:
            def handler(request, body=body, status=status):
                return httpx.Response(status, json=body)
        self.routes[(method, path)] = handler
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {request.url.path}"})
        return handler(request)

    def client(self, access_token: str = None) -> BackendClient:
        return BackendClient(
            BACKEND_URL,
            API_KEY,
            access_token=access_token,
            transport=httpx.MockTransport(self),
        )

    def sent(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None


@pytest.fixture
def fake_backend():
    return FakeBackend()


def product_row(**overrides) -> dict:
    row = {
        "id": "p1",
        "name": "Whole Milk",
        "barcode": "8901234567890",
        "unit_price": 150.0,
        "cost_price": 100.0,
        "current_stock": 10,
        "min_stock_threshold": 5,
        "max_stock_threshold": 100,
        "unit": "bottles",
        "is_active": True,
        "categories": {"name": "Dairy"},
    }
    row.update(overrides)
    return row


def sale_row(**overrides) -> dict:
    row = {
        "id": "s1",
        "sale_number": "SALE-000001",
        "subtotal": 300.0,
        "tax_amount": 24.0,
        "discount_amount": 0,
        "total_amount": 324.0,
        "payment_method": "cash",
        "payment_received": 400.0,
        "change_amount": 76.0,
        "customer_name": None,
        "created_at": "2025-01-15T10:30:00+00:00",
        "sale_items": [],
    }
    row.update(overrides)
    return row
