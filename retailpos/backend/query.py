"""
Table query builder.

Filters and modifiers are encoded the way the backend's REST layer
expects them: ``column=op.value``, ``order=col.desc``, ``limit=n``.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .client import BackendClient, BackendNotFoundError, rows_or_empty


def format_value(value: Any) -> str:
    """Render a Python value as a filter operand."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "value"):  # Enum members
        return str(value.value)
    return str(value)


def _quote_list_item(value: Any) -> str:
    text = format_value(value)
    if any(ch in text for ch in ',()"'):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def clean_columns(columns: str) -> str:
    """Strip whitespace from a select expression (embedded selects span lines)."""
    return "".join(columns.split())


class QueryBuilder:
    """Chainable query against one table."""

    def __init__(self, client: BackendClient, table: str):
        self._client = client
        self.table = table
        self._method = "GET"
        self._columns: Optional[str] = None
        self._filters: List[Tuple[str, str]] = []
        self._order: List[str] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._body: Any = None
        self._single = False

    # ===== Read / write verbs =====

    def select(self, columns: str = "*") -> "QueryBuilder":
        self._columns = clean_columns(columns)
        return self

    def insert(self, rows: Union[Dict[str, Any], List[Dict[str, Any]]]) -> "QueryBuilder":
        self._method = "POST"
        self._body = rows
        return self

    def update(self, values: Dict[str, Any]) -> "QueryBuilder":
        self._method = "PATCH"
        self._body = values
        return self

    def delete(self) -> "QueryBuilder":
        self._method = "DELETE"
        return self

    # ===== Filters =====

    def filter(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        self._filters.append((column, f"{operator}.{format_value(value)}"))
        return self

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        return self.filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "QueryBuilder":
        return self.filter(column, "neq", value)

    def gt(self, column: str, value: Any) -> "QueryBuilder":
        return self.filter(column, "gt", value)

    def gte(self, column: str, value: Any) -> "QueryBuilder":
        return self.filter(column, "gte", value)

    def lt(self, column: str, value: Any) -> "QueryBuilder":
        return self.filter(column, "lt", value)

    def lte(self, column: str, value: Any) -> "QueryBuilder":
        return self.filter(column, "lte", value)

    def ilike(self, column: str, pattern: str) -> "QueryBuilder":
        return self.filter(column, "ilike", pattern)

    def is_(self, column: str, value: Optional[bool]) -> "QueryBuilder":
        return self.filter(column, "is", value)

    def in_(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        items = ",".join(_quote_list_item(v) for v in values)
        self._filters.append((column, f"in.({items})"))
        return self

    def or_(self, conditions: str) -> "QueryBuilder":
        """Add a disjunction, e.g. ``"name.ilike.*milk*,barcode.eq.123"``."""
        self._filters.append(("or", f"({conditions})"))
        return self

    # ===== Modifiers =====

    def order(self, column: str, ascending: bool = True) -> "QueryBuilder":
        self._order.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def limit(self, count: int) -> "QueryBuilder":
        self._limit = count
        return self

    def range(self, start: int, end: int) -> "QueryBuilder":
        """Inclusive row range, as in ``range(0, 24)`` for the first 25 rows."""
        self._offset = start
        self._limit = end - start + 1
        return self

    def single(self) -> "QueryBuilder":
        """Return exactly one row; raise BackendNotFoundError when none match."""
        self._single = True
        if self._limit is None:
            self._limit = 1
        return self

    # ===== Execution =====

    def build_params(self) -> List[Tuple[str, str]]:
        """Query-string pairs for this request."""
        params: List[Tuple[str, str]] = []

        columns = self._columns
        if columns is None and self._method == "GET":
            columns = "*"
        if columns is not None:
            params.append(("select", columns))

        params.extend(self._filters)

        if self._order:
            params.append(("order", ",".join(self._order)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        if self._offset is not None:
            params.append(("offset", str(self._offset)))

        return params

    def build_headers(self) -> Dict[str, str]:
        if self._method in ("POST", "PATCH", "DELETE"):
            return {"Prefer": "return=representation"}
        return {}

    async def execute(self) -> Any:
        """
        Run the query.

        Returns:
            List of row dicts, or a single row dict after single()

        Raises:
            BackendNotFoundError: If single() was requested and no row matched
            BackendError: For any other failure
        """
        if self._method in ("PATCH", "DELETE") and not self._filters:
            raise ValueError(f"Refusing to {self._method} every row of '{self.table}'")

        result = await self._client.request(
            self._method,
            f"{BackendClient.REST_PATH}/{self.table}",
            params=self.build_params(),
            json=self._body,
            headers=self.build_headers(),
        )
        rows = rows_or_empty(result)

        if self._single:
            if not rows:
                raise BackendNotFoundError(
                    f"No row found in '{self.table}'", status_code=406
                )
            return rows[0]

        return rows
