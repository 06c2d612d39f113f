"""
Hosted backend REST client.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx

logger = logging.getLogger(__name__)

Params = Sequence[Tuple[str, str]]


class BackendError(Exception):
    """Base exception for backend client errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.hint = hint


class BackendAuthError(BackendError):
    """Missing, expired or rejected credentials."""
    pass


class BackendNotFoundError(BackendError):
    """A single row was requested but none matched."""
    pass


class BackendClient:
    """
    Async HTTP client for the hosted database-as-a-service.

    One generic surface for every screen: table queries, remote
    procedures and the auth accessor. Failures are raised once and
    never retried.
    """

    REST_PATH = "/rest/v1"
    AUTH_PATH = "/auth/v1"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize backend client.

        Args:
            base_url: Project URL (e.g., "https://abc.example.co")
            api_key: Public API key sent with every request
            access_token: Signed-in user's token; the API key is used when absent
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
            http_client: Shared connection pool from a parent client
        """
        from .auth import BackendAuth

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = http_client
        self._owns_client = http_client is None
        self.auth = BackendAuth(self)

    def _http(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
            self._owns_client = True
        return self._client

    def with_token(self, access_token: Optional[str]) -> "BackendClient":
        """Return a client acting as the given user, sharing this pool."""
        return BackendClient(
            self.base_url,
            self.api_key,
            access_token=access_token,
            timeout=self.timeout,
            http_client=self._http(),
        )

    async def close(self) -> None:
        """Close the HTTP client if this instance owns it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _headers(self, authenticated: bool = True) -> Dict[str, str]:
        token = self.access_token if authenticated and self.access_token else self.api_key
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
        }

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Union[Params, Dict[str, str]]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Send one request to the backend.

        Args:
            method: HTTP method
            path: Path below the project URL (e.g., "/rest/v1/products")
            params: Query parameters; a list of pairs keeps repeated keys
            json: JSON body
            headers: Extra headers merged over the auth headers
            authenticated: Send the user token instead of the API key

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            BackendAuthError: If the token is missing or rejected
            BackendError: For any other failure
        """
        client = self._http()
        request_headers = self._headers(authenticated)
        if headers:
            request_headers.update(headers)

        try:
            response = await client.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json,
                headers=request_headers,
            )
        except httpx.RequestError as e:
            logger.error(f"Backend request failed: {method} {path}: {e}")
            raise BackendError(f"Request error: {e}") from e

        if response.status_code >= 400:
            error = self._error_from_response(response)
            logger.error(f"Backend error {response.status_code} on {method} {path}: {error}")
            raise error

        if response.status_code == 204 or not response.content:
            return None

        return response.json()

    @staticmethod
    def _error_from_response(response: httpx.Response) -> BackendError:
        """Build an exception from an error response body."""
        message = f"HTTP {response.status_code}"
        code = details = hint = None

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            message = (
                body.get("message")
                or body.get("msg")
                or body.get("error_description")
                or body.get("error")
                or message
            )
            code = body.get("code") or body.get("error_code")
            if code is not None:
                code = str(code)
            details = body.get("details")
            hint = body.get("hint")
        elif response.text:
            message = response.text[:200]

        error_class = BackendAuthError if response.status_code == 401 else BackendError
        return error_class(
            str(message),
            status_code=response.status_code,
            code=code,
            details=details,
            hint=hint,
        )

    def table(self, name: str) -> "QueryBuilder":
        """Start a query against a table."""
        from .query import QueryBuilder

        return QueryBuilder(self, name)

    def from_(self, name: str) -> "QueryBuilder":
        """Alias for table()."""
        return self.table(name)

    async def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call a remote procedure.

        Args:
            name: Procedure name
            params: Named arguments

        Returns:
            The procedure's decoded return value
        """
        return await self.request(
            "POST",
            f"{self.REST_PATH}/rpc/{name}",
            json=params or {},
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


def rows_or_empty(result: Any) -> List[Dict[str, Any]]:
    """Normalize a query result to a list of rows."""
    if result is None:
        return []
    if isinstance(result, list):
        return result
    return [result]
