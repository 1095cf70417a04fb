"""API client for the key-value store REST API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from .config import config
from .exceptions import (
    ConfigError,
    KVAPIError,
    KVAuthenticationError,
    KVInvalidResponseError,
    KVNetworkError,
    KVNotFoundError,
    KVPermissionError,
    KVRateLimitError,
)
from .utils import DEFAULT_LIST_PAGE_SIZE

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .sites.keys import KeyValuePair

logger = logging.getLogger(__name__)


class KVClient:
    """Client for the key-value namespace and worker route endpoints.

    The client performs exactly one HTTP request per call. Failed requests
    are raised as ``KVAPIError`` subclasses and never retried.
    """

    def __init__(
        self,
        api_key: str | None = None,
        email: str | None = None,
        api_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the API client.

        Args:
            api_key: Optional API key or token (uses config if not provided)
            email: Optional account email; when set, ``api_key`` is sent as a
                global API key instead of a bearer token
            api_url: Optional API URL (uses config if not provided)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key or config.api_key
        self.email = email or config.email
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.timeout = timeout
        self._transport = transport

        if not self.api_key:
            raise ConfigError(
                "API key not configured. Please set KVSITES_API_KEY environment "
                "variable or run 'pykvsites init'."
            )

        self._client: httpx.Client | None = None

    def _auth_headers(self) -> dict[str, str]:
        if self.email:
            return {"X-Auth-Key": str(self.api_key), "X-Auth-Email": self.email}
        return {"Authorization": f"Bearer {self.api_key}"}

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers=self._auth_headers(),
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> KVClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @staticmethod
    def _first_error(payload: Any) -> tuple[int | None, str | None]:
        """Extract the first (code, message) from an API error envelope."""
        if not isinstance(payload, dict):
            return None, None
        errors = payload.get("errors") or []
        if errors and isinstance(errors[0], dict):
            return errors[0].get("code"), errors[0].get("message")
        return None, None

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Translate an HTTP error status into a ``KVAPIError``.

        Args:
            response: Response with a 4xx or 5xx status

        Raises:
            KVAPIError: Always
        """
        status_code = response.status_code
        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None
        code, detail = self._first_error(payload)

        # Handle common HTTP status codes with user-friendly messages
        if status_code == 401:
            raise KVAuthenticationError(
                detail or "Invalid API key or unauthorized access",
                code=code,
                status_code=status_code,
            )
        elif status_code == 403:
            raise KVPermissionError(
                detail or "Access forbidden - check your permissions",
                code=code,
                status_code=status_code,
            )
        elif status_code == 404:
            raise KVNotFoundError(
                detail or "Resource not found", code=code, status_code=status_code
            )
        elif status_code == 429:
            raise KVRateLimitError(
                "Rate limit exceeded - please try again later",
                code=code,
                status_code=status_code,
            )

        error_msg = f"API request failed with status {status_code}"
        if detail:
            error_msg = f"{error_msg}: {detail}"
        raise KVAPIError(error_msg, code=code, status_code=status_code)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request and unwrap the response envelope.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Decoded JSON envelope

        Raises:
            KVAPIError: If the request fails
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        client = self._get_client()
        logger.debug("%s %s", method, url)

        try:
            response = client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise KVNetworkError(f"Network error: {e}") from e

        if response.is_error:
            self._raise_for_status(response)

        if not response.content:
            return {}

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            raise KVInvalidResponseError(
                f"Unexpected response type: {content_type}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise KVInvalidResponseError(
                "Invalid JSON response from server",
                status_code=response.status_code,
            ) from e

        # The API can answer 200 with success=false
        if isinstance(payload, dict) and payload.get("success") is False:
            code, detail = self._first_error(payload)
            raise KVAPIError(
                detail or "API reported failure",
                code=code,
                status_code=response.status_code,
            )
        return payload

    # =========================
    # Namespace Operations
    # =========================

    def _namespace_endpoint(self, account_id: str, namespace_id: str) -> str:
        return f"/accounts/{account_id}/storage/kv/namespaces/{namespace_id}"

    def list_keys_page(
        self,
        account_id: str,
        namespace_id: str,
        cursor: str | None = None,
        prefix: str | None = None,
        limit: int = DEFAULT_LIST_PAGE_SIZE,
    ) -> dict[str, Any]:
        """Fetch one page of keys from a namespace.

        Args:
            account_id: Account identifier
            namespace_id: Namespace identifier
            cursor: Cursor returned by the previous page, if any
            prefix: Only return keys starting with this prefix
            limit: Maximum number of keys on the page

        Returns:
            Envelope containing ``result`` (list of key records) and
            ``result_info`` (with the next ``cursor``)
        """
        params: dict[str, Any] = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        if prefix:
            params["prefix"] = prefix

        result: dict[str, Any] = self._request(
            "GET",
            f"{self._namespace_endpoint(account_id, namespace_id)}/keys",
            params=params,
        )
        return result

    def write_bulk(
        self,
        account_id: str,
        namespace_id: str,
        pairs: Sequence[KeyValuePair],
    ) -> Any:
        """Write many key-value pairs in one request.

        Args:
            account_id: Account identifier
            namespace_id: Namespace identifier
            pairs: Pairs to write

        Returns:
            API response envelope
        """
        return self._request(
            "PUT",
            f"{self._namespace_endpoint(account_id, namespace_id)}/bulk",
            json=[pair.to_dict() for pair in pairs],
        )

    def delete_bulk(
        self,
        account_id: str,
        namespace_id: str,
        keys: Sequence[str],
    ) -> Any:
        """Delete many keys in one request.

        Args:
            account_id: Account identifier
            namespace_id: Namespace identifier
            keys: Keys to delete

        Returns:
            API response envelope
        """
        return self._request(
            "DELETE",
            f"{self._namespace_endpoint(account_id, namespace_id)}/bulk",
            json=list(keys),
        )

    # =========================
    # Route Operations
    # =========================

    def put_route(self, zone_id: str, payload: dict[str, Any]) -> Any:
        """Create a route for a multi-script account."""
        return self._request("PUT", f"/zones/{zone_id}/workers/routes", json=payload)

    def put_filter(self, zone_id: str, payload: dict[str, Any]) -> Any:
        """Create a route filter for a single-script account."""
        return self._request("PUT", f"/zones/{zone_id}/workers/filters", json=payload)
