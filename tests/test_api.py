"""Unit tests for the key-value API client."""

import json
from unittest.mock import patch

import httpx
import pytest

from pykvsites.api import KVClient
from pykvsites.exceptions import (
    ConfigError,
    KVAPIError,
    KVAuthenticationError,
    KVInvalidResponseError,
    KVNetworkError,
    KVNotFoundError,
    KVPermissionError,
    KVRateLimitError,
)
from pykvsites.sites.keys import KeyValuePair


def make_client(handler, **kwargs) -> KVClient:
    """Create a client whose requests are answered by ``handler``."""
    return KVClient(
        api_key="test_key",
        api_url="https://api.test/client/v4",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def envelope(result=None, result_info=None, success=True, errors=None) -> dict:
    return {
        "success": success,
        "errors": errors or [],
        "messages": [],
        "result": result,
        "result_info": result_info,
    }


class TestKVClient:
    """Tests for KVClient initialization."""

    def test_init_with_api_key(self):
        """Test client initialization with API key."""
        client = KVClient(api_key="test_key")
        assert client.api_key == "test_key"

    def test_init_without_api_key_raises_error(self):
        """Test that initializing without API key raises error."""
        with patch("pykvsites.api.config") as mock_config:
            mock_config.api_key = None
            with pytest.raises(ConfigError, match="API key not configured"):
                KVClient(api_key=None)

    def test_bearer_auth_without_email(self):
        """Without an email the key is sent as a bearer token."""
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json=envelope([]))

        with patch("pykvsites.api.config") as mock_config:
            mock_config.email = None
            client = make_client(handler)
            client.list_keys_page("acc", "ns")

        assert seen["authorization"] == "Bearer test_key"
        assert "x-auth-email" not in seen

    def test_global_key_auth_with_email(self):
        """With an email the key is sent as a global API key."""
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json=envelope([]))

        client = make_client(handler, email="me@example.com")
        client.list_keys_page("acc", "ns")

        assert seen["x-auth-key"] == "test_key"
        assert seen["x-auth-email"] == "me@example.com"

    def test_context_manager_closes(self):
        """Leaving the with block closes the connection pool."""
        client = make_client(lambda request: httpx.Response(200, json=envelope([])))
        with client:
            client.list_keys_page("acc", "ns")
            assert client._client is not None
        assert client._client is None


class TestEndpoints:
    """Tests for request construction."""

    def test_list_keys_page_params(self):
        """Listing sends limit, cursor and prefix."""
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(
                200, json=envelope([{"name": "a"}], {"cursor": "next"})
            )

        result = make_client(handler).list_keys_page(
            "acc", "ns", cursor="abc", prefix="docs/", limit=10
        )

        request = captured[0]
        assert request.method == "GET"
        assert request.url.path == (
            "/client/v4/accounts/acc/storage/kv/namespaces/ns/keys"
        )
        assert request.url.params["cursor"] == "abc"
        assert request.url.params["prefix"] == "docs/"
        assert request.url.params["limit"] == "10"
        assert result["result_info"]["cursor"] == "next"

    def test_write_bulk_body(self):
        """Bulk write sends the wire form of each pair."""
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json=envelope())

        pairs = [KeyValuePair(key="a.1234567890.txt", value="YQ==", base64=True)]
        make_client(handler).write_bulk("acc", "ns", pairs)

        request = captured[0]
        assert request.method == "PUT"
        assert request.url.path.endswith("/namespaces/ns/bulk")
        assert json.loads(request.content) == [
            {"key": "a.1234567890.txt", "value": "YQ==", "base64": True}
        ]

    def test_delete_bulk_body(self):
        """Bulk delete sends the list of keys."""
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json=envelope())

        make_client(handler).delete_bulk("acc", "ns", ["a", "b"])

        request = captured[0]
        assert request.method == "DELETE"
        assert json.loads(request.content) == ["a", "b"]

    def test_put_route(self):
        """Routes are PUT to the zone's routes endpoint."""
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json=envelope())

        make_client(handler).put_route("zone", {"pattern": "x/*", "script": "s"})

        assert captured[0].url.path.endswith("/zones/zone/workers/routes")
        assert json.loads(captured[0].content) == {"pattern": "x/*", "script": "s"}


class TestErrorHandling:
    """Tests for translating failures into exceptions."""

    @pytest.mark.parametrize(
        "status, exc_type",
        [
            (401, KVAuthenticationError),
            (403, KVPermissionError),
            (404, KVNotFoundError),
            (429, KVRateLimitError),
            (500, KVAPIError),
        ],
    )
    def test_http_errors(self, status, exc_type):
        """Each status maps to its exception type."""
        client = make_client(lambda request: httpx.Response(status))
        with pytest.raises(exc_type) as exc_info:
            client.list_keys_page("acc", "ns")
        assert exc_info.value.status_code == status

    def test_error_code_extracted(self):
        """The first error code and message of the envelope are kept."""

        def handler(request):
            return httpx.Response(
                404,
                json=envelope(
                    success=False,
                    errors=[{"code": 10009, "message": "namespace not found"}],
                ),
            )

        with pytest.raises(KVNotFoundError, match="namespace not found") as exc_info:
            make_client(handler).list_keys_page("acc", "ns")
        assert exc_info.value.code == 10009

    def test_success_false_with_200(self):
        """A 200 envelope reporting failure raises."""

        def handler(request):
            return httpx.Response(
                200,
                json=envelope(success=False, errors=[{"code": 1, "message": "nope"}]),
            )

        with pytest.raises(KVAPIError, match="nope"):
            make_client(handler).list_keys_page("acc", "ns")

    def test_non_json_response(self):
        """An HTML answer is an invalid response."""

        def handler(request):
            return httpx.Response(
                200, text="<html></html>", headers={"Content-Type": "text/html"}
            )

        with pytest.raises(KVInvalidResponseError):
            make_client(handler).list_keys_page("acc", "ns")

    def test_network_error_not_retried(self):
        """A transport failure raises once without retrying."""
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(KVNetworkError, match="Network error"):
            make_client(handler).list_keys_page("acc", "ns")
        assert len(calls) == 1
