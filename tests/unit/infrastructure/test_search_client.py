"""Tests for the search backend HTTP client."""
import json

import httpx
import pytest

from redactlog.core.exceptions import LogServiceError
from redactlog.core.logging.config import ForwardingConfig
from redactlog.infrastructure.search import (
    SearchBackendAPIError,
    SearchBackendAuthenticationError,
    SearchBackendClient,
    SearchBackendConnectionError,
    SearchBackendError,
    SearchBackendTimeoutError,
)


def make_client(handler, **config):
    config.setdefault("url", "http://search.test:9200/")
    return SearchBackendClient(ForwardingConfig(**config), transport=httpx.MockTransport(handler))


class TestSearchBackendClient:
    """Test request building and error mapping."""

    def test_send_posts_document(self):
        """Test index path and document body."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(201, json={"result": "created"})

        with make_client(handler) as client:
            result = client.send("error-log", "boom")

        assert result == {"result": "created"}
        [request] = requests
        assert request.method == "POST"
        assert str(request.url) == "http://search.test:9200/error-log/_doc"
        body = json.loads(request.content)
        assert body["message"] == "boom"
        assert "@timestamp" in body

    def test_basic_auth(self):
        """Test username and password credentials."""
        seen = {}

        def handler(request):
            seen["authorization"] = request.headers.get("authorization")
            return httpx.Response(201, json={})

        with make_client(handler, username="elastic", password="changeme") as client:
            client.send("info-log", "x")

        assert seen["authorization"].startswith("Basic ")

    def test_api_key_auth(self):
        """Test API key credentials."""
        seen = {}

        def handler(request):
            seen["authorization"] = request.headers.get("authorization")
            return httpx.Response(201, json={})

        with make_client(handler, api_key="abc123") as client:
            client.send("info-log", "x")

        assert seen["authorization"] == "ApiKey abc123"

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors(self, status):
        """Test rejected credentials."""
        client = make_client(lambda request: httpx.Response(status, text="denied"))

        with pytest.raises(SearchBackendAuthenticationError) as exc_info:
            client.send("info-log", "x")

        assert exc_info.value.status_code == status
        client.close()

    def test_api_error(self):
        """Test server errors."""
        client = make_client(lambda request: httpx.Response(500, text="oops"))

        with pytest.raises(SearchBackendAPIError) as exc_info:
            client.send("info-log", "x")

        assert exc_info.value.details == {"response": "oops"}
        assert exc_info.value.index == "info-log"
        client.close()

    def test_connection_error(self):
        """Test unreachable backend."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)

        with pytest.raises(SearchBackendConnectionError):
            client.send("info-log", "x")
        client.close()

    def test_timeout(self):
        """Test timeouts."""
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = make_client(handler, request_timeout=0.5)

        with pytest.raises(SearchBackendTimeoutError) as exc_info:
            client.send("info-log", "x")

        assert exc_info.value.details == {"timeout": 0.5}
        client.close()

    def test_close_is_idempotent(self):
        """Test closing twice."""
        client = make_client(lambda request: httpx.Response(201, json={}))
        client.connect()

        client.close()
        client.close()


class TestSearchBackendError:
    """Test the error hierarchy."""

    def test_shares_log_service_base(self):
        """Test that backend errors are log service errors."""
        assert issubclass(SearchBackendTimeoutError, LogServiceError)

    @pytest.mark.parametrize(
        "status,expected",
        [(401, SearchBackendAuthenticationError), (403, SearchBackendAuthenticationError),
         (404, SearchBackendAPIError), (503, SearchBackendAPIError)],
    )
    def test_from_response(self, status, expected):
        """Test the status to error type mapping."""
        error = SearchBackendError.from_response(httpx.Response(status, text="body"), index="error-log")

        assert type(error) is expected
        assert error.status_code == status
        assert error.index == "error-log"

    def test_to_dict(self):
        """Test diagnostic serialization."""
        error = SearchBackendAPIError(
            "Search backend returned 500", status_code=500, index="info-log", details={"response": "oops"}
        )

        assert error.to_dict() == {
            "error": "SearchBackendAPIError",
            "message": "Search backend returned 500",
            "details": {"response": "oops"},
            "status_code": 500,
            "index": "info-log",
        }
