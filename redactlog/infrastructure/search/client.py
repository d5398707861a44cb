import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from httpx import Client, ConnectError, Response, TimeoutException

from .exceptions import (
    SearchBackendConnectionError,
    SearchBackendError,
    SearchBackendTimeoutError,
)

if TYPE_CHECKING:
    from redactlog.core.logging.config import ForwardingConfig

logger = structlog.get_logger(__name__)


class SearchBackendClient:
    """HTTP client for indexing log records in an Elasticsearch-compatible backend"""

    def __init__(
        self,
        config: "ForwardingConfig",
        transport: httpx.BaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport
        self._client: Client | None = None
        self._lock = threading.Lock()
        self._headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if config.api_key:
            self._headers["Authorization"] = f"ApiKey {config.api_key}"

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self):
        """Initialize the HTTP client"""
        with self._lock:
            if self._client is None:
                auth = None
                if self.config.username:
                    auth = httpx.BasicAuth(self.config.username, self.config.password or "")
                self._client = Client(
                    base_url=self.config.url,
                    headers=self._headers,
                    auth=auth,
                    timeout=httpx.Timeout(self.config.request_timeout),
                    verify=self.config.verify_ssl,
                    transport=self._transport,
                )
                logger.debug("Search backend client connected", base_url=self.config.url)

    def close(self):
        """Close the HTTP client"""
        with self._lock:
            if self._client:
                self._client.close()
                self._client = None
                logger.debug("Search backend client disconnected")

    def _make_request(
        self,
        method: str,
        endpoint: str,
        index: str | None = None,
        **kwargs
    ) -> Response:
        """Make a single HTTP request; failures are mapped, never retried"""
        if not self._client:
            self.connect()

        try:
            response = self._client.request(
                method=method,
                url=endpoint,
                **kwargs
            )
            response.raise_for_status()
            return response

        except ConnectError as e:
            raise SearchBackendConnectionError(
                "Failed to connect to search backend",
                index=index,
                details={"error": str(e)}
            ) from e

        except TimeoutException as e:
            raise SearchBackendTimeoutError(
                "Request to search backend timed out",
                index=index,
                details={"timeout": self.config.request_timeout}
            ) from e

        except httpx.HTTPStatusError as e:
            raise SearchBackendError.from_response(e.response, index=index) from e

        except Exception as e:
            raise SearchBackendError(
                "Unexpected error communicating with search backend",
                index=index,
                details={"error": str(e)}
            ) from e

    def send(self, index: str, message: str) -> dict[str, Any]:
        """Index one log message in ``index``"""
        document = {
            "message": message,
            "@timestamp": datetime.now(UTC).isoformat(),
        }
        response = self._make_request("POST", f"/{index}/_doc", index=index, json=document)
        return response.json()
