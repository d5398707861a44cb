"""Errors raised by the search backend client.

They share the log service's base error so diagnostics can serialize them
with ``to_dict``. The forwarding policy catches and logs every one of them;
none reaches a logging call.
"""

from typing import Any

import httpx

from redactlog.core.exceptions import LogServiceError


class SearchBackendError(LogServiceError):
    """A request to the search backend failed.

    Attributes:
        status_code: HTTP status of the rejected request, if one came back
        index: Index the record was addressed to
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        index: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        self.index = index
        super().__init__(message, details=details)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(status_code=self.status_code, index=self.index)
        return data

    @classmethod
    def from_response(cls, response: httpx.Response, index: str | None = None) -> "SearchBackendError":
        """Pick the error type for a non-2xx response."""
        status = response.status_code
        if status in (401, 403):
            error_cls, message = SearchBackendAuthenticationError, "Search backend rejected the credentials"
        else:
            error_cls, message = SearchBackendAPIError, f"Search backend returned {status}"
        return error_cls(message, status_code=status, index=index, details={"response": response.text})


class SearchBackendConnectionError(SearchBackendError):
    """The backend could not be reached."""


class SearchBackendAuthenticationError(SearchBackendError):
    """The backend answered 401 or 403."""


class SearchBackendAPIError(SearchBackendError):
    """The backend answered with any other error status."""


class SearchBackendTimeoutError(SearchBackendError):
    """No answer within ``request_timeout``."""
