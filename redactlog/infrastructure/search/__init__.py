"""HTTP client for the search-indexing backend."""

from .client import SearchBackendClient
from .exceptions import (
    SearchBackendAPIError,
    SearchBackendAuthenticationError,
    SearchBackendConnectionError,
    SearchBackendError,
    SearchBackendTimeoutError,
)

__all__ = [
    "SearchBackendClient",
    "SearchBackendError",
    "SearchBackendConnectionError",
    "SearchBackendAuthenticationError",
    "SearchBackendAPIError",
    "SearchBackendTimeoutError",
]
