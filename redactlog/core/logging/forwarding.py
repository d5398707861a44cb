"""Forwarding of log records to the search backend.

Forwarding is optional and fire-and-forget: a record is pushed from a
background thread, failures are only reported on the diagnostic logger, and
nothing is retried or batched.
"""

import json
import threading
from collections.abc import Mapping
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

from redactlog.infrastructure.search.client import SearchBackendClient

from .config import ForwardingConfig, LogLevel, WILDCARD_TARGET
from .console import safe_str

logger = structlog.get_logger(__name__)

EMPTY_MESSAGE = "Empty log message"


class SearchClient(Protocol):
    """What the policy needs from a backend client."""

    def send(self, index: str, message: str) -> Any: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class ForwardRecord:
    """A record pushed to the search backend."""

    index: str
    message: str

    @classmethod
    def build(cls, severity: LogLevel, content: Any) -> "ForwardRecord":
        return cls(index=f"{severity.value}-log", message=serialize_content(content))

    def to_dict(self) -> dict[str, str]:
        return {"index": self.index, "message": self.message}


def serialize_content(content: Any) -> str:
    """Serialize a payload for the backend.

    Mappings and sequences become compact JSON with sorted keys, ``None``
    becomes a placeholder, and everything else is coerced with ``str``.
    Never raises: values whose ``__str__`` fails are replaced by a type
    placeholder.
    """
    if content is None:
        return EMPTY_MESSAGE
    if isinstance(content, (Mapping, list, tuple)):
        try:
            return json.dumps(
                content,
                sort_keys=True,
                separators=(",", ":"),
                default=safe_str,
                ensure_ascii=False,
            )
        except Exception:
            # Mixed key types, cycles or containers that fail to iterate
            return safe_str(content)
    return safe_str(content)


def should_forward(
    severity: LogLevel,
    config: ForwardingConfig | None,
    force: bool = False,
) -> bool:
    """Decide whether one event goes to the search backend."""
    if config is None:
        return False
    if force:
        return True
    if WILDCARD_TARGET in config.targets:
        return True
    return severity.value in config.targets


class ForwardingPolicy:
    """Evaluates and executes forwarding for one service instance."""

    def __init__(
        self,
        config: ForwardingConfig | None = None,
        client: SearchClient | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.config = config
        self._client = client
        self._executor = executor
        self._owns_executor = False
        self._owns_client = False
        self._drain_thread: threading.Thread | None = None

        if config is not None:
            if self._client is None:
                self._client = SearchBackendClient(config)
                self._owns_client = True
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=config.max_workers,
                    thread_name_prefix="redactlog-forward",
                )
                self._owns_executor = True

    @property
    def enabled(self) -> bool:
        return self.config is not None

    @property
    def forwards_sanitized(self) -> bool:
        return self.config is not None and self.config.redact

    def should_forward(self, severity: LogLevel, force: bool = False) -> bool:
        return should_forward(severity, self.config, force)

    def submit(self, severity: LogLevel, content: Any, force: bool = False) -> Future | None:
        """Forward ``content`` if the policy allows it.

        Returns:
            The pending push, or None when nothing was sent
        """
        if not self.should_forward(severity, force):
            return None
        return self.forward(severity, content)

    def forward(self, severity: LogLevel, content: Any) -> Future | None:
        """Push one record in the background without waiting for it."""
        if self.config is None:
            return None

        record = ForwardRecord.build(severity, content)
        try:
            return self._executor.submit(self._push, record)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning("Forwarding skipped", index=record.index, error=str(e))
            return None

    def _push(self, record: ForwardRecord) -> None:
        try:
            self._client.send(record.index, record.message)
        except Exception as e:
            logger.warning("Forwarding to search backend failed", index=record.index, error=str(e))

    def close(self, wait: bool = True) -> None:
        """Stop accepting records and release the pool and the client.

        With ``wait=False`` the call returns at once; queued pushes still run
        and the owned client is closed by a drain thread once they finish.
        """
        if not self._owns_executor or self._executor is None:
            self._close_client()
            return

        if wait:
            self._executor.shutdown(wait=True)
            self._close_client()
            return

        self._executor.shutdown(wait=False)
        self._drain_thread = threading.Thread(
            target=self._drain,
            name="redactlog-forward-drain",
            daemon=True,
        )
        self._drain_thread.start()

    def _drain(self) -> None:
        self._executor.shutdown(wait=True)
        self._close_client()

    def _close_client(self) -> None:
        if not self._owns_client:
            return
        try:
            self._client.close()
        except Exception as e:
            logger.warning("Failed to close search backend client", error=str(e))
