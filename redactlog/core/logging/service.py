"""The log service: redaction, local dispatch and forwarding in one place.

Typical use::

    service = LogService(["password"], mask="*")
    service.init(InitialConfig(app_name="billing", file=FileConfig()))
    service.info({"user": "a", "password": "secret"})
    service.error("payment failed").send()

Each call sanitizes every content value, writes it to the local sinks and
lets the forwarding policy decide whether the value also goes to the search
backend. ``send()`` on the returned handle forces forwarding of the same
values regardless of the configured target severities.
"""

import threading
from collections.abc import Iterable, Mapping
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import ValidationError

from redactlog.core.exceptions import ConfigurationError

from .config import InitialConfig, LogLevel
from .forwarding import ForwardingPolicy, SearchClient
from .redaction import DEFAULT_MASK, Blacklist, sanitize
from .sinks import ConsoleSink, FileSink, SinkRegistry

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LogHandle:
    """Returned by every logging call; ``send()`` forces forwarding."""

    service: "LogService"
    level: LogLevel
    contents: tuple[Any, ...]

    def send(self) -> None:
        """Forward every content value of the originating call."""
        for content in self.contents:
            self.service._forward(self.level, content, force=True)


class LogService:
    """Leveled logging with key-based redaction and optional forwarding."""

    def __init__(
        self,
        blacklist: Iterable[str] | None = None,
        mask: str | None = None,
        client: SearchClient | None = None,
        executor: Executor | None = None,
    ) -> None:
        """Initialize the service.

        Args:
        ----
            blacklist: Keys whose values are masked in local output
            mask: Replacement for masked values (default ``"*"``)
            client: Search backend client to use instead of the HTTP client
            executor: Executor for forwarding instead of a private thread pool

        """
        self._blacklist = Blacklist(blacklist)
        self._mask = mask if mask is not None else DEFAULT_MASK
        self._mask_lock = threading.Lock()
        self._client = client
        self._executor = executor

        self.config: InitialConfig | None = None
        self.sinks = SinkRegistry()
        self.forwarding = ForwardingPolicy(None)

    # Blacklist and mask

    def get_blacklist(self) -> list[str]:
        return self._blacklist.get()

    def set_blacklist(self, names: Iterable[str]) -> None:
        self._blacklist.replace(names)

    def add_to_blacklist(self, names: Iterable[str]) -> None:
        if isinstance(names, str):
            names = [names]
        self._blacklist.extend(names)

    def remove_from_blacklist(self, name: str) -> None:
        self._blacklist.remove(name)

    @property
    def mask(self) -> str:
        with self._mask_lock:
            return self._mask

    @mask.setter
    def mask(self, value: str) -> None:
        with self._mask_lock:
            self._mask = value

    # Configuration

    @property
    def is_configured(self) -> bool:
        return self.config is not None

    def init(self, config: InitialConfig | Mapping[str, Any]) -> None:
        """Configure sinks and forwarding, replacing any previous setup.

        Raises:
        ------
            ConfigurationError: If the configuration is invalid or incomplete

        """
        config = self._validate(config)

        file_config = config.file
        if file_config is not None and not file_config.silent and not config.app_name:
            raise ConfigurationError(
                "app_name is required when the file sink is enabled",
                details={"field": "app_name"},
            )

        sinks = SinkRegistry()
        try:
            if file_config is not None and not file_config.silent:
                sinks.register(
                    FileSink(
                        file_config,
                        app_name=config.app_name,
                        hostname=config.hostname,
                        version=config.version,
                    )
                )
            if not config.console.silent:
                sinks.register(ConsoleSink(config.console))
        except OSError as e:
            sinks.close()
            raise ConfigurationError(
                "Could not open log file",
                details={"log_file_dir": file_config.log_file_dir, "error": str(e)},
            ) from e

        forwarding = ForwardingPolicy(
            config.elastic_search,
            client=self._client,
            executor=self._executor,
        )

        previous_sinks, previous_forwarding = self.sinks, self.forwarding
        self.config, self.sinks, self.forwarding = config, sinks, forwarding
        previous_sinks.close()
        previous_forwarding.close(wait=False)

        if forwarding.enabled and not forwarding.forwards_sanitized:
            logger.warning(
                "Forwarded records are not redacted",
                backend=config.elastic_search.url,
                targets=config.elastic_search.targets,
            )

    def _validate(self, config: InitialConfig | Mapping[str, Any]) -> InitialConfig:
        if isinstance(config, InitialConfig):
            return config
        if not isinstance(config, Mapping):
            raise ConfigurationError(
                "Configuration must be an InitialConfig or a mapping",
                details={"type": type(config).__name__},
            )
        try:
            return InitialConfig(**config)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid log service configuration",
                details={"errors": e.errors(include_url=False)},
            ) from e

    def set_level(self, level: LogLevel | str) -> None:
        """Change the minimum severity of every sink."""
        self.sinks.set_level(LogLevel.parse(level))

    def close(self) -> None:
        """Flush and close sinks and stop the forwarding pool."""
        self.sinks.close()
        self.forwarding.close()

    # Logging

    def log(self, level: LogLevel | str, *contents: Any) -> LogHandle:
        """Log every value in ``contents`` at ``level``.

        Raises:
        ------
            ConfigurationError: If called before ``init``

        """
        level = LogLevel.parse(level)
        if not self.is_configured:
            raise ConfigurationError(
                "LogService.init must be called before logging",
                details={"level": level.value},
            )

        for content in contents:
            self._log(level, content)

        return LogHandle(service=self, level=level, contents=tuple(contents))

    def debug(self, *contents: Any) -> LogHandle:
        return self.log(LogLevel.DEBUG, *contents)

    def info(self, *contents: Any) -> LogHandle:
        return self.log(LogLevel.INFO, *contents)

    def warning(self, *contents: Any) -> LogHandle:
        return self.log(LogLevel.WARNING, *contents)

    def error(self, *contents: Any) -> LogHandle:
        return self.log(LogLevel.ERROR, *contents)

    # Short aliases
    d = debug
    i = info
    w = warning
    e = error

    def _log(self, level: LogLevel, content: Any) -> None:
        sanitized = self._sanitize(content)
        self.sinks.dispatch(level, sanitized)
        self._forward(level, content, sanitized=sanitized)

    def _sanitize(self, content: Any) -> Any:
        return sanitize(content, self._blacklist.snapshot(), self.mask)

    def _forward(
        self,
        level: LogLevel,
        content: Any,
        force: bool = False,
        sanitized: Any = None,
    ) -> None:
        forwarding = self.forwarding
        if forwarding.forwards_sanitized:
            content = sanitized if sanitized is not None else self._sanitize(content)
        forwarding.submit(level, content, force=force)
