"""Local sinks and the registry that dispatches events to them.

Each sink owns a private standard library logger with a single handler and
wraps it with structlog, so every sink has its own processor chain:
- console: pid, timestamp, then a line or Rich renderer
- file: timestamp, process metadata, then sorted-key JSON
"""

import itertools
import logging
import sys
import threading
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, TextIO

import structlog

from redactlog.core.exceptions import SinkWriteError

from .config import ConsoleConfig, FileConfig, LogLevel
from .console import PrettyConsoleRenderer, SimpleLineRenderer, add_process_id, safe_str
from .rotation import build_file_handler

logger = structlog.get_logger(__name__)

_sink_ids = itertools.count(1)


class Sink:
    """A single output destination with an enabled flag and a threshold."""

    kind = "sink"

    def __init__(
        self,
        handler: logging.Handler,
        processors: list[Any],
        level: LogLevel = LogLevel.DEBUG,
        enabled: bool = True,
        name: str | None = None,
    ) -> None:
        self.name = name or f"{self.kind}-{next(_sink_ids)}"
        self.enabled = enabled
        self.handler = handler
        self._level = level

        # Not registered with logging.getLogger: the sink owns it outright
        self._stdlib_logger = logging.Logger(f"redactlog.{self.name}", logging.DEBUG)
        self._stdlib_logger.propagate = False
        self._stdlib_logger.addHandler(handler)
        handler.setLevel(level.stdlib_level)

        self._logger = structlog.wrap_logger(
            self._stdlib_logger,
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    @property
    def level(self) -> LogLevel:
        return self._level

    @level.setter
    def level(self, value: LogLevel) -> None:
        self._level = LogLevel.parse(value)
        self.handler.setLevel(self._level.stdlib_level)

    def admits(self, severity: LogLevel) -> bool:
        return self.enabled and severity.admits(self._level)

    def write(self, severity: LogLevel, message: Any) -> bool:
        """Write ``message`` if the sink is enabled and admits ``severity``.

        Returns:
            True if the record was handed to the transport

        Raises:
            SinkWriteError: If rendering or writing the record failed
        """
        if not self.admits(severity):
            return False

        try:
            getattr(self._logger, severity.value)(message)
        except Exception as e:
            raise SinkWriteError(self.name, f"Failed to write to {self.name}", {"error": str(e)}) from e
        return True

    def close(self) -> None:
        self._stdlib_logger.removeHandler(self.handler)
        self.handler.flush()
        self.handler.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, level={self._level.value!r}, enabled={self.enabled})"


class ConsoleSink(Sink):
    """Writes one rendered line per event to stdout."""

    kind = "console"

    def __init__(self, config: ConsoleConfig, stream: TextIO | None = None, name: str | None = None) -> None:
        renderer = PrettyConsoleRenderer() if config.prettify else SimpleLineRenderer()
        processors = [
            structlog.stdlib.add_log_level,
            add_process_id,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ]
        super().__init__(
            handler=logging.StreamHandler(stream or sys.stdout),
            processors=processors,
            level=config.log_level,
            enabled=not config.silent,
            name=name,
        )


def stringify_keys(value: Any) -> Any:
    """Copy ``value`` with every mapping key converted to ``str``."""
    if isinstance(value, Mapping):
        return {safe_str(key): stringify_keys(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [stringify_keys(item) for item in value]
    return value


class FileRecordBuilder:
    """Build the file record from the payload and constant process metadata.

    A mapping payload contributes its own fields; anything else becomes
    ``message``. Metadata wins on key collisions.

    Mapping keys are converted to ``str`` at every depth so that records with
    integer, tuple or mixed keys still encode as sorted-key JSON.
    """

    def __init__(self, hostname: str | None, application: str | None, version: str | None) -> None:
        self.hostname = hostname
        self.application = application
        self.version = version

    def __call__(self, _: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        payload = stringify_keys(event_dict.pop("event", None))

        record: dict[str, Any] = {}
        if isinstance(payload, Mapping):
            record.update(payload)
            record.setdefault("message", None)
        else:
            record["message"] = payload

        record.update(event_dict)
        record.update(
            hostname=self.hostname,
            application=self.application,
            version=self.version,
        )
        return record


class FileSink(Sink):
    """Writes one sorted-key JSON record per event to a (rotating) file."""

    kind = "file"

    def __init__(
        self,
        config: FileConfig,
        app_name: str,
        hostname: str | None = None,
        version: str | None = None,
        name: str | None = None,
    ) -> None:
        processors = [
            structlog.stdlib.add_log_level,
            add_process_id,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            FileRecordBuilder(hostname=hostname, application=app_name, version=version),
            structlog.processors.JSONRenderer(sort_keys=True, default=safe_str, ensure_ascii=False),
        ]
        super().__init__(
            handler=build_file_handler(config, app_name),
            processors=processors,
            level=config.log_level,
            enabled=not config.silent,
            name=name,
        )


class SinkRegistry:
    """The configured sinks of one service instance."""

    def __init__(self, sinks: Iterable[Sink] | None = None) -> None:
        self._sinks: list[Sink] = list(sinks or [])
        self._lock = threading.RLock()

    def register(self, sink: Sink) -> None:
        with self._lock:
            self._sinks.append(sink)

    def dispatch(self, severity: LogLevel, message: Any) -> int:
        """Write ``message`` to every enabled sink that admits ``severity``.

        A failing sink is reported on the diagnostic logger and skipped.

        Returns:
            Number of sinks that accepted the record
        """
        written = 0
        with self._lock:
            for sink in self._sinks:
                if not sink.enabled:
                    continue
                try:
                    if sink.write(severity, message):
                        written += 1
                except SinkWriteError as e:
                    logger.error(
                        "Sink write failed",
                        sink=e.sink,
                        severity=severity.value,
                        error=e.details.get("error"),
                    )
        return written

    def set_level(self, level: LogLevel) -> None:
        """Change the threshold of every sink."""
        level = LogLevel.parse(level)
        with self._lock:
            for sink in self._sinks:
                sink.level = level

    def close(self) -> None:
        with self._lock:
            for sink in self._sinks:
                try:
                    sink.close()
                except Exception as e:
                    logger.warning("Failed to close sink", sink=sink.name, error=str(e))
            self._sinks = []

    def __iter__(self) -> Iterator[Sink]:
        with self._lock:
            return iter(list(self._sinks))

    def __len__(self) -> int:
        with self._lock:
            return len(self._sinks)
