"""redactlog: leveled logging with field redaction and search forwarding."""

from redactlog.core.exceptions import ConfigurationError, LogServiceError, SinkWriteError
from redactlog.core.logging import (
    ConsoleConfig,
    FileConfig,
    ForwardingConfig,
    InitialConfig,
    LogHandle,
    LogLevel,
    LogService,
    RotationOptions,
    sanitize,
)

__version__ = "0.1.0"

__all__ = [
    "LogService",
    "LogHandle",
    "InitialConfig",
    "ConsoleConfig",
    "FileConfig",
    "RotationOptions",
    "ForwardingConfig",
    "LogLevel",
    "sanitize",
    "LogServiceError",
    "ConfigurationError",
    "SinkWriteError",
]
