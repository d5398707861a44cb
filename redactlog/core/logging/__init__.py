"""Redacting log service.

This module provides leveled logging to console and file sinks with
key-based redaction and optional forwarding to a search backend.
"""

from .config import (
    ConsoleConfig,
    FileConfig,
    ForwardingConfig,
    InitialConfig,
    LogLevel,
    RotationOptions,
)
from .forwarding import ForwardingPolicy, ForwardRecord, serialize_content, should_forward
from .redaction import Blacklist, sanitize
from .service import LogHandle, LogService
from .sinks import ConsoleSink, FileSink, Sink, SinkRegistry

__all__ = [
    "LogService",
    "LogHandle",
    "InitialConfig",
    "ConsoleConfig",
    "FileConfig",
    "RotationOptions",
    "ForwardingConfig",
    "LogLevel",
    "Blacklist",
    "sanitize",
    "Sink",
    "ConsoleSink",
    "FileSink",
    "SinkRegistry",
    "ForwardingPolicy",
    "ForwardRecord",
    "serialize_content",
    "should_forward",
]
