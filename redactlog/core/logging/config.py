"""Logging configuration for the redacting log service.

This module defines:
- The ordered severity levels shared by sinks and forwarding
- Console, file and rotation settings for the local sinks
- Search backend forwarding settings
- ``InitialConfig``, the value passed to ``LogService.init``

``InitialConfig`` also reads environment variables with the prefix
``LOG_SERVICE_`` (nested sections use ``__``). For example:
- LOG_SERVICE_APP_NAME=billing
- LOG_SERVICE_CONSOLE__LOG_LEVEL=info
- LOG_SERVICE_FILE__LOG_FILE_DIR=/var/log/billing
- LOG_SERVICE_ELASTIC_SEARCH__URL=http://localhost:9200
"""

import logging
import re
import socket
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Ordered log severities: debug < info < warning < error."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def stdlib_level(self) -> int:
        """Equivalent level for standard library handlers."""
        return _STDLIB_LEVELS[self]

    def admits(self, threshold: "LogLevel") -> bool:
        """Return True if this severity is at or above ``threshold``."""
        return self.rank >= threshold.rank

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: Any) -> "LogLevel":
        """Convert user input (``"WARN"``, ``"Info"``, a LogLevel) to a LogLevel.

        Raises:
            ValueError: If the value does not name a known severity
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            name = _ALIASES.get(name, name)
            try:
                return cls(name)
            except ValueError:
                pass
        raise ValueError(
            f"Unknown log level {value!r}; expected one of "
            f"{', '.join(level.value for level in cls)}"
        )


_RANKS = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
}

_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

_ALIASES = {"warn": "warning", "err": "error"}

WILDCARD_TARGET = "*"

_SIZE_UNITS = {"": 1, "k": 1024, "m": 1024 ** 2, "g": 1024 ** 3}
_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([kmg]?)b?\s*$", re.IGNORECASE)
_DAYS_PATTERN = re.compile(r"^\s*(\d+)\s*d\s*$", re.IGNORECASE)

# Moment-style tokens accepted in date patterns, longest first
_DATE_TOKENS = [
    ("YYYY", "%Y"),
    ("YY", "%y"),
    ("MM", "%m"),
    ("DD", "%d"),
    ("HH", "%H"),
    ("mm", "%M"),
    ("ss", "%S"),
]


def _parse_level(v: Any) -> LogLevel:
    return LogLevel.parse(v)


class ConsoleConfig(BaseModel):
    """Console sink settings.

    Attributes:
        silent: Disable the sink entirely
        log_level: Minimum severity written to the console
        prettify: Colourised multi-line rendering instead of one line per event
    """

    silent: bool = Field(default=False, description="Disable console output")
    log_level: LogLevel = Field(
        default=LogLevel.DEBUG, description="Minimum log level to output"
    )
    prettify: bool = Field(default=False, description="Pretty print records")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_level(cls, v: Any) -> LogLevel:
        return _parse_level(v)


class RotationOptions(BaseModel):
    """Daily rotation settings for the file sink."""

    date_pattern: str = Field(
        default="%Y-%m-%d", description="Date part of the file name (strftime or YYYY-MM-DD)"
    )
    zipped_archive: bool = Field(default=True, description="Gzip rotated files")
    max_size: int | None = Field(
        default=20 * 1024 * 1024, description="Maximum size of one file in bytes"
    )
    max_files: int | None = Field(
        default=None, description="Number of rotated files to keep"
    )
    max_age_days: int | None = Field(
        default=None, description="Age in days after which rotated files are removed"
    )

    @model_validator(mode="before")
    @classmethod
    def split_max_files(cls, data: Any) -> Any:
        """Accept ``max_files="14d"`` as an age limit, like the count form."""
        if isinstance(data, dict):
            max_files = data.get("max_files")
            if isinstance(max_files, str):
                match = _DAYS_PATTERN.match(max_files)
                if match:
                    data = {**data, "max_files": None, "max_age_days": int(match.group(1))}
        return data

    @field_validator("date_pattern")
    @classmethod
    def validate_date_pattern(cls, v: str) -> str:
        if not v:
            raise ValueError("date_pattern must not be empty")
        if "%" in v:
            return v
        for token, directive in _DATE_TOKENS:
            v = v.replace(token, directive)
        return v

    @field_validator("max_size", mode="before")
    @classmethod
    def validate_max_size(cls, v: Any) -> int | None:
        if v is None or isinstance(v, int):
            return v
        if isinstance(v, str):
            match = _SIZE_PATTERN.match(v)
            if match:
                return int(match.group(1)) * _SIZE_UNITS[match.group(2).lower()]
        raise ValueError(f"Invalid max_size {v!r}; use bytes or a k/m/g suffix")

    @field_validator("max_files", "max_age_days")
    @classmethod
    def validate_positive(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("retention limits must be positive")
        return v


class FileConfig(BaseModel):
    """File sink settings."""

    silent: bool = Field(default=False, description="Disable file output")
    log_level: LogLevel = Field(
        default=LogLevel.DEBUG, description="Minimum log level to output"
    )
    log_file_dir: str = Field(default="./logs/", description="Directory for log files")
    log_daily_rotation: bool = Field(
        default=False, description="Rotate files daily (and by size)"
    )
    log_daily_rotation_options: RotationOptions = Field(default_factory=RotationOptions)

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_level(cls, v: Any) -> LogLevel:
        return _parse_level(v)


class ForwardingConfig(BaseModel):
    """Search backend forwarding settings.

    Only records whose severity appears in ``targets`` are forwarded, unless
    the caller forces delivery. ``"*"`` (or ``"all"``) forwards everything.
    """

    url: str = Field(description="Base URL of the search backend")
    username: str | None = Field(default=None, description="Basic auth user")
    password: str | None = Field(default=None, description="Basic auth password")
    api_key: str | None = Field(default=None, description="API key (ApiKey auth)")
    targets: list[str] = Field(default_factory=list, description="Severities to forward")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    request_timeout: float = Field(default=10.0, description="Request timeout in seconds")
    max_workers: int = Field(default=2, description="Background forwarding threads")
    redact: bool = Field(
        default=False, description="Forward sanitized content instead of raw content"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v:
            raise ValueError("search backend url must be provided")
        # Ensure URL doesn't end with slash for consistency
        return v.rstrip("/")

    @field_validator("targets", mode="before")
    @classmethod
    def validate_targets(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [item.strip() for item in v.split(",") if item.strip()]

        targets = []
        for item in v:
            if isinstance(item, str) and item.strip().lower() in (WILDCARD_TARGET, "all"):
                targets.append(WILDCARD_TARGET)
            else:
                targets.append(LogLevel.parse(item).value)
        return targets

    @field_validator("request_timeout", "max_workers")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @property
    def forwards_everything(self) -> bool:
        return WILDCARD_TARGET in self.targets


class InitialConfig(BaseSettings):
    """Configuration passed to ``LogService.init``.

    Attributes:
        app_name: Application name; LogService.init requires it while the file sink is enabled
        hostname: Host name attached to file records
        version: Application version attached to file records
        console: Console sink settings
        file: File sink settings, or None for no file sink
        elastic_search: Forwarding settings, or None to disable forwarding
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_SERVICE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str | None = Field(default=None, description="Application name")
    hostname: str = Field(default_factory=socket.gethostname, description="Host name")
    version: str | None = Field(default=None, description="Application version")
    console: ConsoleConfig = Field(default_factory=ConsoleConfig)
    file: FileConfig | None = Field(default=None)
    elastic_search: ForwardingConfig | None = Field(default=None)
