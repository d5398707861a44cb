"""Console renderers for the console sink.

Two structlog renderers are provided:
- ``SimpleLineRenderer``: one plain line per event
- ``PrettyConsoleRenderer``: Rich-coloured header plus a depth-limited
  pretty print of the payload
"""

import json
import os
from typing import Any

from rich.console import Console
from rich.pretty import Pretty

# Log level colors and icons
LEVEL_STYLES = {
    "debug": ("dim cyan", "🔍"),
    "info": ("green", "ℹ️ "),
    "warning": ("yellow", "⚠️ "),
    "error": ("red bold", "❌"),
}


def add_process_id(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Attach the current process id under ``pid``."""
    event_dict.setdefault("pid", os.getpid())
    return event_dict


def safe_str(value: Any) -> str:
    """``str(value)``, or a type placeholder when ``__str__`` itself fails."""
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def render_message(message: Any) -> str:
    """Render a payload as text: strings as-is, everything else as JSON."""
    if isinstance(message, str):
        return message
    try:
        return json.dumps(message, default=safe_str, ensure_ascii=False)
    except (TypeError, ValueError):
        return safe_str(message)


class SimpleLineRenderer:
    """Render ``<timestamp> [<pid>] <level>: <message>``."""

    def __init__(self, pid_width: int = 5) -> None:
        self.pid_width = pid_width

    def __call__(self, _: Any, __: str, event_dict: dict[str, Any]) -> str:
        timestamp = event_dict.get("timestamp", "")
        pid = str(event_dict.get("pid", ""))
        level = event_dict.get("level", "info")
        message = render_message(event_dict.get("event"))
        return f"{timestamp} [{pid:>{self.pid_width}}] {level}: {message}"


class PrettyConsoleRenderer:
    """Custom console renderer using Rich for colourised output."""

    def __init__(
        self,
        max_depth: int = 4,
        colorize: bool = True,
        width: int | None = None,
    ) -> None:
        """Initialize the Rich console renderer.

        Args:
        ----
            max_depth: Nesting depth shown before containers are abbreviated
            colorize: Whether to emit ANSI colour codes
            width: Fixed render width (defaults to the terminal width)

        """
        self.max_depth = max_depth
        self.console = Console(
            force_terminal=colorize,
            no_color=not colorize,
            width=width,
            highlight=colorize,
        )

    def __call__(self, _: Any, __: str, event_dict: dict[str, Any]) -> str:
        """Render the event to a string.

        Rich writes into a capture buffer instead of the terminal so the
        result can be handed to the sink's handler like any other line.
        """
        level = event_dict.get("level", "info")
        timestamp = event_dict.get("timestamp")
        pid = event_dict.get("pid")
        message = event_dict.get("event")

        style, icon = LEVEL_STYLES.get(level, ("white", "•"))

        header = []
        if timestamp:
            header.append(f"[dim]{timestamp}[/dim]")
        if pid is not None:
            header.append(f"[dim blue]{pid:>5}[/dim blue]")
        header.append(f"[{style}]{icon} {level.upper():>8}[/{style}]")

        with self.console.capture() as capture:
            if isinstance(message, str):
                self.console.print(" │ ".join(header), end=" ")
                self.console.print(message, markup=False)
            else:
                self.console.print(" │ ".join(header))
                self.console.print(Pretty(message, max_depth=self.max_depth))

        return capture.get().rstrip("\n")
