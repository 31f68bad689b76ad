"""
Timestamped, colored status lines for the operator.
"""
import sys
from datetime import datetime
from typing import Callable, Optional

import click


class StatusPrinter:
    """
    Prints one status line per event, prefixed with the wall-clock time.
    Errors go to stderr, everything else to stdout.
    """
    STYLES = {
        "log": ("blue", "📋"),
        "success": ("green", "✅"),
        "warn": ("yellow", "⚠️ "),
        "error": ("red", "❌"),
        "info": ("cyan", "💡"),
    }

    def __init__(self, clock: Optional[Callable[[], datetime]] = None, color: Optional[bool] = None):
        """
        :param clock: Returns the current time, used for the line prefix.
        :param color: Force color on or off. None lets click decide.
        """
        self.clock = clock or datetime.now
        self.color = color

    def _emit(self, kind: str, message: str) -> None:
        fg, icon = self.STYLES[kind]
        stamp = click.style(f"[{self.clock().strftime('%H:%M:%S')}]", fg=fg, bold=kind == "warn")
        click.echo(f"{stamp} {icon} {message}", err=kind == "error", color=self.color)

    def log(self, message: str) -> None:
        self._emit("log", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def warn(self, message: str) -> None:
        self._emit("warn", message)

    def error(self, message: str) -> None:
        self._emit("error", message)

    def info(self, message: str) -> None:
        self._emit("info", message)

    def rule(self) -> None:
        click.echo("=" * 48, color=self.color)

    def plain(self, message: str = "") -> None:
        click.echo(message, color=self.color)


def stdin_is_interactive() -> bool:
    return sys.stdin is not None and sys.stdin.isatty()
