"""Formatted logging for reincarnation with timestamps and colors."""

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.text import Text

from reincarnation.validation import Kind, ValidationResult

_RESULT_STYLES = {
    Kind.OK: "green",
    Kind.WARNING: "yellow",
    Kind.ERROR: "red bold",
}


class Logger:
    """Formatted logger with timestamps for the terminal."""

    def __init__(self, console: Optional[Console] = None, quiet: bool = False):
        self.console = console or Console()
        self._quiet = quiet

    def set_quiet(self, quiet: bool) -> None:
        """Silence info/success output (warnings and errors still print)."""
        self._quiet = quiet

    def _timestamp(self) -> str:
        """Returns the formatted timestamp [HH:MM:SS]."""
        return datetime.now().strftime("[%H:%M:%S]")

    def _log(self, message: str, style: str = "", force: bool = False) -> None:
        if self._quiet and not force:
            return
        text = Text()
        text.append(self._timestamp(), style="dim")
        text.append(" ")
        text.append(message, style=style)
        self.console.print(text)

    def info(self, message: str) -> None:
        """Logs an info message."""
        self._log(message)

    def success(self, message: str) -> None:
        """Logs a success message."""
        self._log(message, style="green")

    def warn(self, message: str) -> None:
        """Logs a warning message."""
        self._log(message, style="yellow", force=True)

    def error(self, message: str) -> None:
        """Logs an error message."""
        self._log(message, style="red bold", force=True)

    def validation(self, field_name: str, result: ValidationResult) -> None:
        """Logs the outcome of a field check."""
        style = _RESULT_STYLES[result.kind]
        text = Text()
        text.append(self._timestamp(), style="dim")
        text.append(" ")
        text.append(f"{field_name}: ", style="cyan")
        text.append(result.kind.value.upper(), style=style)
        if result.message:
            text.append(f" - {result.message}", style=style)
        self.console.print(text)


# Global instance
_logger: Optional[Logger] = None


def get_logger() -> Logger:
    """Returns the global logger instance."""
    global _logger
    if _logger is None:
        _logger = Logger()
    return _logger


def set_logger(logger: Logger) -> None:
    """Sets the global logger instance."""
    global _logger
    _logger = logger
