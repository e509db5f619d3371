"""Shared Rich Console with the import status theme."""

from rich.console import Console
from rich.theme import Theme

# Styles for import output, referenced by name from the CLI
IMPORT_THEME = Theme(
    {
        "step": "cyan",
        "step.idle": "dim",
        "ok": "green",
        "fail": "red",
        "heading": "bold",
        "playlist": "bold cyan",
    }
)

_console: Console | None = None


def get_console() -> Console:
    """Get or create the process-wide Console."""
    global _console
    if _console is None:
        _console = Console(theme=IMPORT_THEME, highlight=False)
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print one line, optionally in a theme style such as "ok" or "fail".

    Args:
        message: The message to print
        style: Theme style name or any Rich style string
    """
    get_console().print(message, style=style)
