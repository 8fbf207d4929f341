"""Rich Console factory and theme for kanbanctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``render_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

KANBAN_THEME = Theme(
    {
        "kb.ok": "bold green",
        "kb.error": "bold red",
        "kb.warning": "bold yellow",
        "kb.op": "bold cyan",
        "kb.key": "dim",
        "kb.id": "bold blue",
        "kb.path": "dim",
        "kb.title": "bold",
        "kb.priority.low": "green",
        "kb.priority.medium": "yellow",
        "kb.priority.high": "bold red",
        "kb.wip.over": "bold red",
    }
)

_PRIORITY_STYLES: dict[str, str] = {
    "low": "kb.priority.low",
    "medium": "kb.priority.medium",
    "high": "kb.priority.high",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=KANBAN_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_priority(priority: str) -> str:
    """Return the Rich style name for a card priority."""
    return _PRIORITY_STYLES.get(priority, "")
