"""Rich Console factory and theme for tripcheck output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TRIPCHECK_THEME = Theme(
    {
        "tc.ok": "bold green",
        "tc.error": "bold red",
        "tc.warning": "bold yellow",
        "tc.op": "bold cyan",
        "tc.key": "dim",
        "tc.id": "bold blue",
        "tc.path": "magenta",
        "tc.step.on_search": "green",
        "tc.step.select": "blue",
        "tc.step.on_select": "yellow",
    }
)

_STEP_STYLES: dict[str, str] = {
    "on_search": "tc.step.on_search",
    "select": "tc.step.select",
    "on_select": "tc.step.on_select",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=TRIPCHECK_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_step(step: str) -> str:
    """Return the Rich style name for a protocol step."""
    return _STEP_STYLES.get(step, "")
