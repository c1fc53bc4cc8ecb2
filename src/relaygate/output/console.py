"""Rich Console factory and theme for relaygate output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

RELAYGATE_THEME = Theme(
    {
        "rg.ok": "bold green",
        "rg.error": "bold red",
        "rg.warning": "bold yellow",
        "rg.op": "bold cyan",
        "rg.key": "dim",
        "rg.pubkey": "bold blue",
        "rg.secret": "bold magenta",
        "rg.path": "dim",
        "rg.allow": "bold green",
        "rg.deny": "bold red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width. Keys are 64+ characters wide, so
            the default is generous.
    """
    return Console(
        file=StringIO(),
        theme=RELAYGATE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 200,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
