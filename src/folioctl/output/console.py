"""Rich Console factory and theme for folioctl output.

Consoles render into a StringIO buffer so renderers return plain strings.
In non-TTY environments (tests, pipes) Rich drops color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FOLIO_THEME = Theme(
    {
        "folio.ok": "bold green",
        "folio.error": "bold red",
        "folio.warning": "bold yellow",
        "folio.op": "bold cyan",
        "folio.key": "dim",
        "folio.id": "bold blue",
        "folio.url": "cyan",
        "folio.path": "dim",
        "folio.title": "bold",
        "folio.kind.page": "green",
        "folio.kind.post": "blue",
        "folio.kind.notebook": "magenta",
    }
)

_KIND_STYLES: dict[str, str] = {
    "page": "folio.kind.page",
    "post": "folio.kind.post",
    "notebook": "folio.kind.notebook",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Override terminal width (keeps test output stable).
    """
    return Console(
        file=StringIO(),
        theme=FOLIO_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Return the Rich style name for a record kind."""
    return _KIND_STYLES.get(kind, "")
