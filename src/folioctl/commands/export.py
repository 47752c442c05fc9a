"""Command group: link graph and site index export."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from folioctl.commands._base import FolioGroup
from folioctl.services.export import ExportService

if TYPE_CHECKING:
    from folioctl.commands._context import AppContext

_EXPORT_EXAMPLES = """\
  folioctl export graph --format dot > site.dot
  folioctl export graph --format json --output graph.json
  folioctl export index --output search-index.json"""


@click.group(cls=FolioGroup, examples=_EXPORT_EXAMPLES)
@click.pass_obj
def export(app: AppContext) -> None:
    """Export derived views of the site."""


@export.command(
    examples="""\
  folioctl export graph
  folioctl export graph --format dot | dot -Tsvg > site.svg
  folioctl export graph --output graph.json"""
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "dot"]),
    default=None,
    help="Output format (default from [export] graph_format).",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write to this file instead of stdout.",
)
@click.pass_obj
def graph(app: AppContext, fmt: str | None, output: str | None) -> None:
    """Export the internal link graph."""
    app.emit(ExportService(app.site).export_graph(fmt=fmt, output=output))


@export.command(
    examples="""\
  folioctl export index
  folioctl export index --output assets/index.json"""
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write to this file instead of stdout.",
)
@click.pass_obj
def index(app: AppContext, output: str | None) -> None:
    """Export a JSON index of every published record."""
    app.emit(ExportService(app.site).export_index(output=output))
