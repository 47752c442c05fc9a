"""Command group: inventory of pages, posts, and notebooks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from folioctl.commands._base import FolioGroup
from folioctl.services.query import QueryService

if TYPE_CHECKING:
    from folioctl.commands._context import AppContext

_QUERY_EXAMPLES = """\
  folioctl query list
  folioctl query list --kind notebook --sort date
  folioctl query get about.md
  folioctl query get /portfolio/
  folioctl query categories"""


@click.group(cls=FolioGroup, examples=_QUERY_EXAMPLES)
@click.pass_obj
def query(app: AppContext) -> None:
    """List and inspect site content."""


@query.command(
    "list",
    examples="""\
  folioctl query list
  folioctl query list --kind post --category pytorch
  folioctl query list --since 2021-01-01 --sort date --limit 5
  folioctl -q query list --kind page""",
)
@click.option(
    "--kind",
    type=click.Choice(["page", "post", "notebook"]),
    default=None,
    help="Filter by record kind.",
)
@click.option("--category", default=None, help="Filter by category.")
@click.option("--since", default=None, help="Dated on or after YYYY-MM-DD.")
@click.option(
    "--sort",
    type=click.Choice(["url", "date", "title"]),
    default="url",
    help="Sort order.",
)
@click.option("--limit", default=None, type=click.IntRange(min=1), help="Max results.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    kind: str | None,
    category: str | None,
    since: str | None,
    sort: str,
    limit: int | None,
) -> None:
    """List records with optional filters."""
    svc = QueryService(app.site)
    app.emit(svc.list_items(kind=kind, category=category, since=since, sort=sort, limit=limit))


@query.command(
    examples="""\
  folioctl query get about.md
  folioctl query get _notebooks/2020-05-01-tta-tabular.ipynb
  folioctl query get /portfolio/
  folioctl --json query get 2020-05-01-tta-tabular"""
)
@click.argument("ref")
@click.pass_obj
def get(app: AppContext, ref: str) -> None:
    """Show one record by path, post name, or URL."""
    app.emit(QueryService(app.site).get(ref))


@query.command(
    examples="""\
  folioctl query categories
  folioctl --json query categories"""
)
@click.pass_obj
def categories(app: AppContext) -> None:
    """Count categories across posts and notebooks."""
    app.emit(QueryService(app.site).categories())
