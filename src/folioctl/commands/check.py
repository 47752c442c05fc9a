"""Command: content checks and repair."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import click

from folioctl.commands._base import FolioCommand

if TYPE_CHECKING:
    from folioctl.commands._context import AppContext


@click.command(
    cls=FolioCommand,
    examples="""\
  folioctl check
  folioctl check --errors-only
  folioctl check --min-severity error --strict
  folioctl check --fix
  folioctl check --fix --level aggressive
  folioctl --json check""",
)
@click.option(
    "--min-severity",
    type=click.Choice(["warning", "error"]),
    default="warning",
    help="Hide issues below this severity.",
)
@click.option("--errors-only", is_flag=True, help="Shortcut for --min-severity error.")
@click.option("--strict", is_flag=True, help="Exit with status 1 when errors are found.")
@click.option("--fix", is_flag=True, help="Automatically repair issues.")
@click.option(
    "--level",
    type=click.Choice(["safe", "aggressive"]),
    default="safe",
    help="Repair aggressiveness level.",
)
@click.pass_obj
def check(
    app: AppContext,
    min_severity: str,
    errors_only: bool,
    strict: bool,
    fix: bool,
    level: str,
) -> None:
    """Check pages, posts, and notebooks; optionally repair front-matter."""
    from folioctl.services.check import CheckService

    svc = CheckService(app.site)

    if fix:
        if level == "aggressive" and not app.settings.no_interact and sys.stdin.isatty():
            click.confirm("Re-order front-matter keys in every page and post?", abort=True)
        app.emit(svc.fix(level=level))
        return

    threshold = "error" if errors_only else min_severity
    result = svc.check(min_severity=threshold)
    app.emit(result)
    if strict and not result.data.get("healthy", True):
        raise SystemExit(1)
