"""Subcommand modules for folioctl.

:func:`register_commands` imports each command module only when the root
group is assembled.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from folioctl.commands.export import export
    from folioctl.commands.new import new
    from folioctl.commands.query import query

    cli.add_command(query)
    cli.add_command(new)
    cli.add_command(export)

    # --- Standalone commands ---
    from folioctl.commands.check import check

    cli.add_command(check)
