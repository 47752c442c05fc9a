"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Provides lazy Site construction and centralized
result emission (stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from folioctl.config.logging import bind_site_context, configure_logging
from folioctl.output.formatters import OutputSettings, format_result
from folioctl.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from folioctl.config.settings import FolioSettings
    from folioctl.infrastructure.site import Site
    from folioctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The site is created on first use so ``--help`` and ``--version`` never
    scan the source tree.
    """

    def __init__(self, settings: FolioSettings) -> None:
        self.settings = settings
        self._site: Site | None = None

        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
        )
        if settings.verbose:
            enable_telemetry()

    @property
    def site(self) -> Site:
        """The site instance (created lazily on first access)."""
        if self._site is None:
            from folioctl.infrastructure.site import Site

            self._site = Site(self.settings)
            bind_site_context(self.settings.site_root, site_name=self.settings.site.name)
        return self._site

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so piped output
          stays clean (in JSON mode they are part of the payload).
        * Failure: writes to stderr and exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
