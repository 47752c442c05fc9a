"""structlog configuration for folioctl.

Two output modes:
- Human (default): colored console output to stderr
- JSON (--log-json): structured JSON lines to stderr

Every record carries the site being processed once
:func:`bind_site_context` has run.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

PACKAGE_LOGGER = "folioctl"


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
) -> None:
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output for folioctl loggers.
        quiet: Only ERROR and above (ignored when *verbose* is set).
        log_json: Use JSON renderer instead of console renderer.
    """
    if verbose:
        folio_level = logging.DEBUG
    elif quiet:
        folio_level = logging.ERROR
    else:
        folio_level = logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(folio_level)


def bind_site_context(site_root: Path, *, site_name: str | None = None) -> None:
    """Attach the site root (and name) to every subsequent log record."""
    structlog.contextvars.clear_contextvars()
    fields: dict[str, str] = {"site_root": str(site_root)}
    if site_name:
        fields["site"] = site_name
    structlog.contextvars.bind_contextvars(**fields)
