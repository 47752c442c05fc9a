"""Shared Jinja2 template loading with per-site override support."""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, PackageLoader

OVERRIDE_DIR = Path(".folioctl") / "templates"


def build_template_environment(group: str, *, site_root: Path | None = None) -> Environment:
    """Build a Jinja2 environment with site overrides before packaged defaults.

    Overrides are loaded from ``.folioctl/templates/`` inside the site.
    Both a namespaced directory (for example ``.folioctl/templates/new/``)
    and the shared root are searched.
    """

    loaders: list[BaseLoader] = []
    if site_root is not None:
        template_root = site_root / OVERRIDE_DIR
        loaders.append(FileSystemLoader([str(template_root / group), str(template_root)]))

    loaders.append(PackageLoader("folioctl", f"templates/{group}"))
    return Environment(loader=ChoiceLoader(loaders), keep_trailing_newline=True)
