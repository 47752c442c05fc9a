"""Config file and site root discovery.

Walk-up finder locates folioctl.toml, similar to how git finds .git/.
Without one, the nearest Jekyll ``_config.yml`` marks the site root.
Supports FOLIOCTL_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "folioctl.toml"
CONFIG_ENV_VAR = "FOLIOCTL_CONFIG"
JEKYLL_CONFIG_FILENAME = "_config.yml"


def _walk_up(start: Path | None, filename: str) -> Path | None:
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / filename
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for folioctl.toml.

    Returns the path to the config file, or None if not found.
    Checks FOLIOCTL_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None
    return _walk_up(start, CONFIG_FILENAME)


def find_site_root(start: Path | None = None) -> Path | None:
    """Walk up from *start* looking for a Jekyll ``_config.yml``."""
    found = _walk_up(start, JEKYLL_CONFIG_FILENAME)
    return found.parent if found else None
