"""Filesystem operations for site content discovery and I/O.

INVARIANT: Files are truth. folioctl keeps no index on disk; every
invocation rediscovers the site from its source tree.

Pure parsing/rendering utilities live in :mod:`folioctl.domain.content`
(correct dependency direction: infrastructure -> domain). This module
handles actual file I/O, path resolution, and file discovery.
"""

from __future__ import annotations

import fnmatch
from pathlib import Path, PurePosixPath
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from folioctl.domain.content import has_frontmatter
from folioctl.domain.types import RecordKind

POSTS_DIR = "_posts"
PAGES_DIR = "_pages"
LAYOUTS_DIR = "_layouts"

# Directories to skip anywhere in the tree.
_SKIP_DIRS = frozenset(
    {
        "_site",
        ".git",
        ".ipynb_checkpoints",
        ".jekyll-cache",
        ".sass-cache",
        ".folioctl",
        "node_modules",
        "vendor",
    }
)

# Root-level repository files that are not site pages.
_SKIP_ROOT_FILES = frozenset({"readme.md", "changelog.md", "contributing.md", "license.md"})

_MARKDOWN_SUFFIXES = frozenset({".md", ".markdown"})
_HTML_SUFFIXES = frozenset({".html", ".htm"})


# ---------------------------------------------------------------------------
# Jekyll config
# ---------------------------------------------------------------------------


def read_jekyll_config(site_root: Path) -> dict[str, Any]:
    """Load ``_config.yml`` as plain data. Missing or invalid → ``{}``."""
    path = site_root / "_config.yml"
    if not path.is_file():
        return {}
    try:
        data = YAML(typ="safe").load(path.read_text(encoding="utf-8"))
    except (YAMLError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def _is_excluded(rel: PurePosixPath, excludes: list[str]) -> bool:
    rel_str = str(rel)
    for pattern in excludes:
        pattern = pattern.strip("/")
        if not pattern:
            continue
        if fnmatch.fnmatch(rel_str, pattern) or rel.parts[0] == pattern:
            return True
        if rel_str.startswith(pattern + "/"):
            return True
    return False


def classify_source(
    rel: PurePosixPath,
    *,
    notebooks_dir: str = "_notebooks",
) -> RecordKind | None:
    """Decide which record kind a site-relative path would be, if any.

    HTML files are only candidates here; they count as pages when they
    carry front-matter (checked by :func:`find_content_files`).
    """
    if any(part in _SKIP_DIRS or part.startswith(".") for part in rel.parts):
        return None

    top = rel.parts[0]
    suffix = rel.suffix.lower()
    if top == notebooks_dir:
        return RecordKind.NOTEBOOK if suffix == ".ipynb" else None
    if top == POSTS_DIR:
        if suffix in _MARKDOWN_SUFFIXES or suffix in _HTML_SUFFIXES:
            return RecordKind.POST
        return None
    if top.startswith("_") and top != PAGES_DIR:
        return None
    if len(rel.parts) == 1 and rel.name.lower() in _SKIP_ROOT_FILES:
        return None
    if suffix in _MARKDOWN_SUFFIXES or suffix in _HTML_SUFFIXES:
        return RecordKind.PAGE
    return None


def find_content_files(
    site_root: Path,
    *,
    notebooks_dir: str = "_notebooks",
    excludes: list[str] | None = None,
) -> list[tuple[Path, RecordKind]]:
    """Discover every page, post, and notebook post in the site.

    Skips build output, VCS and cache directories, ``_``-prefixed
    directories other than the content ones, and *excludes* (Jekyll
    ``exclude`` patterns). HTML files without front-matter are static
    assets, not pages.
    """
    results: list[tuple[Path, RecordKind]] = []
    for path in site_root.rglob("*"):
        if not path.is_file():
            continue
        rel = PurePosixPath(path.relative_to(site_root).as_posix())
        kind = classify_source(rel, notebooks_dir=notebooks_dir)
        if kind is None:
            continue
        if excludes and _is_excluded(rel, excludes):
            continue
        if rel.suffix.lower() in _HTML_SUFFIXES:
            try:
                head = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            if not has_frontmatter(head):
                continue
        results.append((path, kind))

    return sorted(results, key=lambda item: item[0])


def find_assets(site_root: Path, asset_dirs: list[str]) -> list[Path]:
    """List every file under the configured asset directories."""
    results: list[Path] = []
    for name in asset_dirs:
        base = site_root / name
        if not base.is_dir():
            continue
        for path in base.rglob("*"):
            if path.is_file() and not any(p.startswith(".") for p in path.relative_to(base).parts):
                results.append(path)
    return sorted(results)


def find_layouts(site_root: Path) -> set[str]:
    """Return the layout names defined under ``_layouts/``."""
    base = site_root / LAYOUTS_DIR
    if not base.is_dir():
        return set()
    return {p.stem for p in base.iterdir() if p.is_file()}


def find_template_sources(site_root: Path) -> list[Path]:
    """Layout, include, and stylesheet files that may reference assets."""
    results: list[Path] = []
    for name in (LAYOUTS_DIR, "_includes", "_sass", "assets"):
        base = site_root / name
        if not base.is_dir():
            continue
        for path in base.rglob("*"):
            if path.is_file() and path.suffix.lower() in (".html", ".scss", ".css", ".js", ".md"):
                results.append(path)
    return sorted(results)


def resolve_new_path(site_root: Path, directory: str, filename: str) -> Path:
    """Resolve a path for new content, refusing anything outside the site."""
    result = site_root / directory / filename
    if not result.resolve().is_relative_to(site_root.resolve()):
        msg = f"Path escapes site root: {result}"
        raise ValueError(msg)
    return result
