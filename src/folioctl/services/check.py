"""CheckService — content QA and safe repairs.

Single command following the linter pattern. Six categories:
front-matter, permalinks, links, images, notebooks, graph health.
Content defects are reported as issues; nothing is modified by ``check``.
"""

from __future__ import annotations

import logging
import posixpath
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from folioctl.domain.content import (
    FrontmatterError,
    PageFrontmatter,
    PostFrontmatter,
    order_frontmatter,
    parse_frontmatter,
    replace_frontmatter,
    validate_frontmatter,
)
from folioctl.domain.notebook import NotebookFrontmatter
from folioctl.domain.types import LinkKind, RecordKind, Severity
from folioctl.domain.urls import canonical_url, parse_post_filename
from folioctl.infrastructure.filesystem import find_template_sources
from folioctl.infrastructure.resolver import ResolutionStatus
from folioctl.services.base import BaseService
from folioctl.services.result import ServiceResult, fail
from folioctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from folioctl.infrastructure.site import ContentRecord, SiteTransaction

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Issue category constants
# ---------------------------------------------------------------------------

CAT_FRONTMATTER = "frontmatter"
CAT_PERMALINKS = "permalinks"
CAT_LINKS = "links"
CAT_IMAGES = "images"
CAT_NOTEBOOKS = "notebooks"
CAT_GRAPH = "graph_health"

FIX_LEVELS = ("safe", "aggressive")

_MARKDOWN_SUFFIXES = frozenset({".md", ".markdown"})


def _issue(
    category: str,
    severity: Severity,
    path: str | None,
    message: str,
    fix_action: str | None = None,
) -> dict[str, Any]:
    return {
        "category": category,
        "severity": str(severity),
        "path": path,
        "message": message,
        "fix_action": fix_action,
    }


def _mentions(text: str, name: str) -> bool:
    """True if *name* appears in *text* as a whole path, not inside a longer name."""
    return re.search(rf"(?<![\w.-]){re.escape(name)}(?![\w.-])", text) is not None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list)) and len(value) == 0)


def title_from_filename(path: Path) -> str:
    """``portfolio-projects.md`` -> ``Portfolio Projects``; ``index.md`` -> parent or Home."""
    stem = path.stem
    if stem == "index":
        parent = path.parent.name
        stem = parent if parent and not parent.startswith("_") else "home"
    words = stem.replace("_", " ").replace("-", " ").split()
    return " ".join(w.capitalize() for w in words) or "Untitled"


# ---------------------------------------------------------------------------
# CheckService
# ---------------------------------------------------------------------------


class CheckService(BaseService):
    """Handles site content checking and repair."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def check(self, *, min_severity: str = "warning") -> ServiceResult:
        """Report content issues without modifying anything."""
        try:
            threshold = Severity(min_severity)
        except ValueError:
            return fail(
                "check",
                "INVALID_SEVERITY",
                f"Unknown severity '{min_severity}' (expected 'error' or 'warning')",
            )

        issues: list[dict[str, Any]] = []
        with trace_span("index") as span:
            records = self._site.index.records
            if span:
                span.annotate("records", len(records))
        with trace_span("frontmatter"):
            issues.extend(self._check_frontmatter(records))
        with trace_span("permalinks"):
            issues.extend(self._check_permalinks(records))
        with trace_span("links"):
            link_issues, image_issues = self._check_links(records)
            issues.extend(link_issues)
        with trace_span("images"):
            issues.extend(image_issues)
            issues.extend(self._check_orphan_assets(records))
        with trace_span("notebooks"):
            issues.extend(self._check_notebooks(records))
        with trace_span("graph_health"):
            issues.extend(self._check_graph_health(records))

        if threshold is Severity.ERROR:
            issues = [i for i in issues if i["severity"] == Severity.ERROR]

        error_count = sum(1 for i in issues if i["severity"] == Severity.ERROR)
        warning_count = len(issues) - error_count
        logger.debug("Check found %d errors, %d warnings", error_count, warning_count)

        return ServiceResult(
            ok=True,
            op="check",
            data={
                "issues": issues,
                "count": len(issues),
                "error_count": error_count,
                "warning_count": warning_count,
                "healthy": error_count == 0,
            },
        )

    @traced
    def fix(self, *, level: str = "safe") -> ServiceResult:
        """Automatically repair issues. Level: 'safe' or 'aggressive'."""
        if level not in FIX_LEVELS:
            return fail(
                "fix",
                "INVALID_LEVEL",
                f"Unknown fix level '{level}' (expected 'safe' or 'aggressive')",
            )

        fixes: list[str] = []
        warnings: list[str] = []
        records = [
            r
            for r in self._site.index.records
            if r.kind is not RecordKind.NOTEBOOK and r.has_frontmatter and r.parse_error is None
        ]

        try:
            with self._site.transaction() as txn:
                for record in records:
                    fixes.extend(self._fix_record(txn, record, level=level, warnings=warnings))
        except OSError as exc:
            return fail("fix", "WRITE_FAILED", f"Fix aborted, all changes rolled back: {exc}")

        return ServiceResult(
            ok=True,
            op="fix",
            data={"fixes": fixes, "count": len(fixes), "level": level},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Check categories
    # ------------------------------------------------------------------

    def _check_frontmatter(self, records: list[ContentRecord]) -> list[dict[str, Any]]:
        """Category 1: parse failures, missing blocks, required keys, types, layouts."""
        issues: list[dict[str, Any]] = []
        cfg = self._site.settings.check
        new_cfg = self._site.settings.new

        local_layouts = self._site.layouts()
        strict_layouts = bool(cfg.known_layouts)

        for record in records:
            if record.kind is RecordKind.NOTEBOOK:
                continue
            if record.parse_error is not None:
                issues.append(
                    _issue(
                        CAT_FRONTMATTER,
                        Severity.ERROR,
                        record.rel,
                        f"Front-matter does not parse: {record.parse_error}",
                    )
                )
                continue
            if not record.has_frontmatter:
                if record.path.suffix.lower() in _MARKDOWN_SUFFIXES:
                    issues.append(
                        _issue(
                            CAT_FRONTMATTER,
                            Severity.WARNING,
                            record.rel,
                            "No front-matter: the file will be copied without rendering",
                        )
                    )
                continue

            fm = record.frontmatter
            if record.kind is RecordKind.PAGE:
                required, schema = cfg.required_page_keys, PageFrontmatter
                default_layout = new_cfg.page_layout
            else:
                required, schema = cfg.required_post_keys, PostFrontmatter
                default_layout = new_cfg.post_layout

            for key in required:
                if not _is_blank(fm.get(key)):
                    continue
                fix_action = None
                if key == "layout" and default_layout:
                    fix_action = "fill_layout"
                elif key == "title" and record.kind is RecordKind.PAGE:
                    fix_action = "fill_title"
                issues.append(
                    _issue(
                        CAT_FRONTMATTER,
                        Severity.ERROR,
                        record.rel,
                        f"Missing required key '{key}'",
                        fix_action,
                    )
                )

            for message in validate_frontmatter(schema, fm).errors:
                issues.append(
                    _issue(CAT_FRONTMATTER, Severity.ERROR, record.rel, f"Invalid value: {message}")
                )

            layout = fm.get("layout")
            if (
                isinstance(layout, str)
                and layout
                and layout != "none"
                and (local_layouts or strict_layouts)
                and layout not in local_layouts
            ):
                issues.append(
                    _issue(
                        CAT_FRONTMATTER,
                        Severity.ERROR if strict_layouts else Severity.WARNING,
                        record.rel,
                        f"Unknown layout '{layout}'",
                    )
                )
        return issues

    def _check_permalinks(self, records: list[ContentRecord]) -> list[dict[str, Any]]:
        """Category 2: URL collisions and relative permalinks."""
        issues: list[dict[str, Any]] = []

        for url, claimants in sorted(self._site.index.duplicates().items()):
            paths = ", ".join(r.rel for r in claimants)
            for record in claimants:
                issues.append(
                    _issue(
                        CAT_PERMALINKS,
                        Severity.ERROR,
                        record.rel,
                        f"URL {url} is produced by more than one file: {paths}",
                    )
                )

        for record in records:
            permalink = record.frontmatter.get("permalink")
            if isinstance(permalink, str) and permalink and not permalink.startswith("/"):
                issues.append(
                    _issue(
                        CAT_PERMALINKS,
                        Severity.WARNING,
                        record.rel,
                        f"Permalink '{permalink}' does not start with '/'",
                        "prefix_slash",
                    )
                )
        return issues

    def _check_links(
        self, records: list[ContentRecord]
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """Categories 3 and 4 (references): broken links and missing images."""
        link_issues: list[dict[str, Any]] = []
        image_issues: list[dict[str, Any]] = []
        resolver = self._site.resolver

        for record in records:
            for link in record.links:
                resolution = resolver.resolve(record, link)
                if not resolution.broken:
                    continue
                if link.is_image:
                    image_issues.append(
                        _issue(
                            CAT_IMAGES,
                            Severity.ERROR,
                            record.rel,
                            f"Missing image '{link.target}' (line {link.line})",
                        )
                    )
                elif link.kind is LinkKind.POST_URL:
                    link_issues.append(
                        _issue(
                            CAT_LINKS,
                            Severity.ERROR,
                            record.rel,
                            f"post_url names no post: '{link.target}' (line {link.line})",
                        )
                    )
                else:
                    link_issues.append(
                        _issue(
                            CAT_LINKS,
                            Severity.ERROR,
                            record.rel,
                            f"Broken link '{link.target}' (line {link.line})",
                        )
                    )

            image = record.frontmatter.get("image")
            if isinstance(image, str) and image.strip():
                if resolver.resolve_site_path(image).broken:
                    image_issues.append(
                        _issue(
                            CAT_IMAGES,
                            Severity.ERROR,
                            record.rel,
                            f"Missing front-matter image '{image}'",
                        )
                    )
        return link_issues, image_issues

    def _check_orphan_assets(self, records: list[ContentRecord]) -> list[dict[str, Any]]:
        """Category 4 (assets): image-dir files nothing references."""
        if not self._site.settings.check.orphan_assets:
            return []
        assets = self._site.assets()
        if not assets:
            return []

        resolver = self._site.resolver
        referenced: set[Path] = set()
        unresolved: list[str] = []
        for record in records:
            targets = [(link, resolver.resolve(record, link)) for link in record.links]
            for link, resolution in targets:
                if resolution.file is not None:
                    referenced.add(resolution.file.resolve())
                elif resolution.status is ResolutionStatus.SKIPPED:
                    unresolved.append(link.target)
            image = record.frontmatter.get("image")
            if isinstance(image, str) and image.strip():
                resolution = resolver.resolve_site_path(image)
                if resolution.file is not None:
                    referenced.add(resolution.file.resolve())
                else:
                    unresolved.append(image)

        # Layouts, includes, stylesheets, and _config.yml reference assets
        # through Liquid; match those by site-relative path or file name.
        texts = list(unresolved)
        for source in find_template_sources(self._site.root):
            try:
                texts.append(source.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError):
                continue
        config_file = self._site.root / "_config.yml"
        if config_file.is_file():
            texts.append(config_file.read_text(encoding="utf-8"))
        corpus = "\n".join(texts)

        issues: list[dict[str, Any]] = []
        for asset in assets:
            if asset.resolve() in referenced:
                continue
            rel = asset.relative_to(self._site.root).as_posix()
            if _mentions(corpus, rel) or _mentions(corpus, posixpath.basename(rel)):
                continue
            issues.append(
                _issue(
                    CAT_IMAGES,
                    Severity.WARNING,
                    rel,
                    "Asset is not referenced by any page, post, or layout",
                )
            )
        return issues

    def _check_notebooks(self, records: list[ContentRecord]) -> list[dict[str, Any]]:
        """Category 5: notebook structure, notebook front-matter, post filenames."""
        issues: list[dict[str, Any]] = []
        for record in records:
            if record.kind is RecordKind.PAGE:
                continue
            if parse_post_filename(record.stem) is None:
                issues.append(
                    _issue(
                        CAT_NOTEBOOKS,
                        Severity.ERROR,
                        record.rel,
                        f"Filename '{record.path.name}' lacks the YYYY-MM-DD- date prefix",
                    )
                )
            if record.kind is not RecordKind.NOTEBOOK:
                continue

            if record.parse_error is not None:
                issues.append(
                    _issue(
                        CAT_NOTEBOOKS,
                        Severity.ERROR,
                        record.rel,
                        f"Invalid notebook: {record.parse_error}",
                    )
                )
                continue
            if record.header_form is None:
                issues.append(
                    _issue(
                        CAT_NOTEBOOKS,
                        Severity.ERROR,
                        record.rel,
                        "First cell carries no front-matter header",
                    )
                )
                continue
            for message in validate_frontmatter(NotebookFrontmatter, record.frontmatter).errors:
                issues.append(
                    _issue(
                        CAT_NOTEBOOKS,
                        Severity.ERROR,
                        record.rel,
                        f"Invalid notebook front-matter: {message}",
                    )
                )
        return issues

    def _check_graph_health(self, records: list[ContentRecord]) -> list[dict[str, Any]]:
        """Category 6: pages no other record links to.

        Posts and notebooks are listed by the blog index, and pages named
        in ``_config.yml`` ``header_pages`` are linked from the navigation.
        """
        cfg = self._site.settings.check
        if not cfg.unreachable_pages:
            return []

        exempt = {canonical_url(u) for u in cfg.exempt_urls}
        exempt.add(canonical_url("/"))
        nav = self._site.jekyll_config.get("header_pages") or []
        nav_pages = {str(p) for p in nav} if isinstance(nav, list) else set()

        graph = self._site.graph.graph
        issues: list[dict[str, Any]] = []
        for record in records:
            if record.kind is not RecordKind.PAGE or record.hidden:
                continue
            node = canonical_url(record.url)
            if node in exempt or record.rel in nav_pages or record.path.name in nav_pages:
                continue
            if graph.has_node(node) and graph.in_degree(node) > 0:
                continue
            issues.append(
                _issue(
                    CAT_GRAPH,
                    Severity.WARNING,
                    record.rel,
                    f"Page {record.url} is not linked from any other page",
                )
            )
        return issues

    # ------------------------------------------------------------------
    # Fixes
    # ------------------------------------------------------------------

    def _fix_record(
        self,
        txn: SiteTransaction,
        record: ContentRecord,
        *,
        level: str,
        warnings: list[str],
    ) -> list[str]:
        """Apply safe repairs (and, when aggressive, key reordering) to one file.

        Uses ``txn.write_file()`` so writes are tracked for rollback.
        """
        try:
            text = txn.read_file(record.path)
            fm, _ = parse_frontmatter(text)
        except FrontmatterError as exc:
            warnings.append(f"Skipped {record.rel}: {exc}")
            return []

        fixes: list[str] = []
        new_cfg = self._site.settings.new

        permalink = fm.get("permalink")
        if isinstance(permalink, str) and permalink and not permalink.startswith("/"):
            fm["permalink"] = "/" + permalink
            fixes.append(f"Prefixed permalink with '/': {record.rel}")

        if _is_blank(fm.get("layout")):
            layout = new_cfg.page_layout if record.kind is RecordKind.PAGE else new_cfg.post_layout
            if layout:
                _put_front(fm, "layout", layout, position=0)
                fixes.append(f"Set layout '{layout}': {record.rel}")

        if record.kind is RecordKind.PAGE and _is_blank(fm.get("title")):
            title = title_from_filename(record.path)
            _put_front(fm, "title", title, position=1 if "layout" in fm else 0)
            fixes.append(f"Set title '{title}': {record.rel}")

        reorder = level == "aggressive" and list(fm) != list(order_frontmatter(fm))
        if reorder:
            fixes.append(f"Re-ordered front-matter: {record.rel}")

        if fixes:
            rewritten = replace_frontmatter(text, fm, reorder=level == "aggressive")
            txn.write_file(record.path, rewritten)
        return fixes


def _put_front(fm: dict[str, Any], key: str, value: Any, *, position: int) -> None:
    """Set *key*, inserting new keys at *position* when the mapping supports it."""
    if key in fm or not hasattr(fm, "insert"):
        fm[key] = value
    else:
        fm.insert(position, key, value)
