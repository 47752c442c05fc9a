"""CreateService — scaffolding for pages, posts, and notebook posts.

Pipeline: VALIDATE → GENERATE → PERSIST → RESPOND
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from folioctl.domain.content import (
    PageFrontmatter,
    PostFrontmatter,
    render_frontmatter,
    validate_frontmatter,
)
from folioctl.domain.notebook import NotebookFrontmatter, new_notebook, render_notebook_header
from folioctl.domain.types import RecordKind
from folioctl.domain.urls import post_url, slugify
from folioctl.infrastructure.filesystem import resolve_new_path
from folioctl.infrastructure.templates import build_template_environment
from folioctl.services._helpers import dedupe, parse_iso_date, today
from folioctl.services.base import BaseService
from folioctl.services.result import ServiceResult, fail
from folioctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Callable
    from pathlib import Path


class CreateService(BaseService):
    """Handles creation of every record kind."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def create_page(
        self,
        title: str,
        *,
        permalink: str | None = None,
        layout: str | None = None,
        description: str | None = None,
    ) -> ServiceResult:
        """Create ``<pages_dir>/<slug>.md`` published at ``/<slug>/`` by default."""
        op = "create_page"
        cfg = self._site.settings.new
        title = title.strip()
        slug = slugify(title)
        if not slug:
            return fail(op, "VALIDATION_FAILED", "Title must contain at least one letter or digit")

        url = permalink.strip() if permalink else f"/{slug}/"
        if not url.startswith("/"):
            url = "/" + url

        fm: dict[str, Any] = {
            "layout": layout or cfg.page_layout,
            "title": title,
            "description": description,
            "permalink": url,
        }
        body = self._render_body("page.md.j2", title=title, description=description, slug=slug)
        return self._persist(
            op,
            kind=RecordKind.PAGE,
            directory=cfg.pages_dir,
            filename=f"{slug}.md",
            url=url,
            fm=fm,
            schema=PageFrontmatter,
            content=lambda: render_frontmatter(fm, body),
        )

    @traced
    def create_post(
        self,
        title: str,
        *,
        date: str | None = None,
        categories: list[str] | tuple[str, ...] = (),
        description: str | None = None,
    ) -> ServiceResult:
        """Create ``<posts_dir>/YYYY-MM-DD-<slug>.md``."""
        op = "create_post"
        cfg = self._site.settings.new
        title = title.strip()
        slug = slugify(title)
        if not slug:
            return fail(op, "VALIDATION_FAILED", "Title must contain at least one letter or digit")
        try:
            post_date = parse_iso_date(date) if date else today()
        except ValueError as exc:
            return fail(op, "INVALID_DATE", f"Invalid date: {exc}")

        cats = dedupe(list(categories))
        stem = f"{post_date.isoformat()}-{slug}"
        fm: dict[str, Any] = {
            "layout": cfg.post_layout,
            "title": title,
            "description": description,
            "categories": cats or None,
        }
        body = self._render_body(
            "post.md.j2", title=title, description=description, categories=cats, date=post_date
        )
        return self._persist(
            op,
            kind=RecordKind.POST,
            directory=cfg.posts_dir,
            filename=f"{stem}.md",
            url=self._post_url(stem, cats, post_date),
            fm=fm,
            schema=PostFrontmatter,
            content=lambda: render_frontmatter(fm, body),
        )

    @traced
    def create_notebook(
        self,
        title: str,
        *,
        date: str | None = None,
        categories: list[str] | tuple[str, ...] = (),
        summary: str | None = None,
        toc: bool | None = None,
        badges: bool | None = None,
        comments: bool | None = None,
        image: str | None = None,
    ) -> ServiceResult:
        """Create ``<notebooks_dir>/YYYY-MM-DD-<slug>.ipynb`` with a fastpages header cell."""
        op = "create_notebook"
        cfg = self._site.settings.notebooks
        title = title.strip()
        slug = slugify(title)
        if not slug:
            return fail(op, "VALIDATION_FAILED", "Title must contain at least one letter or digit")
        try:
            post_date = parse_iso_date(date) if date else today()
        except ValueError as exc:
            return fail(op, "INVALID_DATE", f"Invalid date: {exc}")

        cats = dedupe(list(categories))
        stem = f"{post_date.isoformat()}-{slug}"
        fm: dict[str, Any] = {
            "title": title,
            "description": summary,
            "toc": cfg.default_toc if toc is None else toc,
            "badges": cfg.default_badges if badges is None else badges,
            "comments": cfg.default_comments if comments is None else comments,
            "categories": cats or None,
            "image": image,
        }
        intro = self._render_body("notebook.md.j2", title=title, summary=summary)

        def content() -> str:
            notebook = new_notebook(render_notebook_header(fm), intro=intro)
            return json.dumps(notebook, indent=1, ensure_ascii=False) + "\n"

        return self._persist(
            op,
            kind=RecordKind.NOTEBOOK,
            directory=cfg.dir,
            filename=f"{stem}.ipynb",
            url=self._post_url(stem, cats, post_date),
            fm=fm,
            schema=NotebookFrontmatter,
            content=content,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _render_body(self, template_name: str, **context: Any) -> str:
        env = build_template_environment("new", site_root=self._site.root)
        return env.get_template(template_name).render(**context)

    def _post_url(self, stem: str, categories: list[str], post_date: dt.date) -> str:
        return post_url(
            stem,
            style=self._site.permalink_style,
            categories=categories,
            permalink=None,
            fallback_date=post_date,
        )

    def _persist(
        self,
        op: str,
        *,
        kind: RecordKind,
        directory: str,
        filename: str,
        url: str,
        fm: dict[str, Any],
        schema: type[BaseModel],
        content: Callable[[], str],
    ) -> ServiceResult:
        """Shared VALIDATE → PERSIST → RESPOND tail of every create operation."""
        warnings: list[str] = []

        # ── VALIDATE ──────────────────────────────────────────────
        with trace_span("validate"):
            fm_clean = {k: v for k, v in fm.items() if v is not None}
            vr = validate_frontmatter(schema, fm_clean)
            if not vr.valid:
                return fail(op, "VALIDATION_FAILED", "; ".join(vr.errors))

            try:
                path: Path = resolve_new_path(self._site.root, directory, filename)
            except ValueError as exc:
                return fail(op, "VALIDATION_FAILED", str(exc))
            rel = path.relative_to(self._site.root).as_posix()

            if path.exists():
                return fail(op, "ALREADY_EXISTS", f"File already exists: {rel}", path=rel)
            existing = self._site.index.lookup_url(url)
            if existing is not None:
                return fail(
                    op,
                    "ALREADY_EXISTS",
                    f"URL {url} is already used by {existing.rel}",
                    path=existing.rel,
                    url=url,
                )

            layout = fm_clean.get("layout")
            layouts = self._site.layouts()
            if layout and layouts and layout not in layouts:
                warnings.append(f"Layout '{layout}' is not defined in _layouts/")

        # ── PERSIST ───────────────────────────────────────────────
        with trace_span("persist"):
            try:
                with self._site.transaction() as txn:
                    txn.write_file(path, content())
            except OSError as exc:
                return fail(op, "WRITE_FAILED", f"Could not write {rel}: {exc}")

        # ── RESPOND ───────────────────────────────────────────────
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": rel,
                "path": rel,
                "title": fm_clean.get("title"),
                "kind": str(kind),
                "url": url,
            },
            warnings=warnings,
        )
