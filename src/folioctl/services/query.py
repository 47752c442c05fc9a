"""QueryService — read-only inventory of pages, posts, and notebooks."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any

from folioctl.domain.types import RecordKind
from folioctl.domain.urls import canonical_url
from folioctl.services._helpers import parse_iso_date, plain_data
from folioctl.services.base import BaseService
from folioctl.services.result import ServiceResult, fail
from folioctl.services.telemetry import traced

if TYPE_CHECKING:
    from folioctl.infrastructure.site import ContentRecord

SORT_KEYS = ("url", "date", "title")


class QueryService(BaseService):
    """Lists and inspects records of the site."""

    # ------------------------------------------------------------------
    # list_items — filtered listing
    # ------------------------------------------------------------------

    @traced
    def list_items(
        self,
        *,
        kind: str | None = None,
        category: str | None = None,
        since: str | None = None,
        sort: str = "url",
        limit: int | None = None,
    ) -> ServiceResult:
        """List records with optional filters.

        Args:
            kind: ``page``, ``post``, or ``notebook``.
            category: Keep records carrying this category (case-insensitive).
            since: Keep dated records on or after this ``YYYY-MM-DD`` date.
            sort: ``url`` (ascending), ``date`` (newest first, undated
                last), or ``title``.
            limit: Maximum number of items returned.
        """
        op = "list_items"
        records = list(self._site.index.records)

        if kind is not None:
            try:
                wanted = RecordKind(kind)
            except ValueError:
                return fail(op, "VALIDATION_FAILED", f"Unknown kind '{kind}'")
            records = [r for r in records if r.kind is wanted]

        if category:
            needle = category.casefold()
            records = [r for r in records if needle in {c.casefold() for c in r.categories}]

        if since:
            try:
                cutoff = parse_iso_date(since)
            except ValueError as exc:
                return fail(op, "INVALID_DATE", f"Invalid --since date: {exc}")
            records = [r for r in records if r.date is not None and r.date >= cutoff]

        if sort not in SORT_KEYS:
            return fail(op, "VALIDATION_FAILED", f"Unknown sort key '{sort}'")
        if limit is not None and limit < 1:
            return fail(op, "VALIDATION_FAILED", "Limit must be a positive integer")

        records = _sorted_records(records, sort)
        total = len(records)
        if limit is not None:
            records = records[:limit]

        items = [r.summary() for r in records]
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": items, "count": len(items), "total": total},
        )

    # ------------------------------------------------------------------
    # get — single record with links
    # ------------------------------------------------------------------

    @traced
    def get(self, ref: str) -> ServiceResult:
        """Retrieve one record by site-relative path, post name, or URL.

        Returns the record metadata, front-matter, resolved outgoing links,
        images, and backlinks from the link graph.
        """
        record = self._site.index.lookup(ref)
        if record is None:
            return fail("get", "NOT_FOUND", f"No page, post, or notebook matches '{ref}'")

        resolver = self._site.resolver
        links_out: list[dict[str, Any]] = []
        images: list[dict[str, Any]] = []
        for link in record.links:
            resolution = resolver.resolve(record, link)
            entry = {
                "target": link.target,
                "url": resolution.url,
                "status": str(resolution.status),
                "line": link.line,
            }
            if link.is_image:
                images.append(entry)
            else:
                links_out.append({**entry, "kind": str(link.kind)})

        image = record.frontmatter.get("image")
        if isinstance(image, str) and image.strip():
            resolution = resolver.resolve_site_path(image)
            images.append(
                {
                    "target": image,
                    "url": resolution.url,
                    "status": str(resolution.status),
                    "line": None,
                }
            )

        graph = self._site.graph.graph
        node = canonical_url(record.url)
        links_in: list[dict[str, Any]] = []
        if graph.has_node(node):
            for source in sorted(graph.predecessors(node)):
                attrs = graph.nodes[source]
                links_in.append(
                    {"id": attrs.get("path"), "url": source, "title": attrs.get("title")}
                )

        data: dict[str, Any] = {
            **record.summary(),
            "path": record.rel,
            "has_frontmatter": record.has_frontmatter,
            "parse_error": record.parse_error,
            "hidden": record.hidden,
            "frontmatter": plain_data(record.frontmatter),
            "links_out": links_out,
            "links_in": links_in,
            "images": images,
        }
        if record.kind is RecordKind.NOTEBOOK:
            data["header_form"] = record.header_form
        return ServiceResult(ok=True, op="get", data=data)

    # ------------------------------------------------------------------
    # categories — blog category counts
    # ------------------------------------------------------------------

    @traced
    def categories(self) -> ServiceResult:
        """Count categories across posts and notebooks."""
        counts: Counter[str] = Counter()
        for record in self._site.index.records:
            if record.kind is RecordKind.PAGE:
                continue
            counts.update(set(record.categories))

        items = [
            {"category": name, "count": count}
            for name, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]
        return ServiceResult(ok=True, op="categories", data={"items": items, "count": len(items)})


def _sorted_records(records: list[ContentRecord], sort: str) -> list[ContentRecord]:
    if sort == "title":
        return sorted(records, key=lambda r: (r.title.casefold(), r.url))
    if sort == "date":
        dated = sorted((r for r in records if r.date), key=lambda r: (r.date, r.url), reverse=True)
        undated = sorted((r for r in records if not r.date), key=lambda r: r.url)
        return dated + undated
    return sorted(records, key=lambda r: r.url)
