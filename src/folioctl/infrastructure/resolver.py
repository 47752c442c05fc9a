"""Link resolution — map a record's link targets onto records and files.

A target resolves to a *record* (another page/post) or a *file* (a static
asset published as-is). Anything else is *missing*. External links, pure
anchors, and targets holding Liquid that cannot be evaluated statically
are *skipped*: folioctl never fetches or renders.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from folioctl.domain.links import Link, classify, normalize_target
from folioctl.domain.types import LinkKind, RecordKind, TargetClass

if TYPE_CHECKING:
    from folioctl.infrastructure.site import ContentRecord, SiteIndex


class ResolutionStatus(StrEnum):
    RECORD = "record"
    FILE = "file"
    MISSING = "missing"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one link target."""

    status: ResolutionStatus
    target: str
    url: str | None = None
    record: ContentRecord | None = None
    file: Path | None = None

    @property
    def broken(self) -> bool:
        return self.status is ResolutionStatus.MISSING


def url_directory(url: str) -> str:
    """Directory a relative link is resolved against for a page at *url*."""
    if url.endswith("/"):
        return url
    return posixpath.dirname(url) or "/"


class LinkResolver:
    """Resolves targets against one site's records and published files."""

    def __init__(self, site_root: Path, index: SiteIndex, *, baseurl: str = "") -> None:
        self._root = site_root
        self._index = index
        self._baseurl = baseurl

    def resolve(self, record: ContentRecord, link: Link) -> Resolution:
        """Resolve *link* as written inside *record*."""
        if link.kind is LinkKind.POST_URL:
            return self._resolve_post_url(link.target)
        if link.kind is LinkKind.LINK_TAG:
            return self._resolve_link_tag(link.target)
        return self.resolve_target(record, link.target)

    def resolve_target(self, record: ContentRecord, target: str) -> Resolution:
        if classify(target) is not TargetClass.INTERNAL:
            return Resolution(ResolutionStatus.SKIPPED, target)
        normalized = normalize_target(target, self._baseurl)
        if not normalized:
            return Resolution(ResolutionStatus.SKIPPED, target)

        if not normalized.startswith("/") and record.kind is RecordKind.NOTEBOOK:
            # The blog converter copies notebook-relative files next to the post.
            local = (record.path.parent / normalized).resolve()
            if local.is_file() and local.is_relative_to(self._root.resolve()):
                return Resolution(ResolutionStatus.FILE, target, url=normalized, file=local)

        if normalized.startswith("/"):
            url = posixpath.normpath(normalized)
        else:
            url = posixpath.normpath(posixpath.join(url_directory(record.url), normalized))
        if normalized.endswith("/") and not url.endswith("/"):
            url += "/"
        return self.resolve_url(url, target)

    def resolve_site_path(self, value: str) -> Resolution:
        """Resolve a root-relative path such as a front-matter ``image:``."""
        if classify(value) is not TargetClass.INTERNAL:
            return Resolution(ResolutionStatus.SKIPPED, value)
        normalized = normalize_target(value, self._baseurl)
        if not normalized:
            return Resolution(ResolutionStatus.SKIPPED, value)
        url = posixpath.normpath("/" + normalized.lstrip("/"))
        return self.resolve_url(url, value)

    def resolve_url(self, url: str, target: str | None = None) -> Resolution:
        target = target if target is not None else url
        match = self._index.lookup_url(url)
        if match is not None:
            return Resolution(ResolutionStatus.RECORD, target, url=url, record=match)

        published = self._published_file(url)
        if published is not None:
            return Resolution(ResolutionStatus.FILE, target, url=url, file=published)
        return Resolution(ResolutionStatus.MISSING, target, url=url)

    def _published_file(self, url: str) -> Path | None:
        rel = url.lstrip("/")
        if not rel:
            return None
        first = rel.split("/", 1)[0]
        if first.startswith("_") or first.startswith("."):
            return None
        candidate = self._root / rel
        if candidate.is_file():
            return candidate
        if candidate.is_dir() and (candidate / "index.html").is_file():
            return candidate / "index.html"
        return None

    def _resolve_post_url(self, name: str) -> Resolution:
        stem = name.rstrip("/").rsplit("/", 1)[-1]
        match = self._index.posts_by_name.get(stem)
        if match is None:
            return Resolution(ResolutionStatus.MISSING, name)
        return Resolution(ResolutionStatus.RECORD, name, url=match.url, record=match)

    def _resolve_link_tag(self, rel: str) -> Resolution:
        rel = rel.lstrip("/")
        match = self._index.by_rel.get(rel)
        if match is not None:
            return Resolution(ResolutionStatus.RECORD, rel, url=match.url, record=match)
        candidate = self._root / rel
        if candidate.is_file():
            return Resolution(ResolutionStatus.FILE, rel, url=f"/{rel}", file=candidate)
        return Resolution(ResolutionStatus.MISSING, rel)
