"""Site — repository over the site's source tree.

The Site is the single dependency injected into every service. It owns
discovery of records (pages, posts, notebook posts), the link graph, and
tracked file writes. :meth:`Site.transaction` coordinates writes so that if
any fail, the earlier ones are undone:

- **Files**: Compensation-based — newly created files are deleted, modified
  files are restored from backup, on rollback.
- **Index/graph**: Invalidated on transaction end (success or failure) and
  lazily rebuilt from files on next access.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any

from folioctl.domain.content import (
    FrontmatterError,
    has_frontmatter,
    parse_frontmatter,
    split_words,
)
from folioctl.domain.links import Link, extract_links
from folioctl.domain.notebook import NotebookFormatError, parse_notebook
from folioctl.domain.types import RecordKind
from folioctl.domain.urls import canonical_url, page_url, parse_post_filename, post_url
from folioctl.infrastructure.filesystem import (
    find_assets,
    find_content_files,
    find_layouts,
    read_jekyll_config,
)
from folioctl.infrastructure.graph.engine import GraphEngine
from folioctl.infrastructure.resolver import LinkResolver

if TYPE_CHECKING:
    from collections.abc import Iterator

    from folioctl.config.settings import FolioSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class ContentRecord:
    """One page, post, or notebook post as the generator will see it."""

    path: Path
    rel: str
    kind: RecordKind
    url: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    has_frontmatter: bool = False
    parse_error: str | None = None
    links: list[Link] = field(default_factory=list)
    date: date | None = None
    header_form: str | None = None

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def title(self) -> str:
        value = self.frontmatter.get("title")
        return str(value) if value is not None else ""

    @property
    def categories(self) -> list[str]:
        value = split_words(self.frontmatter.get("categories"))
        return [str(c) for c in value] if isinstance(value, list) else []

    @property
    def hidden(self) -> bool:
        return self.frontmatter.get("hide") is True or self.frontmatter.get("published") is False

    def summary(self) -> dict[str, Any]:
        """Compact dict for list/table output."""
        return {
            "id": self.rel,
            "title": self.title,
            "kind": str(self.kind),
            "url": self.url,
            "date": self.date.isoformat() if self.date else None,
            "categories": self.categories,
        }


def _coerce_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def load_record(
    site_root: Path,
    path: Path,
    kind: RecordKind,
    *,
    permalink_style: str = "date",
) -> ContentRecord:
    """Read one source file into a :class:`ContentRecord`.

    Parse failures are recorded on the record (``parse_error``) rather than
    raised, so one broken file never hides the rest of the site.
    """
    rel = PurePosixPath(path.relative_to(site_root).as_posix())
    record = ContentRecord(path=path, rel=str(rel), kind=kind, url="")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        record.parse_error = f"unreadable: {exc}"
        record.url = page_url(rel) if kind is RecordKind.PAGE else f"/{rel}"
        return record

    if kind is RecordKind.NOTEBOOK:
        try:
            doc = parse_notebook(text)
        except (NotebookFormatError, FrontmatterError) as exc:
            record.parse_error = str(exc)
        else:
            record.frontmatter = dict(doc.frontmatter)
            record.body = doc.body
            record.header_form = doc.header_form
            record.has_frontmatter = doc.header_form is not None
    else:
        record.has_frontmatter = has_frontmatter(text)
        try:
            fm, body = parse_frontmatter(text)
        except FrontmatterError as exc:
            record.parse_error = str(exc)
            record.body = text
        else:
            record.frontmatter = dict(fm)
            record.body = body

    permalink = record.frontmatter.get("permalink")
    permalink = str(permalink) if permalink else None
    if kind is RecordKind.PAGE:
        record.url = page_url(rel, permalink)
    else:
        parsed = parse_post_filename(path.stem)
        record.date = parsed[0] if parsed else _coerce_date(record.frontmatter.get("date"))
        record.url = post_url(
            path.stem,
            style=permalink_style,
            categories=record.categories,
            permalink=permalink,
            fallback_date=record.date,
        )

    record.links = extract_links(record.body)
    return record


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class SiteIndex:
    """All records of a site with lookups by path, URL, and post name."""

    def __init__(self, records: list[ContentRecord]) -> None:
        self.records = records
        self.by_rel: dict[str, ContentRecord] = {r.rel: r for r in records}
        self.by_url: dict[str, list[ContentRecord]] = {}
        self.posts_by_name: dict[str, ContentRecord] = {}
        for record in records:
            self.by_url.setdefault(canonical_url(record.url), []).append(record)
            if record.kind is not RecordKind.PAGE:
                self.posts_by_name[record.stem] = record

    def __len__(self) -> int:
        return len(self.records)

    def lookup_url(self, url: str) -> ContentRecord | None:
        """First record published at *url* (any equivalent spelling)."""
        matches = self.by_url.get(canonical_url(url))
        return matches[0] if matches else None

    def lookup(self, ref: str) -> ContentRecord | None:
        """Find a record by site-relative path or by URL."""
        ref = ref.strip()
        if ref in self.by_rel:
            return self.by_rel[ref]
        stripped = ref.removeprefix("./")
        if stripped in self.by_rel:
            return self.by_rel[stripped]
        if stripped in self.posts_by_name:
            return self.posts_by_name[stripped]
        return self.lookup_url(ref)

    def duplicates(self) -> dict[str, list[ContentRecord]]:
        """URLs claimed by more than one record."""
        return {url: recs for url, recs in self.by_url.items() if len(recs) > 1}


# ---------------------------------------------------------------------------
# File operation tracking for compensation-based rollback
# ---------------------------------------------------------------------------


@dataclass
class _FileOp:
    """A tracked file write within a site transaction."""

    path: Path
    backup: str | None  # original content for updates, None for creates

    def rollback(self) -> None:
        """Undo this file operation (best-effort)."""
        try:
            if self.backup is not None:
                self.path.write_text(self.backup, encoding="utf-8", newline="")
            else:
                self.path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to rollback file operation: %s", self.path)


@dataclass
class SiteTransaction:
    """Active transaction with tracked file I/O.

    All writes must go through :meth:`write_file` so the Site can
    compensate on rollback. Direct filesystem writes bypass the safety net.
    """

    _site: Site
    _file_ops: list[_FileOp] = field(default_factory=list, repr=False)

    def write_file(self, path: Path, content: str) -> None:
        """Write *content* to *path*, tracking for rollback.

        If the file already exists, its current content is backed up.
        Parent directories are created as needed.
        """
        backup: str | None = None
        if path.exists():
            backup = path.read_bytes().decode("utf-8")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8", newline="")
        self._file_ops.append(_FileOp(path=path, backup=backup))

    def read_file(self, path: Path) -> str:
        """Read *path* without newline translation, so CRLF files stay CRLF."""
        return path.read_bytes().decode("utf-8")

    @property
    def written(self) -> list[Path]:
        return [op.path for op in self._file_ops]

    def _rollback(self) -> None:
        for op in reversed(self._file_ops):
            op.rollback()


# ---------------------------------------------------------------------------
# Site
# ---------------------------------------------------------------------------


class Site:
    """Repository over one site's source tree."""

    def __init__(self, settings: FolioSettings) -> None:
        self._settings = settings
        self._root = settings.site_root
        self._jekyll: dict[str, Any] | None = None
        self._index: SiteIndex | None = None
        self._graph = GraphEngine(self)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def settings(self) -> FolioSettings:
        return self._settings

    @property
    def jekyll_config(self) -> dict[str, Any]:
        """Parsed ``_config.yml`` (cached for the Site's lifetime)."""
        if self._jekyll is None:
            self._jekyll = read_jekyll_config(self._root)
        return self._jekyll

    @property
    def baseurl(self) -> str:
        value = self._settings.site.baseurl
        if value is None:
            value = self.jekyll_config.get("baseurl") or ""
        return str(value).rstrip("/")

    @property
    def permalink_style(self) -> str:
        value = self._settings.site.permalink or self.jekyll_config.get("permalink") or "date"
        return str(value)

    @property
    def excludes(self) -> list[str]:
        raw = self.jekyll_config.get("exclude") or []
        patterns = [str(p) for p in raw] if isinstance(raw, list) else []
        return patterns + list(self._settings.site.extra_excludes)

    @property
    def index(self) -> SiteIndex:
        """All records, loaded on first access."""
        if self._index is None:
            self._index = self._load_index()
        return self._index

    @property
    def resolver(self) -> LinkResolver:
        """Link resolver bound to the current index and baseurl."""
        return LinkResolver(self._root, self.index, baseurl=self.baseurl)

    @property
    def graph(self) -> GraphEngine:
        return self._graph

    def invalidate(self) -> None:
        """Forget loaded records so the next access rereads the tree."""
        self._index = None
        self._graph.invalidate()

    def find_content(self) -> list[tuple[Path, RecordKind]]:
        return find_content_files(
            self._root,
            notebooks_dir=self._settings.notebooks.dir,
            excludes=self.excludes,
        )

    def layouts(self) -> set[str]:
        """Layouts defined in ``_layouts/`` plus configured theme layouts."""
        return find_layouts(self._root) | set(self._settings.check.known_layouts)

    def assets(self) -> list[Path]:
        return find_assets(self._root, list(self._settings.site.image_dirs))

    def _load_index(self) -> SiteIndex:
        style = self.permalink_style
        records = [
            load_record(self._root, path, kind, permalink_style=style)
            for path, kind in self.find_content()
        ]
        logger.debug("Loaded %d records from %s", len(records), self._root)
        return SiteIndex(records)

    @contextmanager
    def transaction(self) -> Iterator[SiteTransaction]:
        """Coordinate file writes with compensation on failure.

        Usage::

            with site.transaction() as txn:
                txn.write_file(path, content)
        """
        txn = SiteTransaction(_site=self)
        try:
            yield txn
        except BaseException:
            txn._rollback()
            raise
        finally:
            self.invalidate()
