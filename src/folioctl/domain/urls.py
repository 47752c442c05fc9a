"""Output URL derivation — how the site generator names each record.

Pages use their ``permalink`` or their source path. Posts and notebook posts
use the site-wide permalink style from ``_config.yml``, filled from the
``YYYY-MM-DD-slug`` filename and the post's categories.
"""

from __future__ import annotations

import re
import unicodedata
from datetime import date
from pathlib import PurePosixPath

POST_FILENAME_PATTERN = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})-(?P<slug>.+)$"
)

PERMALINK_STYLES: dict[str, str] = {
    "date": "/:categories/:year/:month/:day/:title:output_ext",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title:output_ext",
    "weekdate": "/:categories/:year/W:week/:short_day/:title:output_ext",
    "none": "/:categories/:title:output_ext",
}


def slugify(title: str) -> str:
    """Turn a title into a URL/filename slug.

    Examples:
        >>> slugify("Test-Time Augmentation for Tabular Data")
        'test-time-augmentation-for-tabular-data'
        >>> slugify("  Über  cool!  ")
        'uber-cool'
    """
    text = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return text.strip("-")


def parse_post_filename(stem: str) -> tuple[date, str] | None:
    """Split ``2020-05-01-my-post`` into ``(date(2020, 5, 1), "my-post")``.

    Returns None when the stem lacks a valid date prefix.
    """
    m = POST_FILENAME_PATTERN.match(stem)
    if m is None:
        return None
    try:
        post_date = date(int(m.group("year")), int(m.group("month")), int(m.group("day")))
    except ValueError:
        return None
    return post_date, m.group("slug")


def canonical_url(url: str) -> str:
    """Collapse equivalent spellings of a URL to one key.

    ``/x``, ``/x.html``, ``/x/`` and ``/x/index.html`` all map to ``/x``;
    ``/`` and ``/index.html`` map to ``/``.
    """
    path = url if url.startswith("/") else f"/{url}"
    path = re.sub(r"/{2,}", "/", path)
    if path.endswith("/index.html"):
        path = path[: -len("index.html")]
    elif path.endswith(".html"):
        path = path[: -len(".html")]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


def page_url(rel_path: PurePosixPath, permalink: str | None = None) -> str:
    """Derive the output URL of a page.

    *rel_path* is relative to the site root. A ``_pages/`` prefix is
    stripped; markdown sources render to ``.html``; ``index`` pages name
    their directory.
    """
    if permalink:
        return permalink if permalink.startswith("/") else f"/{permalink}"

    parts = list(rel_path.parts)
    if parts and parts[0] == "_pages":
        parts = parts[1:]
    path = PurePosixPath(*parts) if parts else PurePosixPath("index.html")
    if path.suffix in (".md", ".markdown"):
        path = path.with_suffix(".html")
    if path.name in ("index.html", "index.htm"):
        parent = str(path.parent)
        return "/" if parent == "." else f"/{parent}/"
    return f"/{path}"


def expand_permalink(
    style: str,
    *,
    post_date: date,
    slug: str,
    categories: list[str] | tuple[str, ...] = (),
    output_ext: str = ".html",
) -> str:
    """Fill a Jekyll permalink style or template for a post."""
    template = PERMALINK_STYLES.get(style, style)
    iso = post_date.isocalendar()
    tokens = {
        ":categories": "/".join(dict.fromkeys(str(c).lower() for c in categories if str(c))),
        ":year": f"{post_date.year:04d}",
        ":short_year": f"{post_date.year % 100:02d}",
        ":month": f"{post_date.month:02d}",
        ":i_month": str(post_date.month),
        ":day": f"{post_date.day:02d}",
        ":i_day": str(post_date.day),
        ":y_day": f"{post_date.timetuple().tm_yday:03d}",
        ":week": f"{iso.week:02d}",
        ":short_day": post_date.strftime("%a"),
        ":title": slug,
        ":slug": slug,
        ":output_ext": output_ext,
    }
    # Longest token first so ":short_year" is not eaten by ":year".
    for token in sorted(tokens, key=len, reverse=True):
        template = template.replace(token, tokens[token])
    url = re.sub(r"/{2,}", "/", template)
    return url if url.startswith("/") else f"/{url}"


def post_url(
    stem: str,
    *,
    style: str = "date",
    categories: list[str] | tuple[str, ...] = (),
    permalink: str | None = None,
    fallback_date: date | None = None,
) -> str:
    """Derive the output URL of a post or notebook post from its filename.

    A front-matter *permalink* wins. Without a date prefix, *fallback_date*
    is used; without either the slug alone is used.
    """
    if permalink:
        return permalink if permalink.startswith("/") else f"/{permalink}"
    parsed = parse_post_filename(stem)
    if parsed is not None:
        post_date, slug = parsed
    elif fallback_date is not None:
        post_date, slug = fallback_date, stem
    else:
        return f"/{slugify(stem) or stem}.html"
    return expand_permalink(style, post_date=post_date, slug=slug, categories=categories)
