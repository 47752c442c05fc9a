"""Link extraction — markdown, HTML, and Liquid link forms.

Pure functions, no infrastructure dependencies. Consumed by the site index
when records are loaded and by the check service when links are resolved.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from urllib.parse import unquote

from folioctl.domain.types import LinkKind, TargetClass

# A target may embed Liquid output/tags, which contain spaces.
_TARGET = r"(?:\{\{[^}]*\}\}|\{%[^%]*%\}|[^\s()<>])+"

# [text](target "title") and ![alt](src); text may nest one bracket level.
_INLINE_PATTERN = re.compile(
    r"(?P<bang>!?)\[(?P<text>(?:[^\[\]]|\[[^\[\]]*\])*)\]"
    r"\(\s*<?(?P<target>" + _TARGET + r")>?(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)"
)
# [label]: target. Footnote definitions ([^1]: text) are not links.
_REFERENCE_PATTERN = re.compile(
    r"^ {0,3}\[(?!\^)(?P<label>[^\]]+)\]:\s*<?(?P<target>\S+?)>?(?:\s+.*)?$", re.M
)
_HTML_A_PATTERN = re.compile(r"<a\s[^>]*?href\s*=\s*([\"'])(?P<target>.*?)\1", re.I | re.S)
_HTML_IMG_PATTERN = re.compile(r"<img\s[^>]*?src\s*=\s*([\"'])(?P<target>.*?)\1", re.I | re.S)
_POST_URL_PATTERN = re.compile(r"\{%-?\s*post_url\s+(?P<target>\S+?)\s*-?%\}")
_LINK_TAG_PATTERN = re.compile(r"\{%-?\s*link\s+(?P<target>\S+?)\s*-?%\}")

_FENCE_PATTERN = re.compile(r"^\s{0,3}(```|~~~)")
_CODE_SPAN_PATTERN = re.compile(r"(`+)(?:(?!\1).)+?\1", re.S)

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_FILTERED_PATTERN = re.compile(
    r"\{\{\s*['\"](?P<path>[^'\"]*)['\"]\s*\|\s*(?:relative_url|absolute_url)\s*\}\}"
)
_SITE_PREFIX_PATTERN = re.compile(r"\{\{\s*site\.(?:baseurl|url)\s*\}\}")

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".bmp", ".ico"})


@dataclass(frozen=True)
class Link:
    """A link or image reference extracted from body text."""

    target: str
    is_image: bool
    line: int
    kind: LinkKind = LinkKind.MARKDOWN
    text: str | None = None


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def mask_code(body: str) -> str:
    """Blank out fenced code blocks and inline code spans.

    Masked characters become spaces so offsets and line numbers are kept.
    """
    out: list[str] = []
    fence: str | None = None
    for line in body.split("\n"):
        m = _FENCE_PATTERN.match(line)
        if fence is None and m:
            fence = m.group(1)
            out.append(" " * len(line))
            continue
        if fence is not None:
            if m and m.group(1) == fence:
                fence = None
            out.append(" " * len(line))
            continue
        out.append(line)
    masked = "\n".join(out)
    return _CODE_SPAN_PATTERN.sub(lambda m: re.sub(r"[^\n]", " ", m.group(0)), masked)


def _has_image_extension(target: str) -> bool:
    path = target.split("?", 1)[0].split("#", 1)[0].lower()
    return any(path.endswith(ext) for ext in IMAGE_EXTENSIONS)


def _make_link(
    target: str, *, is_image: bool, line: int, kind: LinkKind, text: str | None = None
) -> Link:
    """Build a Link, promoting a bare ``{% post_url %}``/``{% link %}`` target."""
    stripped = target.strip()
    if m := _POST_URL_PATTERN.fullmatch(stripped):
        return Link(m.group("target"), is_image, line, LinkKind.POST_URL, text)
    if m := _LINK_TAG_PATTERN.fullmatch(stripped):
        return Link(m.group("target"), is_image, line, LinkKind.LINK_TAG, text)
    return Link(target, is_image, line, kind, text)


class _Scanner:
    """Collects links from masked text, tracking positions for ordering."""

    def __init__(self, masked: str) -> None:
        self.masked = masked
        self.found: list[tuple[int, Link]] = []
        self.covered: list[range] = []
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(masked) if ch == "\n"]

    def line_of(self, pos: int) -> int:
        return bisect_right(self._line_starts, pos)

    def add(self, pos: int, link: Link) -> None:
        self.found.append((pos, link))

    def inline(self, text: str, offset: int) -> None:
        for m in _INLINE_PATTERN.finditer(text):
            start = offset + m.start()
            self.add(
                start,
                _make_link(
                    m.group("target"),
                    is_image=bool(m.group("bang")),
                    line=self.line_of(start),
                    kind=LinkKind.MARKDOWN,
                    text=m.group("text"),
                ),
            )
            self.covered.append(range(offset + m.start("target"), offset + m.end("target")))
            # [![badge](img)](link): the image lives inside the link text.
            inner = m.group("text")
            if "](" in inner:
                self.inline(inner, offset + m.start("text"))

    def is_covered(self, pos: int) -> bool:
        return any(pos in span for span in self.covered)


def extract_links(body: str) -> list[Link]:
    """Extract every link and image reference from markdown/HTML *body*.

    Code blocks and code spans are ignored. Results are in document order.
    """
    masked = mask_code(body)
    scan = _Scanner(masked)
    scan.inline(masked, 0)

    for m in _REFERENCE_PATTERN.finditer(masked):
        target = m.group("target")
        scan.add(
            m.start(),
            _make_link(
                target,
                is_image=_has_image_extension(target),
                line=scan.line_of(m.start()),
                kind=LinkKind.REFERENCE,
                text=m.group("label"),
            ),
        )

    for pattern, is_image in ((_HTML_A_PATTERN, False), (_HTML_IMG_PATTERN, True)):
        for m in pattern.finditer(masked):
            scan.add(
                m.start(),
                _make_link(
                    m.group("target"),
                    is_image=is_image,
                    line=scan.line_of(m.start()),
                    kind=LinkKind.HTML,
                ),
            )

    liquid = ((_POST_URL_PATTERN, LinkKind.POST_URL), (_LINK_TAG_PATTERN, LinkKind.LINK_TAG))
    for pattern, kind in liquid:
        for m in pattern.finditer(masked):
            # Tags used as a markdown target or HTML attribute are already captured.
            if scan.is_covered(m.start()) or _inside_html_attribute(masked, m.start()):
                continue
            scan.add(
                m.start(),
                Link(m.group("target"), False, scan.line_of(m.start()), kind),
            )

    scan.found.sort(key=lambda item: item[0])
    return [link for _, link in scan.found]


def _inside_html_attribute(text: str, pos: int) -> bool:
    """True when *pos* sits inside an ``href``/``src`` attribute value."""
    tag_open = text.rfind("<", 0, pos)
    tag_close = text.rfind(">", 0, pos)
    if tag_open <= tag_close:
        return False
    return bool(re.search(r"(?:href|src)\s*=\s*[\"'][^\"']*$", text[tag_open:pos], re.I))


# ---------------------------------------------------------------------------
# Classification and normalization
# ---------------------------------------------------------------------------


def classify(target: str) -> TargetClass:
    """Classify a raw link target.

    ``{{ site.url }}``-prefixed targets are internal: the prefix is the
    site's own origin.
    """
    stripped = target.strip()
    if not stripped:
        return TargetClass.EMPTY
    if stripped.startswith("#"):
        return TargetClass.ANCHOR
    if stripped.startswith("{{") or stripped.startswith("{%"):
        return TargetClass.INTERNAL
    if stripped.startswith("//") or _SCHEME_PATTERN.match(stripped):
        return TargetClass.EXTERNAL
    return TargetClass.INTERNAL


def normalize_target(target: str, baseurl: str = "") -> str | None:
    """Reduce an internal target to a plain site path.

    Strips ``{{ site.baseurl }}``/``{{ site.url }}`` prefixes, unwraps
    ``relative_url``/``absolute_url`` filters, drops query and fragment,
    percent-decodes, and removes *baseurl*. Returns None when the target
    still contains Liquid that cannot be evaluated statically.
    """
    value = target.strip().strip("<>")
    value = _FILTERED_PATTERN.sub(lambda m: m.group("path"), value)
    value = _SITE_PREFIX_PATTERN.sub("", value)
    if "{{" in value or "{%" in value:
        return None

    value = value.split("#", 1)[0].split("?", 1)[0]
    value = unquote(value)

    base = baseurl.rstrip("/")
    if base and (value == base or value.startswith(base + "/")):
        value = value[len(base) :] or "/"
    return value
