"""Record kinds and issue classification enums."""

from __future__ import annotations

from enum import StrEnum


class RecordKind(StrEnum):
    """Kinds of content the site generator renders."""

    PAGE = "page"
    POST = "post"
    NOTEBOOK = "notebook"


class Severity(StrEnum):
    """Issue severities reported by ``folioctl check``."""

    ERROR = "error"
    WARNING = "warning"


class LinkKind(StrEnum):
    """Syntactic form a link was written in."""

    MARKDOWN = "markdown"
    REFERENCE = "reference"
    HTML = "html"
    POST_URL = "post_url"
    LINK_TAG = "link_tag"


class TargetClass(StrEnum):
    """Classification of a raw link target."""

    INTERNAL = "internal"
    EXTERNAL = "external"
    ANCHOR = "anchor"
    EMPTY = "empty"
