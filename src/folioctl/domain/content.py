"""Front-matter models and the pure parse/render utilities.

Pages and posts carry a YAML block between ``---`` lines at the top of the
file. The keys are a convention of the external site generator, so the
schemas below are permissive: unknown keys are kept, only the keys folioctl
reasons about are typed.

Pure parsing utilities (``parse_frontmatter``, ``order_frontmatter``,
``render_frontmatter``) live here so that the dependency direction stays
clean: infrastructure -> domain, never the reverse.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from io import StringIO
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

# ---------------------------------------------------------------------------
# YAML parser (round-trip preserves comments and quote styles)
# ---------------------------------------------------------------------------


def _new_yaml() -> YAML:
    """Create a fresh round-trip YAML parser.

    ruamel.yaml's YAML object is stateful and a failed dump can leave a
    shared instance broken, so every call gets its own.
    """
    y = YAML()
    y.preserve_quotes = True
    y.default_flow_style = False
    return y


# ---------------------------------------------------------------------------
# Canonical front-matter key ordering
# ---------------------------------------------------------------------------

CANONICAL_KEY_ORDER: list[str] = [
    "layout",
    "title",
    "description",
    "permalink",
    "author",
    "date",
    "categories",
    "tags",
    "toc",
    "badges",
    "comments",
    "image",
    "hide",
    "search_exclude",
    "nav_order",
]

_FRONTMATTER_DELIMITER = "---"


class FrontmatterError(ValueError):
    """Raised when a front-matter block exists but is not valid YAML."""


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating front-matter against a schema."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pure parsing / rendering utilities
# ---------------------------------------------------------------------------


def has_frontmatter(content: str) -> bool:
    """Return True if *content* opens with a terminated ``---`` block."""
    lines = content.replace("\r\n", "\n").split("\n")
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return False
    return any(line.strip() == _FRONTMATTER_DELIMITER for line in lines[1:])


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML front-matter and body from page content.

    Expects the file to start with ``---`` on the first line. The second
    ``---`` closes the YAML block. Everything after is the body.

    Returns:
        A ``(frontmatter_dict, body_text)`` tuple. If no terminated block is
        found, returns ``({}, content)``.

    Raises:
        FrontmatterError: The block exists but is not valid YAML or not a
            mapping.
    """
    normalized = content.replace("\r\n", "\n")
    lines = normalized.split("\n")
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return {}, content

    end_idx: int | None = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == _FRONTMATTER_DELIMITER:
            end_idx = i
            break

    if end_idx is None:
        return {}, content

    yaml_block = "\n".join(lines[1:end_idx])
    body = "\n".join(lines[end_idx + 1 :])

    if body.startswith("\n"):
        body = body[1:]

    try:
        fm = _new_yaml().load(yaml_block)
    except (YAMLError, ValueError) as exc:
        # ruamel raises plain ValueError for impossible timestamps (2020-13-45).
        raise FrontmatterError(str(exc).splitlines()[0] if str(exc) else repr(exc)) from exc

    if fm is None:
        return {}, body
    if not isinstance(fm, dict):
        msg = f"front-matter must be a mapping, got {type(fm).__name__}"
        raise FrontmatterError(msg)
    return fm, body


def order_frontmatter(fm: dict[str, Any]) -> dict[str, Any]:
    """Return *fm* with keys in canonical order.

    Keys present in :data:`CANONICAL_KEY_ORDER` come first (in that
    order), followed by any remaining keys sorted alphabetically (compared
    as strings, since YAML keys such as ``2021`` load as ints).
    ``None`` values are omitted.
    """
    ordered: dict[str, Any] = {}
    for key in CANONICAL_KEY_ORDER:
        if key in fm and fm[key] is not None:
            ordered[key] = fm[key]

    for key in sorted(fm.keys(), key=str):
        if key not in ordered and fm[key] is not None:
            ordered[key] = fm[key]

    return ordered


def render_frontmatter(frontmatter: dict[str, Any], body: str, *, reorder: bool = True) -> str:
    """Render a front-matter dict and body text into a page file.

    With ``reorder=False`` the mapping is dumped as given, so a round-trip
    loaded block keeps its key order and comments.
    """
    ordered = order_frontmatter(frontmatter) if reorder else frontmatter
    buf = StringIO()
    if ordered:
        _new_yaml().dump(ordered, buf)
    yaml_text = buf.getvalue()

    parts = [_FRONTMATTER_DELIMITER, "\n", yaml_text, _FRONTMATTER_DELIMITER, "\n"]
    if body:
        parts.append(body)
    return "".join(parts)


def replace_frontmatter(content: str, frontmatter: dict[str, Any], *, reorder: bool = True) -> str:
    """Swap the front-matter block of *content* for *frontmatter*.

    Everything after the closing ``---`` line is kept byte for byte, and the
    new block uses the file's line endings (``\\r\\n`` or ``\\n``).

    Raises:
        FrontmatterError: *content* has no terminated front-matter block.
    """
    lines = content.split("\n")
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        raise FrontmatterError("no front-matter block to replace")
    end_idx = next(
        (i for i, line in enumerate(lines[1:], start=1) if line.strip() == _FRONTMATTER_DELIMITER),
        None,
    )
    if end_idx is None:
        raise FrontmatterError("front-matter block is not terminated")

    header = render_frontmatter(frontmatter, "", reorder=reorder)
    if lines[0].endswith("\r"):
        header = header.replace("\n", "\r\n")
    return header + "\n".join(lines[end_idx + 1 :])


def load_yaml_value(raw: str) -> Any:
    """Load a single YAML scalar or flow collection (``[a, b]``, ``true``)."""
    try:
        return _new_yaml().load(raw)
    except (YAMLError, ValueError):
        return raw


def dump_yaml_value(value: Any) -> str:
    """Dump *value* as an inline YAML fragment."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(str(v) for v in value) + "]"
    return str(value)


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


def split_words(value: Any) -> Any:
    """Jekyll accepts ``categories: a b`` as well as a YAML list."""
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return value


class PageFrontmatter(BaseModel):
    """Front-matter of a standalone page (About, Portfolio, ...)."""

    model_config = {"frozen": True, "extra": "allow"}

    layout: str | None = None
    title: str | None = None
    permalink: str | None = None
    description: str | None = None
    hide: bool = False
    search_exclude: bool = False


class PostFrontmatter(PageFrontmatter):
    """Front-matter of a markdown blog post under ``_posts/``."""

    model_config = {"frozen": True, "extra": "allow"}

    date: dt.date | str | None = None
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    toc: bool = False
    badges: bool = False
    comments: bool = False
    image: str | None = None

    @field_validator("categories", "tags", mode="before")
    @classmethod
    def _split_words(cls, value: Any) -> Any:
        return split_words(value)


def describe_validation_error(exc: ValidationError) -> list[str]:
    """Flatten a pydantic error into ``"key: message"`` strings."""
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        messages.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return messages


def validate_frontmatter(
    schema: type[BaseModel],
    fm: dict[str, Any],
    *,
    required: list[str] | tuple[str, ...] = (),
) -> ValidationResult:
    """Validate *fm* against *schema* plus a list of required keys.

    A required key counts as missing when absent, ``None``, or an empty
    string/list.
    """
    errors: list[str] = []
    for key in required:
        value = fm.get(key)
        if value is None or (isinstance(value, (str, list)) and len(value) == 0):
            errors.append(f"missing required key '{key}'")

    try:
        schema.model_validate({str(k): v for k, v in fm.items()})
    except ValidationError as exc:
        errors.extend(describe_validation_error(exc))

    return ValidationResult(valid=not errors, errors=errors)
