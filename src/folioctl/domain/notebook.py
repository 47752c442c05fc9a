"""Notebook posts — fastpages front-matter in the first cell.

A notebook post is nbformat-4 JSON. The blog converter reads its metadata
from the first cell, in one of two forms::

    # Title
    > One-line summary

    - toc: true
    - badges: true
    - categories: [jupyter, pytorch]
    - image: images/chart-preview.png

or a raw/markdown cell holding a ``---`` YAML block. Both parse to the same
front-matter dict; the remaining markdown cells form the body that link
extraction runs over.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, field_validator

from folioctl.domain.content import (
    dump_yaml_value,
    load_yaml_value,
    parse_frontmatter,
    split_words,
)

_TITLE_PATTERN = re.compile(r"^#\s+(.+?)\s*$")
_SUMMARY_PATTERN = re.compile(r"^>\s*(.+?)\s*$")
_BULLET_PATTERN = re.compile(r"^\s*-\s+([A-Za-z_][\w-]*)\s*:\s*(.*?)\s*$")

# Emission order for the markdown header form.
_HEADER_KEY_ORDER = ("toc", "badges", "comments", "hide", "search_exclude", "categories", "image")


class NotebookFormatError(ValueError):
    """Raised when a notebook file is not valid nbformat JSON."""


@dataclass(frozen=True)
class NotebookDocument:
    """Parsed view of a notebook post."""

    frontmatter: dict[str, Any]
    header_form: str | None  # "markdown", "yaml", or None when absent
    body: str
    cell_count: int = 0
    code_cell_count: int = 0
    nbformat: int | None = None
    markdown_cells: list[str] = field(default_factory=list)


class NotebookFrontmatter(BaseModel):
    """Front-matter the blog converter understands for a notebook post."""

    model_config = {"frozen": True, "extra": "allow"}

    title: str
    description: str | None = None
    toc: bool = False
    badges: bool = True
    comments: bool = False
    hide: bool = False
    search_exclude: bool = False
    categories: list[str] = Field(default_factory=list)
    image: str | None = None
    permalink: str | None = None
    layout: str | None = None

    @field_validator("categories", mode="before")
    @classmethod
    def _split_words(cls, value: Any) -> Any:
        return split_words(value)


def cell_source(cell: dict[str, Any]) -> str:
    """Return a cell's source as a single string (nbformat allows a list)."""
    source = cell.get("source", "")
    if isinstance(source, list):
        return "".join(str(part) for part in source)
    return str(source)


def parse_header_cell(source: str) -> tuple[dict[str, Any], str | None, str]:
    """Parse the first-cell header into ``(frontmatter, form, remainder)``.

    *remainder* is any header text that is not metadata (kept as body so
    links written there are still checked).
    """
    stripped = source.lstrip()
    if stripped.startswith("---"):
        yaml_fm, rest = parse_frontmatter(stripped)
        if yaml_fm or rest != stripped:
            return yaml_fm, "yaml", rest

    lines = source.replace("\r\n", "\n").split("\n")
    first = next((line for line in lines if line.strip()), "")
    if not _TITLE_PATTERN.match(first):
        return {}, None, source

    fm: dict[str, Any] = {}
    remainder: list[str] = []
    for line in lines:
        if "title" not in fm and (m := _TITLE_PATTERN.match(line)):
            fm["title"] = m.group(1)
            continue
        if "description" not in fm and (m := _SUMMARY_PATTERN.match(line)):
            fm["description"] = m.group(1)
            continue
        if m := _BULLET_PATTERN.match(line):
            raw = m.group(2)
            fm[m.group(1)] = load_yaml_value(raw) if raw else None
            continue
        remainder.append(line)

    return fm, "markdown", "\n".join(remainder).strip("\n")


def parse_notebook(text: str) -> NotebookDocument:
    """Parse notebook JSON into a :class:`NotebookDocument`.

    Raises:
        NotebookFormatError: Invalid JSON, or no ``cells`` list.
        FrontmatterError: A YAML-form header that is not valid YAML.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"invalid notebook JSON: {exc.msg} (line {exc.lineno})"
        raise NotebookFormatError(msg) from exc

    if not isinstance(data, dict) or not isinstance(data.get("cells"), list):
        msg = "notebook has no 'cells' list"
        raise NotebookFormatError(msg)

    cells: list[dict[str, Any]] = [c for c in data["cells"] if isinstance(c, dict)]
    markdown_cells = [cell_source(c) for c in cells if c.get("cell_type") == "markdown"]
    code_cells = sum(1 for c in cells if c.get("cell_type") == "code")

    fm: dict[str, Any] = {}
    form: str | None = None
    body_parts: list[str] = []
    first_used = False
    if cells and cells[0].get("cell_type") in ("markdown", "raw"):
        fm, form, remainder = parse_header_cell(cell_source(cells[0]))
        if form is not None:
            first_used = True
            if remainder:
                body_parts.append(remainder)

    for idx, cell in enumerate(cells):
        if idx == 0 and first_used:
            continue
        if cell.get("cell_type") == "markdown":
            body_parts.append(cell_source(cell))

    nbformat = data.get("nbformat")
    return NotebookDocument(
        frontmatter=fm,
        header_form=form,
        body="\n\n".join(body_parts),
        cell_count=len(cells),
        code_cell_count=code_cells,
        nbformat=nbformat if isinstance(nbformat, int) else None,
        markdown_cells=markdown_cells,
    )


def render_notebook_header(fm: dict[str, Any]) -> str:
    """Render *fm* in the fastpages markdown header form."""
    lines = [f"# {fm.get('title', '')}"]
    if fm.get("description"):
        lines.append(f"> {fm['description']}")
    lines.append("")
    emitted = {"title", "description"}
    for key in _HEADER_KEY_ORDER:
        if fm.get(key) is not None:
            lines.append(f"- {key}: {dump_yaml_value(fm[key])}")
            emitted.add(key)
    for key in sorted(k for k in fm if k not in emitted and fm[k] is not None):
        lines.append(f"- {key}: {dump_yaml_value(fm[key])}")
    return "\n".join(lines)


def new_notebook(
    header: str,
    *,
    intro: str | None = None,
    kernel: str = "python3",
) -> dict[str, Any]:
    """Build an nbformat-4 notebook: header cell, optional intro cell, one empty code cell."""
    cells: list[dict[str, Any]] = [
        {"cell_type": "markdown", "metadata": {}, "source": header.splitlines(keepends=True)},
    ]
    if intro:
        cells.append(
            {"cell_type": "markdown", "metadata": {}, "source": intro.splitlines(keepends=True)}
        )
    cells.append(
        {
            "cell_type": "code",
            "execution_count": None,
            "metadata": {},
            "outputs": [],
            "source": [],
        }
    )
    return {
        "cells": cells,
        "metadata": {
            "kernelspec": {"display_name": "Python 3", "language": "python", "name": kernel},
            "language_info": {"name": "python"},
        },
        "nbformat": 4,
        "nbformat_minor": 5,
    }
