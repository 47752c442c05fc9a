"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from folioctl.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from folioctl.services.result import ServiceResult

# Ops whose ``data["content"]`` is a document meant for stdout as-is.
_RAW_CONTENT_OPS = frozenset({"export_graph", "export_index"})


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal, which is
    the case inside Click's CliRunner and piped output.
    """
    raw = _raw_content(result)
    if raw is not None:
        return raw

    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    raw = _raw_content(result)
    if raw is not None:
        return raw

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))

    if result.op == "check" and result.data.get("issues"):
        return "\n".join(
            f"{i.get('path') or '-'}: {i.get('severity')}: {i.get('message')}"
            for i in result.data["issues"]
        )

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _raw_content(result: ServiceResult) -> str | None:
    if result.ok and result.op in _RAW_CONTENT_OPS and "content" in result.data:
        return str(result.data["content"]).rstrip("\n")
    return None


def _extract_id(item: Any) -> str:
    """Extract an ID from a list item (records by path, categories by name)."""
    if isinstance(item, dict):
        for key in ("id", "category"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="folio.ok")
    op = Text(f"  {result.op}", style="folio.op")
    console.print(label, op, sep="")


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="folio.key")
    if key == "id":
        v = Text(str(value), style="folio.id")
    elif key == "path":
        v = Text(str(value), style="folio.path")
    elif key == "url":
        v = Text(str(value), style="folio.url")
    elif key == "title":
        v = Text(str(value), style="folio.title")
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including the telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _record_table(items: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    """Build a Rich Table for a list of records."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Path", style="folio.id", no_wrap=True)
    table.add_column("Title", style="folio.title")
    table.add_column("Kind")
    table.add_column("URL", style="folio.url", no_wrap=True)
    table.add_column("Date")
    if verbose:
        table.add_column("Categories", style="dim")

    for item in items:
        kind = str(item.get("kind", ""))
        row: list[str | Text] = [
            str(item.get("id", "")),
            str(item.get("title", "")),
            Text(kind, style=style_for_kind(kind)),
            str(item.get("url", "")),
            str(item.get("date") or ""),
        ]
        if verbose:
            row.append(", ".join(item.get("categories") or []))
        table.add_row(*row)

    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="folio.error")
    op = Text(f"  {result.op}", style="folio.op")
    code = Text(f" [{err.code}]" if err else "", style="dim")
    console.print(label, op, code, Text(" — "), Text(msg), sep="")

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Check renderers ───────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render check results with issues grouped by category."""
    issues = result.data.get("issues", [])
    if not issues:
        console.print("[folio.ok]OK[/folio.ok]  No issues found.")
        if verbose:
            _render_meta(console, result)
        return

    severity_styles = {"error": "folio.error", "warning": "folio.warning"}

    by_category: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        by_category.setdefault(str(issue.get("category", "unknown")), []).append(issue)

    for cat, cat_issues in by_category.items():
        console.print(f"\n[bold]{cat}[/bold]")
        for issue in cat_issues:
            sev = str(issue.get("severity", "warning"))
            style = severity_styles.get(sev, "")
            prefix = f"[{style}]{sev}[/{style}]" if style else sev
            path = issue.get("path")
            where = f" [folio.path]{path}[/folio.path]" if path else ""
            console.print(f"  {prefix}{where}: ", Text(str(issue.get("message", ""))), sep="")
            if verbose and issue.get("fix_action"):
                console.print(f"    fix: {issue['fix_action']}")

    errors = result.data.get("error_count", 0)
    warnings = result.data.get("warning_count", 0)
    console.print(f"\n{errors} errors, {warnings} warnings")
    if verbose:
        _render_meta(console, result)


def _render_fix(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render fix results."""
    _status_line(console, result)
    fixes = result.data.get("fixes", [])
    _field(console, "level", result.data.get("level", "safe"))
    _field(console, "fixes_applied", result.data.get("count", len(fixes)))
    for fix in fixes:
        console.print("  - ", Text(str(fix)), sep="")
    if verbose:
        _render_meta(console, result)


# ── Query renderers ───────────────────────────────────────────────────


def _render_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_items results as a table."""
    items = result.data.get("items", [])
    console.print(_record_table(items, verbose=verbose))
    count = result.data.get("count", len(items))
    total = result.data.get("total", count)
    suffix = f" of {total}" if total != count else ""
    console.print(f"\n{count}{suffix} items")
    if verbose:
        _render_meta(console, result)


def _render_record(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single record as a panel with links and images."""
    d = result.data
    lines: list[str] = []
    for key in ("kind", "url", "date", "path"):
        val = d.get(key)
        if val is not None:
            lines.append(f"{key}: {val}")
    if d.get("categories"):
        lines.append(f"categories: {', '.join(d['categories'])}")
    if d.get("parse_error"):
        lines.append(f"parse error: {d['parse_error']}")

    links_out = d.get("links_out", [])
    if links_out:
        lines.append("")
        lines.append(f"links out ({len(links_out)}):")
        for link in links_out:
            where = link.get("url") or link["target"]
            lines.append(f"  {link['status']:<8} {where}")
    links_in = d.get("links_in", [])
    if links_in:
        lines.append("")
        lines.append(f"links in ({len(links_in)}):")
        for link in links_in:
            lines.append(f"  {link.get('url')}  {link.get('title') or ''}".rstrip())
    images = d.get("images", [])
    if images:
        lines.append("")
        lines.append(f"images ({len(images)}):")
        for image in images:
            lines.append(f"  {image['status']:<8} {image['target']}")

    if verbose and d.get("frontmatter"):
        lines.append("")
        lines.append("front-matter:")
        for key, value in d["frontmatter"].items():
            lines.append(f"  {key}: {json.dumps(value)}")

    title = f"{d.get('id', '?')} — {d.get('title') or 'Untitled'}"
    style = style_for_kind(str(d.get("kind", "")))
    console.print(
        Panel(Text("\n".join(lines)), title=title, border_style=style or "dim", expand=False)
    )
    if verbose:
        _render_meta(console, result)


def _render_categories(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render category counts as a two-column table."""
    items = result.data.get("items", [])
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Category", style="folio.id")
    table.add_column("Posts", justify="right")
    for item in items:
        table.add_row(str(item["category"]), str(item["count"]))
    console.print(table)
    console.print(f"\n{len(items)} categories")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create_page/create_post/create_notebook results."""
    _status_line(console, result)
    for key in ("id", "title", "kind", "url"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_export(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render export results that were written to a file."""
    _status_line(console, result)
    d = result.data
    for key in ("path", "format", "node_count", "edge_count", "count"):
        if key in d:
            _field(console, key, d[key])
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Check
    "check": _render_check,
    "fix": _render_fix,
    # Query
    "list_items": _render_list,
    "get": _render_record,
    "categories": _render_categories,
    # Create
    "create_page": _render_mutation,
    "create_post": _render_mutation,
    "create_notebook": _render_mutation,
    # Export
    "export_graph": _render_export,
    "export_index": _render_export,
}
