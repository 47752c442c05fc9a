"""ExportService — link graph and site index export."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import networkx as nx

from folioctl.services.base import BaseService
from folioctl.services.result import ServiceResult, fail
from folioctl.services.telemetry import traced

GRAPH_FORMATS = ("json", "dot")


class ExportService(BaseService):
    """Writes derived views of the site for other tools."""

    @traced
    def export_graph(
        self,
        *,
        fmt: str | None = None,
        output: str | Path | None = None,
    ) -> ServiceResult:
        """Export the internal link graph.

        Formats:
        - ``json`` — D3-compatible ``{"nodes": [...], "links": [...]}``
        - ``dot`` — Graphviz DOT language

        Written to *output* when given, else returned in ``data["content"]``.
        """
        op = "export_graph"
        fmt = fmt or self._site.settings.export.graph_format
        g = self._site.graph.graph

        if fmt == "dot":
            content = _to_dot(g)
        elif fmt == "json":
            content = _to_d3_json(g)
        else:
            return fail(
                op,
                "INVALID_FORMAT",
                f"Unknown graph format: {fmt}",
                format=fmt,
                valid=list(GRAPH_FORMATS),
            )

        payload: dict[str, Any] = {
            "format": fmt,
            "node_count": g.number_of_nodes(),
            "edge_count": g.number_of_edges(),
        }
        return self._deliver(op, content, output, payload)

    @traced
    def export_index(self, *, output: str | Path | None = None) -> ServiceResult:
        """Export a JSON array describing every published record, sorted by URL."""
        include_hidden = self._site.settings.export.include_hidden
        records = sorted(
            (r for r in self._site.index.records if include_hidden or not r.hidden),
            key=lambda r: r.url,
        )
        entries = [
            {
                "url": r.url,
                "title": r.title,
                "kind": str(r.kind),
                "date": r.date.isoformat() if r.date else None,
                "categories": r.categories,
                "description": _text_or_none(r.frontmatter.get("description")),
            }
            for r in records
        ]
        content = json.dumps(entries, indent=2, ensure_ascii=False) + "\n"
        return self._deliver("export_index", content, output, {"count": len(entries)})

    def _deliver(
        self,
        op: str,
        content: str,
        output: str | Path | None,
        payload: dict[str, Any],
    ) -> ServiceResult:
        if output is None:
            return ServiceResult(ok=True, op=op, data={**payload, "content": content})

        target = Path(output)
        try:
            with self._site.transaction() as txn:
                txn.write_file(target, content)
        except OSError as exc:
            return fail(op, "WRITE_FAILED", f"Could not write {target}: {exc}", path=str(target))
        return ServiceResult(ok=True, op=op, data={**payload, "path": str(target)})


def _text_or_none(value: Any) -> str | None:
    return str(value) if value is not None else None


def _to_dot(g: nx.DiGraph) -> str:
    """Generate Graphviz DOT notation from the link graph."""
    lines = ["digraph site {", "  rankdir=LR;", "  node [shape=box];"]

    for url, attrs in sorted(g.nodes(data=True)):
        safe_label = str(attrs.get("title") or url).replace('"', '\\"')
        lines.append(f'  "{url}" [label="{safe_label}" kind="{attrs.get("kind", "")}"];')

    for src, tgt, attrs in sorted(g.edges(data=True)):
        lines.append(f'  "{src}" -> "{tgt}" [weight={attrs.get("count", 1)}];')

    lines.append("}")
    return "\n".join(lines) + "\n"


def _to_d3_json(g: nx.DiGraph) -> str:
    """Generate D3-compatible JSON from the link graph."""
    nodes = [
        {
            "id": url,
            "title": attrs.get("title", ""),
            "kind": attrs.get("kind", ""),
            "path": attrs.get("path", ""),
        }
        for url, attrs in sorted(g.nodes(data=True))
    ]
    links = [
        {
            "source": src,
            "target": tgt,
            "count": attrs.get("count", 1),
            "kind": attrs.get("kind", ""),
        }
        for src, tgt, attrs in sorted(g.edges(data=True))
    ]
    return json.dumps({"nodes": nodes, "links": links}, indent=2) + "\n"
