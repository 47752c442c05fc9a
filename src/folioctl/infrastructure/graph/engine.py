"""GraphEngine — lazy-built NetworkX graph of internal links between records.

Rebuilt per invocation, no cross-invocation cache. Nodes are records keyed
by canonical URL; an edge ``a -> b`` means record *a* links to record *b*.
Image references and links to static files are not edges.
Commands that don't need graph operations never build it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

import networkx as nx

from folioctl.domain.urls import canonical_url

if TYPE_CHECKING:
    from folioctl.infrastructure.site import Site

_Graph: TypeAlias = nx.DiGraph


class GraphEngine:
    """Lazy-loading graph engine backed by the site's records."""

    def __init__(self, site: Site) -> None:
        self._site = site
        self._graph: _Graph | None = None

    @property
    def graph(self) -> _Graph:
        """Return the graph, building from records on first access."""
        if self._graph is None:
            self._graph = self._build_from_records()
        return self._graph

    def invalidate(self) -> None:
        """Clear the cached graph, forcing rebuild on next access."""
        self._graph = None

    def _build_from_records(self) -> _Graph:
        """Build a NetworkX DiGraph from the site index.

        Adds all records first (so unlinked pages appear in the graph),
        then one edge per distinct resolved record-to-record link.
        """
        index = self._site.index
        resolver = self._site.resolver

        g: _Graph = nx.DiGraph()
        for record in index.records:
            g.add_node(
                canonical_url(record.url),
                title=record.title,
                kind=str(record.kind),
                path=record.rel,
            )

        for record in index.records:
            source = canonical_url(record.url)
            for link in record.links:
                if link.is_image:
                    continue
                resolution = resolver.resolve(record, link)
                if resolution.record is None:
                    continue
                target = canonical_url(resolution.record.url)
                if target == source:
                    continue
                if g.has_edge(source, target):
                    g[source][target]["count"] += 1
                else:
                    g.add_edge(source, target, count=1, kind=str(link.kind))
        return g
