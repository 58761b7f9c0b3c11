"""Derive the visible subgraph from (data, layer selector, search term).

The layer filter runs first and narrows the candidate set; the search then
narrows within it. The origin node (layer 0) survives every layer filter.
Links with an endpoint outside the surviving node set, including links
that reference nodes which do not exist at all, are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .models import LAYER_ORIGIN, GraphData, Link, Node

logger = logging.getLogger(__name__)

ALL_LAYERS = "all"


@dataclass
class Edge:
    """A link with both endpoints resolved to node records."""

    link: Link
    source: Node
    target: Node

    @property
    def id(self) -> str:
        return self.link.id

    def other(self, node_id: str) -> Node:
        return self.target if self.source.id == node_id else self.source


@dataclass
class Subgraph:
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    index: dict[str, Node] = field(default_factory=dict)

    @property
    def links(self) -> list[Link]:
        return [e.link for e in self.edges]

    def node_ids(self) -> set[str]:
        return set(self.index)

    def edges_of(self, node_id: str) -> list[Edge]:
        return [e for e in self.edges if e.source.id == node_id or e.target.id == node_id]


def parse_layer_selector(value: Any) -> int | str:
    """Normalize ``"all"``, ints and digit strings; raises ValueError otherwise."""
    if value is None or value == ALL_LAYERS:
        return ALL_LAYERS
    if isinstance(value, bool):
        raise ValueError(f"invalid layer selector: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid layer selector: {value!r}") from None


def matches(node: Node, term: str) -> bool:
    """Case-insensitive substring match on name and keywords."""
    needle = term.lower()
    if isinstance(node.name, str) and needle in node.name.lower():
        return True
    for keyword in node.keywords or ():
        if isinstance(keyword, str) and needle in keyword.lower():
            return True
    return False


def _resolve(links: list[Link], index: dict[str, Node]) -> list[Edge]:
    edges = []
    for link in links:
        source = index.get(link.source)
        target = index.get(link.target)
        if source is None or target is None:
            continue
        edges.append(Edge(link=link, source=source, target=target))
    return edges


def filter_graph(data: GraphData, layer: Any = ALL_LAYERS, search: str | None = "") -> Subgraph:
    selector = parse_layer_selector(layer)
    candidates = data.nodes
    if selector != ALL_LAYERS:
        candidates = [n for n in candidates if n.layer == selector or n.layer == LAYER_ORIGIN]

    index = {n.id: n for n in candidates}
    edges = _resolve(data.links, index)

    term = (search or "").strip()
    if term:
        seeds = {n.id for n in candidates if matches(n, term)}
        visible = set(seeds)
        for edge in edges:
            if edge.source.id in seeds:
                visible.add(edge.target.id)
            if edge.target.id in seeds:
                visible.add(edge.source.id)
        candidates = [n for n in candidates if n.id in visible]
        index = {n.id: n for n in candidates}
        edges = [e for e in edges if e.source.id in index and e.target.id in index]

    dropped = len(data.dangling_links())
    if dropped:
        logger.debug(f"ignoring {dropped} link(s) with missing endpoints")
    return Subgraph(nodes=list(candidates), edges=edges, index=index)
