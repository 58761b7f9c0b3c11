"""Strip authoring markers from node text.

Source data wraps skill names as ``%@...@%`` and knowledge names as
``##@...@##``. Rendering shows only the inner text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Iterable

from .models import GraphData, Node

_SKILL_MARKER = re.compile(r"%@(.+?)@%")
_KNOWLEDGE_MARKER = re.compile(r"##@(.+?)@##")
_STRAY_MARKS = re.compile(r"[@#%]+")
_ANY_MARKER = re.compile(r"%@.+?@%|##@.+?@##|[@#%]")


def sanitize(text: Any) -> Any:
    """Remove marker wrappers and stray marker characters, then trim.

    Non-string input is returned unchanged. Idempotent.
    """
    if not isinstance(text, str) or not text:
        return text
    cleaned = _SKILL_MARKER.sub(r"\1", text)
    cleaned = _KNOWLEDGE_MARKER.sub(r"\1", cleaned)
    cleaned = _STRAY_MARKS.sub("", cleaned)
    return cleaned.strip()


def has_markers(text: Any) -> bool:
    if not isinstance(text, str) or not text:
        return False
    return _ANY_MARKER.search(text) is not None


def sanitize_node(node: Node) -> Node:
    return replace(node, name=sanitize(node.name), description=sanitize(node.description))


def sanitize_graph(data: GraphData) -> GraphData:
    """Clean every node's name and description; links pass through."""
    return GraphData(
        nodes=[sanitize_node(n) for n in data.nodes],
        links=list(data.links),
        quaternary_relations=list(data.quaternary_relations),
    )


def cleanup_patches(data: GraphData) -> dict[str, dict[str, Any]]:
    """Per-node ``{name, description}`` patches a cleanup pass would apply."""
    patches: dict[str, dict[str, Any]] = {}
    for node in data.nodes:
        patch: dict[str, Any] = {}
        name = sanitize(node.name)
        if name != node.name:
            patch["name"] = name
        description = sanitize(node.description)
        if description != node.description:
            patch["description"] = description
        if patch:
            patches[node.id] = patch
    return patches


@dataclass
class LayerUsage:
    total: int = 0
    with_markers: int = 0


@dataclass
class SymbolReport:
    """Marker usage across a node collection (diagnostics only)."""

    total: int = 0
    with_markers: int = 0
    by_layer: dict[int, LayerUsage] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "with_markers": self.with_markers,
            "by_layer": {
                str(layer): {"total": u.total, "with_markers": u.with_markers}
                for layer, u in sorted(self.by_layer.items())
            },
        }


def symbol_usage_report(nodes: Iterable[Node]) -> SymbolReport:
    report = SymbolReport()
    for node in nodes:
        usage = report.by_layer.setdefault(node.layer, LayerUsage())
        report.total += 1
        usage.total += 1
        if has_markers(node.name):
            report.with_markers += 1
            usage.with_markers += 1
    return report
