"""Visual parameters for nodes and links.

Base styles are computed once per subgraph and cached by the viewer; hover
styles are derived from them and hover-exit restores the cached values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Mapping

from ..models import (
    LAYER_KNOWLEDGE,
    LAYER_ORIGIN,
    LAYER_RESOURCE,
    LAYER_SKILL,
    KnowledgePayload,
    Node,
    SkillPayload,
)
from ..subgraph import Edge

DEFAULT_LAYER_COLORS: dict[int, str] = {
    1: "#ef4444",
    2: "#3b82f6",
    3: "#10b981",
    4: "#8b5cf6",
    5: "#f59e0b",
}

LINK_COLOR = "#4b5563"
LINK_OPACITY = 0.3
LINK_DIM_OPACITY = 0.1
LINK_FALLBACK_COLOR = "#64748b"
ORIGIN_LINK_COLOR = "#8b5cf6"
KNOWLEDGE_FALLBACK_COLOR = "#8b5cf6"
RESOURCE_FALLBACK_COLOR = "#f59e0b"

EMPHASIS_COLOR = "#fde047"
EMPHASIS_OPACITY = 0.9
PULSE_LOW = 0.6
PULSE_HIGH = 1.0
PULSE_PERIOD = 3.0  # seconds, one fade out plus one fade in

NODE_STROKE = "#ffffff"
SELECTED_STROKE = "#ff4444"
SELECTED_STROKE_WIDTH = 4.0
UNSELECTED_DIM_OPACITY = 0.6
HOVER_STROKE_WIDTH = 3.0


@dataclass(frozen=True)
class NodeStyle:
    radius: float
    fill: str
    stroke: str
    stroke_width: float
    stroke_opacity: float
    opacity: float = 1.0


@dataclass(frozen=True)
class LinkStyle:
    stroke: str
    opacity: float
    width: float
    dash: str
    marker_layer: int | None = None
    emphasized: bool = False


def node_fill(node: Node) -> str:
    if node.is_decorative:
        return node.color
    if node.layer == LAYER_SKILL and isinstance(node.payload, SkillPayload) and node.payload.skill_type:
        return DEFAULT_LAYER_COLORS[LAYER_SKILL]
    if (
        node.layer == LAYER_KNOWLEDGE
        and isinstance(node.payload, KnowledgePayload)
        and node.payload.knowledge_type
    ):
        return DEFAULT_LAYER_COLORS[LAYER_KNOWLEDGE]
    return node.color


def base_node_style(node: Node, *, edit_mode: bool = False, selected: tuple[str, ...] = ()) -> NodeStyle:
    is_selected = edit_mode and node.id in selected
    if is_selected:
        stroke, stroke_width = SELECTED_STROKE, SELECTED_STROKE_WIDTH
    else:
        stroke, stroke_width = NODE_STROKE, (0.5 if node.is_decorative else 1.5)
    opacity = 1.0
    if edit_mode and selected and not is_selected:
        opacity = UNSELECTED_DIM_OPACITY
    return NodeStyle(
        radius=float(node.size),
        fill=node_fill(node),
        stroke=stroke,
        stroke_width=stroke_width,
        stroke_opacity=0.3 if node.is_decorative else 0.8,
        opacity=opacity,
    )


def hover_node_style(node: Node, base: NodeStyle) -> NodeStyle:
    grow = 4 if node.layer in (LAYER_KNOWLEDGE, LAYER_RESOURCE) else 8
    return replace(base, radius=base.radius + grow, stroke_width=HOVER_STROKE_WIDTH)


def _link_factor(edge: Edge, emphasized: bool) -> float:
    if edge.target.layer == LAYER_KNOWLEDGE:
        return 2.5 if emphasized else 1.5
    if edge.target.layer == LAYER_RESOURCE:
        return 2.0 if emphasized else 1.2
    if edge.source.layer == LAYER_ORIGIN:
        return 3.5
    return 3.5 if emphasized else 2.5


def link_dash(edge: Edge) -> str:
    if edge.target.layer == LAYER_KNOWLEDGE:
        return "4,2"
    if edge.target.layer == LAYER_RESOURCE:
        return "2,1"
    if edge.source.layer == LAYER_ORIGIN:
        return "10,5"
    return "8,4"


def base_link_style(edge: Edge, *, emphasized: bool = False) -> LinkStyle:
    marker = None
    if edge.target.layer not in (LAYER_KNOWLEDGE, LAYER_RESOURCE):
        marker = edge.target.layer
    return LinkStyle(
        stroke=EMPHASIS_COLOR if emphasized else LINK_COLOR,
        opacity=EMPHASIS_OPACITY if emphasized else LINK_OPACITY,
        width=math.sqrt(edge.link.weight) * _link_factor(edge, emphasized),
        dash=link_dash(edge),
        marker_layer=marker,
        emphasized=emphasized,
    )


def highlight_color(other: Node, layer_colors: Mapping[int, str]) -> str:
    """Color for a hovered link, taken from the endpoint opposite the hovered node."""
    if other.layer == LAYER_KNOWLEDGE:
        return other.color or KNOWLEDGE_FALLBACK_COLOR
    if other.layer == LAYER_RESOURCE:
        return other.color or RESOURCE_FALLBACK_COLOR
    if other.layer == LAYER_ORIGIN:
        return ORIGIN_LINK_COLOR
    return layer_colors.get(other.layer, LINK_FALLBACK_COLOR)


def hover_link_style(
    edge: Edge,
    hovered_id: str,
    base: LinkStyle,
    layer_colors: Mapping[int, str] = DEFAULT_LAYER_COLORS,
) -> LinkStyle:
    if base.emphasized:
        return base
    if edge.source.id == hovered_id or edge.target.id == hovered_id:
        return replace(
            base,
            stroke=highlight_color(edge.other(hovered_id), layer_colors),
            opacity=1.0,
            width=math.sqrt(edge.link.weight) * 4.5,
        )
    return replace(base, stroke=LINK_COLOR, opacity=LINK_DIM_OPACITY)


def pulse_opacity(t: float) -> float:
    """Emphasized-link opacity at time ``t``: linear 1.0 -> 0.6 -> 1.0 per period."""
    phase = (t % PULSE_PERIOD) / (PULSE_PERIOD / 2)
    return PULSE_LOW + (PULSE_HIGH - PULSE_LOW) * abs(1 - phase)


def node_label(node: Node) -> str:
    limit = int(node.size * 0.8)
    name = node.name if isinstance(node.name, str) else str(node.name)
    if len(name) > limit:
        return name[:limit] + "..."
    return name
