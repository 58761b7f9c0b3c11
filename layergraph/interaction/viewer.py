"""Interaction layer: hit-testing, hover, selection, drag and pan/zoom.

The viewer reads from an :class:`~layergraph.store.EditStore`, derives the
visible subgraph, drives a layout simulation one tick per frame, and routes
semantic changes (edit-mode selection) back through store commands. It never
mutates node or link records; positions live in the simulation.
"""

from __future__ import annotations

import logging
import math
import random
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping

from ..layout.layered import build_simulation
from ..layout.simulation import Simulation
from ..models import LAYER_INDUSTRY, LAYER_JOB, LAYER_KNOWLEDGE, LAYER_RESOURCE, LAYER_SKILL, JobPayload, Link, Node
from ..store import EditStore
from ..store.state import EditAction, EditState
from ..subgraph import ALL_LAYERS, Edge, Subgraph, filter_graph, parse_layer_selector
from . import styles
from .styles import LinkStyle, NodeStyle
from .viewport import Viewport

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 1400
DEFAULT_HEIGHT = 900
LINK_HIT_TOLERANCE = 4.0  # screen pixels


@dataclass
class SceneNode:
    id: str
    x: float
    y: float
    label: str
    layer: int
    decorative: bool
    style: NodeStyle


@dataclass
class SceneLink:
    id: str
    x1: float
    y1: float
    x2: float
    y2: float
    style: LinkStyle


@dataclass
class Scene:
    """Everything a renderer needs for one frame."""

    width: float
    height: float
    transform: str
    nodes: list[SceneNode] = field(default_factory=list)
    links: list[SceneLink] = field(default_factory=list)


def _segment_distance(px: float, py: float, ax: float, ay: float, bx: float, by: float) -> float:
    dx = bx - ax
    dy = by - ay
    length2 = dx * dx + dy * dy
    if length2 == 0:
        return math.hypot(px - ax, py - ay)
    t = max(0.0, min(1.0, ((px - ax) * dx + (py - ay) * dy) / length2))
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))


class Viewer:
    def __init__(
        self,
        store: EditStore,
        *,
        width: float = DEFAULT_WIDTH,
        height: float = DEFAULT_HEIGHT,
        emphasized: Iterable[str] | Callable[[Link], bool] = (),
        layer_colors: Mapping[int, str] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.width = width
        self.height = height
        if callable(emphasized):
            self._is_emphasized = emphasized
        else:
            ids = frozenset(emphasized)
            self._is_emphasized = lambda link: link.id in ids
        self.layer_colors = dict(styles.DEFAULT_LAYER_COLORS)
        self.layer_colors.update(layer_colors or {})
        self.rng = rng or random.Random()
        self.clock = clock
        self.viewport = Viewport()

        self.layer_filter: int | str = ALL_LAYERS
        self.search = ""
        self.selected_node_id: str | None = None
        self.selected_link_id: str | None = None
        self.hovered_id: str | None = None
        self.dragging_id: str | None = None
        self.playing = False

        self.subgraph = Subgraph()
        self.simulation: Simulation | None = None
        self._edges: dict[str, Edge] = {}
        self._node_base: dict[str, NodeStyle] = {}
        self._link_base: dict[str, LinkStyle] = {}
        self._node_style: dict[str, NodeStyle] = {}
        self._link_style: dict[str, LinkStyle] = {}
        self._reload: Callable[[], None] | None = None

        self._unsubscribe = store.subscribe(self._on_store_change)
        self.rebuild()

    def close(self) -> None:
        self._unsubscribe()

    # Derivation

    def rebuild(self) -> None:
        """Discard the current simulation and start one over the new subgraph."""
        previous = self.simulation.positions() if self.simulation is not None else None
        self.subgraph = filter_graph(self.store.data, self.layer_filter, self.search)
        self._edges = {e.id: e for e in self.subgraph.edges}
        self.simulation = build_simulation(
            self.subgraph, self.width, self.height, rng=self.rng, previous=previous
        )
        self.hovered_id = None
        self.dragging_id = None
        if self.selected_node_id not in self.subgraph.index:
            self.selected_node_id = None
        if self.selected_link_id not in self._edges:
            self.selected_link_id = None
        self._restyle()
        logger.debug(
            f"rebuilt layout: {len(self.subgraph.nodes)} nodes, {len(self.subgraph.edges)} links"
        )

    def _restyle(self) -> None:
        state = self.store.state
        self._node_base = {
            n.id: styles.base_node_style(n, edit_mode=state.is_edit_mode, selected=state.selected_nodes)
            for n in self.subgraph.nodes
        }
        self._link_base = {
            e.id: styles.base_link_style(e, emphasized=self._is_emphasized(e.link))
            for e in self.subgraph.edges
        }
        self._node_style = dict(self._node_base)
        self._link_style = dict(self._link_base)
        if self.hovered_id is not None:
            self._apply_hover(self.hovered_id)

    def _on_store_change(self, old: EditState, new: EditState, action: EditAction) -> None:
        if old.data is not new.data:
            self.rebuild()
        elif old.mode != new.mode or old.selected_nodes != new.selected_nodes:
            self._restyle()

    def request_reload(self, loader: Callable[[], None]) -> None:
        """Queue a data reload to run at the start of the next frame."""
        self._reload = loader

    @property
    def reload_pending(self) -> bool:
        return self._reload is not None

    # Frame loop

    def frame(self) -> bool:
        """One cooperative frame: pending reload, then at most one tick."""
        if self._reload is not None:
            loader, self._reload = self._reload, None
            loader()
        return self.simulation.step()

    def settle(self, max_ticks: int | None = None) -> int:
        return self.simulation.run(max_ticks)

    def toggle_animation(self) -> bool:
        if self.simulation.running:
            self.simulation.stop()
            self.playing = False
        else:
            self.simulation.play()
            self.playing = True
        return self.playing

    def reheat(self) -> None:
        self.simulation.reheat()

    # Filters

    def set_layer_filter(self, layer: int | str) -> None:
        selector = parse_layer_selector(layer)
        if selector == self.layer_filter:
            return
        self.layer_filter = selector
        self.rebuild()

    def set_search(self, term: str | None) -> None:
        term = term or ""
        if term == self.search:
            return
        self.search = term
        self.rebuild()

    # Hit testing

    def node_at(self, sx: float, sy: float) -> str | None:
        wx, wy = self.viewport.to_world(sx, sy)
        # Later nodes draw on top, so search back to front.
        for body in reversed(self.simulation.bodies):
            if body.node.is_decorative:
                continue
            radius = self._node_style[body.id].radius
            if math.hypot(wx - body.x, wy - body.y) <= radius:
                return body.id
        return None

    def link_at(self, sx: float, sy: float) -> str | None:
        wx, wy = self.viewport.to_world(sx, sy)
        best_id, best_d = None, math.inf
        for edge in self.subgraph.edges:
            a = self.simulation.body(edge.source.id)
            b = self.simulation.body(edge.target.id)
            d = _segment_distance(wx, wy, a.x, a.y, b.x, b.y)
            reach = max(self._link_style[edge.id].width / 2, LINK_HIT_TOLERANCE / self.viewport.k)
            if d <= reach and d < best_d:
                best_id, best_d = edge.id, d
        return best_id

    # Hover

    def hover(self, node_id: str | None) -> None:
        if node_id == self.hovered_id:
            return
        if self.hovered_id is not None:
            self._clear_hover()
        node = self.subgraph.index.get(node_id) if node_id is not None else None
        if node is None or node.is_decorative:
            return
        self.hovered_id = node_id
        self._apply_hover(node_id)

    def _apply_hover(self, node_id: str) -> None:
        node = self.subgraph.index[node_id]
        self._node_style[node_id] = styles.hover_node_style(node, self._node_base[node_id])
        for edge_id, edge in self._edges.items():
            self._link_style[edge_id] = styles.hover_link_style(
                edge, node_id, self._link_base[edge_id], self.layer_colors
            )

    def _clear_hover(self) -> None:
        self._node_style[self.hovered_id] = self._node_base[self.hovered_id]
        self._link_style = dict(self._link_base)
        self.hovered_id = None

    # Pointer input (screen coordinates)

    def pointer_move(self, sx: float, sy: float) -> None:
        if self.dragging_id is not None:
            wx, wy = self.viewport.to_world(sx, sy)
            self.simulation.drag_move(self.dragging_id, wx, wy)
            return
        self.hover(self.node_at(sx, sy))

    def pointer_down(self, sx: float, sy: float) -> str | None:
        node_id = self.node_at(sx, sy)
        if node_id is not None and self.simulation.drag_start(node_id):
            self.dragging_id = node_id
        return node_id

    def pointer_up(self, sx: float, sy: float) -> None:
        if self.dragging_id is not None:
            self.simulation.drag_end(self.dragging_id)
            self.dragging_id = None

    def click(self, sx: float, sy: float) -> None:
        node_id = self.node_at(sx, sy)
        if node_id is not None:
            self.click_node(node_id)
            return
        link_id = self.link_at(sx, sy)
        if link_id is not None:
            self.click_link(link_id)
            return
        self.click_background()

    def click_node(self, node_id: str) -> None:
        node = self.subgraph.index.get(node_id)
        if node is None or node.is_decorative:
            return
        if self.store.is_edit_mode:
            self.store.select_node(node_id)
            return
        self.selected_node_id = node_id
        self.selected_link_id = None

    def click_link(self, link_id: str) -> None:
        if link_id not in self._edges:
            return
        self.selected_link_id = link_id
        self.selected_node_id = None

    def click_background(self) -> None:
        self.selected_node_id = None
        self.selected_link_id = None

    def wheel(self, sx: float, sy: float, delta_y: float) -> None:
        self.viewport.wheel(sx, sy, delta_y)

    def pan(self, dx: float, dy: float) -> None:
        self.viewport.pan(dx, dy)

    # Read-out

    def node_style(self, node_id: str) -> NodeStyle:
        return self._node_style[node_id]

    def link_style(self, link_id: str, t: float | None = None) -> LinkStyle:
        style = self._link_style[link_id]
        if style.emphasized:
            now = self.clock() if t is None else t
            return LinkStyle(
                stroke=style.stroke,
                opacity=styles.pulse_opacity(now),
                width=style.width,
                dash=style.dash,
                marker_layer=style.marker_layer,
                emphasized=True,
            )
        return style

    def scene(self, t: float | None = None) -> Scene:
        scene = Scene(width=self.width, height=self.height, transform=self.viewport.svg_transform())
        for edge in self.subgraph.edges:
            a = self.simulation.body(edge.source.id)
            b = self.simulation.body(edge.target.id)
            scene.links.append(SceneLink(edge.id, a.x, a.y, b.x, b.y, self.link_style(edge.id, t)))
        for body in self.simulation.bodies:
            node = body.node
            scene.nodes.append(
                SceneNode(
                    id=body.id,
                    x=body.x,
                    y=body.y,
                    label=styles.node_label(node),
                    layer=node.layer,
                    decorative=node.is_decorative,
                    style=self._node_style[body.id],
                )
            )
        return scene

    def layer_stats(self) -> dict[int, int]:
        counts = Counter(n.layer for n in self.store.data.nodes)
        return {layer: counts.get(layer, 0) for layer in sorted(self.layer_colors)}

    def selected_node(self) -> Node | None:
        if self.selected_node_id is None:
            return None
        return self.subgraph.index.get(self.selected_node_id)

    def selected_link(self) -> Edge | None:
        if self.selected_link_id is None:
            return None
        return self._edges.get(self.selected_link_id)

    def detail(self) -> dict:
        """Detail-panel content for the current selection, or ``{}``."""
        if self.selected_node_id is not None:
            return self.node_detail(self.selected_node_id)
        edge = self.selected_link()
        if edge is None:
            return {}
        return {
            "link": edge.link.to_dict(),
            "source": edge.source.to_dict(),
            "target": edge.target.to_dict(),
            "explanation": link_explanation(edge.source, edge.target, edge.link),
        }

    def node_detail(self, node_id: str) -> dict:
        """Outgoing and incoming relations of a node over the full dataset."""
        index = self.store.data.node_index()
        node = index.get(node_id)
        if node is None:
            return {}
        outgoing = [l for l in self.store.data.links if l.source == node_id and l.target in index]
        incoming = [l for l in self.store.data.links if l.target == node_id and l.source in index]
        return {
            "node": node.to_dict(),
            "outgoing": [
                {"link": l.to_dict(), "explanation": link_explanation(node, index[l.target], l)}
                for l in outgoing
            ],
            "incoming": [
                {"link": l.to_dict(), "explanation": link_explanation(index[l.source], node, l)}
                for l in incoming
            ],
        }


def link_explanation(source: Node, target: Node, link: Link | None = None) -> str | None:
    """Evidence text for a relation, else a sentence chosen by the layer step."""
    if link is not None and isinstance(link.evidence_detail, str) and link.evidence_detail.strip():
        return link.evidence_detail
    if source.layer == LAYER_INDUSTRY and target.layer == LAYER_JOB:
        return (
            f"产业趋势 \"{source.name}\" 的发展，直接催生了对 \"{target.name}\" 岗位的市场需求，"
            "旨在抓住新兴的市场机遇。"
        )
    if source.layer == LAYER_JOB and target.layer == LAYER_SKILL:
        duty = ""
        if isinstance(source.payload, JobPayload) and source.payload.core_responsibilities:
            duty = f"的核心职责，如\"{source.payload.core_responsibilities[0]}\""
        return f"为了胜任 \"{source.name}\" 岗位{duty}，掌握 \"{target.name}\" 这项核心技能是必不可少的。"
    if source.layer == LAYER_SKILL and target.layer == LAYER_KNOWLEDGE:
        return f"掌握 \"{source.name}\" 技能需要扎实的 \"{target.name}\" 理论知识作为支撑。"
    if source.layer == LAYER_KNOWLEDGE and target.layer == LAYER_RESOURCE:
        return f"学习 \"{source.name}\" 知识可以通过 \"{target.name}\" 教学资源进行实践。"
    return None
