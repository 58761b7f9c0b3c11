"""Render command - lay out the visible subgraph and write SVG/HTML/JSON."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console

from ..interaction.viewer import Viewer
from ..render import to_html, to_json, to_svg
from ..workspace import Workspace

logger = logging.getLogger(__name__)

TITLE = "Layered knowledge graph"


def render_text(viewer: Viewer, ws: Workspace, fmt: str, *, title: str = TITLE) -> str:
    scene = viewer.scene(t=0.0)
    if fmt == "json":
        return to_json(scene)
    names = {layer: lc.name for layer, lc in ws.config.layers.items()}
    colors = {layer: c for layer, c in viewer.layer_colors.items() if layer in names}
    svg = to_svg(scene, title=title, layer_names=names, layer_colors=colors)
    if fmt == "html":
        return to_html(svg, title=title)
    return svg


def settle(viewer: Viewer, max_ticks: int | None) -> int:
    ticks = viewer.settle(max_ticks)
    logger.debug(f"layout ran {ticks} ticks (alpha={viewer.simulation.alpha:.4f})")
    return ticks


def run_render(
    ws: Workspace,
    *,
    fmt: str = "html",
    out: Path | None = None,
    layer: str = "all",
    search: str = "",
    max_ticks: int | None = None,
) -> int:
    """Render the current graph (or pending edit session) once."""
    console = Console(stderr=True)

    store = ws.open_store()
    viewer = ws.open_viewer(store)
    try:
        viewer.set_layer_filter(layer)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 2
    viewer.set_search(search)
    settle(viewer, max_ticks if max_ticks is not None else ws.config.max_ticks)

    text = render_text(viewer, ws, fmt)
    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
        console.print(
            f"Wrote {len(viewer.subgraph.nodes)} nodes, {len(viewer.subgraph.edges)} links to {out}",
            style="green",
        )
    else:
        print(text, end="" if text.endswith("\n") else "\n")
    return 0
