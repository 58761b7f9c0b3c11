"""Data commands - stats, export/import, reset and marker cleanup."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..errors import EditError
from ..models import LAYER_NAMES, GraphData
from ..sanitize import cleanup_patches, symbol_usage_report
from ..sources import load_sources
from ..workspace import Workspace


def _stats_payload(data: GraphData, top: int) -> dict:
    counts = data.layer_counts()
    degree = data.degree()
    index = data.node_index()
    report = symbol_usage_report(data.nodes)
    return {
        "nodes": len(data.nodes),
        "links": len(data.links),
        "density": round(data.density(), 6),
        "dangling_links": len(data.dangling_links()),
        "decorative_nodes": sum(1 for n in data.nodes if n.is_decorative),
        "layers": {str(layer): counts.get(layer, 0) for layer in sorted(set(LAYER_NAMES) | set(counts))},
        "top_degree": [
            {"id": node_id, "name": index[node_id].name if node_id in index else None, "degree": d}
            for node_id, d in degree.most_common(top)
        ],
        "markers": report.to_dict(),
    }


def run_stats(ws: Workspace, *, top: int = 10, output_json: bool = False) -> int:
    """Summarize the current graph."""
    store = ws.open_store()
    payload = _stats_payload(store.data, top)

    if output_json:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    console = Console()
    table = Table(title="Graph summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Nodes", str(payload["nodes"]))
    table.add_row("Links", str(payload["links"]))
    table.add_row("Density", f"{payload['density']:.4f}")
    table.add_row("Decorative nodes", str(payload["decorative_nodes"]))
    if payload["dangling_links"]:
        table.add_row("Dangling links", f"[yellow]{payload['dangling_links']}[/yellow]")
    table.add_row("", "")
    for layer, count in payload["layers"].items():
        table.add_row(f"  {LAYER_NAMES.get(int(layer), 'layer ' + layer)}", str(count))
    markers = payload["markers"]
    if markers["with_markers"]:
        table.add_row("", "")
        table.add_row("Names with markers", f"{markers['with_markers']}/{markers['total']}")
    console.print(table)

    if payload["top_degree"]:
        deg = Table(title=f"Top {top} by degree")
        deg.add_column("id")
        deg.add_column("name")
        deg.add_column("degree", justify="right")
        for row in payload["top_degree"]:
            deg.add_row(row["id"], str(row["name"] or ""), str(row["degree"]))
        console.print(deg)

    if store.is_edit_mode:
        console.print("[dim]Counts reflect the pending edit session.[/dim]")
    return 0


def run_export(ws: Workspace, directory: Path) -> int:
    console = Console(stderr=True)
    data = ws.open_store().data
    path = ws.snapshots.export_graph(data, directory)
    console.print(f"Exported {len(data.nodes)} nodes, {len(data.links)} links to {path}", style="green")
    return 0


def run_import(ws: Workspace, path: Path) -> int:
    """Adopt an exported file as the canonical graph.

    Raises SnapshotError if the file is not a valid export; nothing changes then.
    """
    console = Console(stderr=True)
    data = ws.snapshots.import_graph(path)
    ws.snapshots.clear_session()
    console.print(f"Imported {len(data.nodes)} nodes, {len(data.links)} links from {path}", style="green")
    return 0


def run_reset(ws: Workspace) -> int:
    """Drop persisted edits so the static sources are used again."""
    console = Console(stderr=True)
    had_snapshot = ws.snapshots.exists()
    ws.snapshots.clear()
    if ws.data_dir is not None:
        data = load_sources(ws.data_dir)
        console.print(f"Reset to {len(data.nodes)} nodes, {len(data.links)} links from {ws.data_dir}", style="green")
    elif had_snapshot:
        console.print("Removed saved edits", style="green")
    else:
        console.print("[dim]Nothing to reset.[/dim]")
    return 0


def run_clean(ws: Workspace, *, dry_run: bool = False) -> int:
    """Strip markers from node text inside the edit session, one undoable edit per node."""
    console = Console(stderr=True)
    store = ws.open_store()
    if not store.is_edit_mode:
        raise EditError("no edit session; run `layergraph edit begin` first")

    patches = cleanup_patches(store.data)
    report = symbol_usage_report(store.data.nodes)
    console.print(f"{report.with_markers} of {report.total} node names carry markers")
    for layer, usage in sorted(report.by_layer.items()):
        if usage.with_markers:
            console.print(f"  {LAYER_NAMES.get(layer, layer)}: {usage.with_markers}/{usage.total}")
    if dry_run or not patches:
        console.print(f"[dim]{len(patches)} node(s) would change[/dim]")
        return 0

    cleaned = sum(1 for node_id, patch in patches.items() if store.update_node(node_id, patch))
    ws.snapshots.save_session(store.state)
    console.print(f"Cleaned {cleaned} node(s); use `layergraph edit undo` to revert", style="green")
    return 0
