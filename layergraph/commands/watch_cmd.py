"""Watch command - re-render the output file whenever the sources change."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..errors import SnapshotError
from ..watcher import run_watch_loop
from ..workspace import Workspace
from .render_cmd import render_text, settle


def run_watch(
    ws: Workspace,
    out: Path,
    *,
    fmt: str = "html",
    layer: str = "all",
    search: str = "",
) -> None:
    """
    Keep ``out`` in sync with the data directory and the snapshot.

    This is a blocking command that runs until interrupted (Ctrl+C). The
    watchdog thread only queues a reload; loading, layout and writing happen
    on this thread between frames.
    """
    console = Console(stderr=True)

    store = ws.open_store()
    viewer = ws.open_viewer(store)
    viewer.set_layer_filter(layer)
    viewer.set_search(search)

    render_count = 0

    def write() -> None:
        nonlocal render_count
        settle(viewer, ws.config.max_ticks)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(render_text(viewer, ws, fmt), encoding="utf-8")
        render_count += 1
        timestamp = datetime.now().strftime("%H:%M:%S")
        console.print(f"[dim]{timestamp}[/dim] wrote {out}")

    def reload() -> None:
        try:
            fresh = ws.open_store()
        except SnapshotError as e:
            console.print(f"[yellow]Keeping previous graph: {e}[/yellow]")
            return
        store.replace_state(fresh.state)

    def on_change(paths: set[Path]) -> None:
        names = ", ".join(sorted(p.name for p in paths))
        console.print(f"[dim]changed:[/dim] {names}")
        viewer.request_reload(reload)

    def on_frame() -> None:
        if not viewer.reload_pending and not viewer.simulation.running:
            return
        viewer.frame()
        write()

    directories = [ws.snapshots.state_dir]
    if ws.data_dir is not None:
        directories.insert(0, ws.data_dir)

    console.print(f"[bold]Watching[/bold] {', '.join(str(d) for d in directories)}")
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    write()

    try:
        run_watch_loop(directories, on_change, on_frame=on_frame)
    except KeyboardInterrupt:
        pass
    console.print()
    console.print(f"[bold]Stopped.[/bold] Rendered {render_count} time(s).")
