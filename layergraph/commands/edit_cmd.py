"""Edit commands - drive the edit store across CLI invocations.

Each invocation resumes the session from ``session.json``, applies one
command, and writes the session back. The canonical snapshot is only
written by ``save`` and ``commit``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from rich.console import Console
from rich.table import Table

from ..errors import EditError
from ..store import EditStore
from ..workspace import Workspace

logger = logging.getLogger(__name__)


def _session(ws: Workspace) -> EditStore:
    store = ws.open_store()
    if not store.is_edit_mode:
        raise EditError("no edit session; run `layergraph edit begin` first")
    return store


def _apply(ws: Workspace, command: Callable[[EditStore], Any], done: str, noop: str) -> int:
    """Run one store command inside the session and persist the session."""
    console = Console(stderr=True)
    store = _session(ws)
    result = command(store)
    changed = result if isinstance(result, bool) else True
    if not changed:
        console.print(f"[yellow]{noop}[/yellow]")
        return 1
    ws.snapshots.save_session(store.state)
    console.print(done.format(result=result), style="green")
    return 0


def run_begin(ws: Workspace) -> int:
    console = Console(stderr=True)
    store = ws.open_store()
    if store.is_edit_mode:
        console.print("[yellow]Already editing; use `edit commit` or `edit discard` first[/yellow]")
        return 1
    store.enter_edit()
    ws.snapshots.save_session(store.state)
    console.print(f"Editing {len(store.data.nodes)} nodes, {len(store.data.links)} links", style="green")
    return 0


def run_commit(ws: Workspace) -> int:
    console = Console(stderr=True)
    store = _session(ws)
    store.exit_edit(commit=True)
    if not ws.snapshots.save(store.data):
        console.print("[red]Could not write the snapshot; the edit session was kept[/red]")
        return 1
    ws.snapshots.clear_session()
    console.print(f"Committed {len(store.data.nodes)} nodes, {len(store.data.links)} links", style="green")
    return 0


def run_discard(ws: Workspace) -> int:
    console = Console(stderr=True)
    store = _session(ws)
    dirty = store.has_unsaved_changes
    store.exit_edit(commit=False)
    ws.snapshots.clear_session()
    console.print("Discarded unsaved edits" if dirty else "Left edit mode", style="green")
    return 0


def run_save(ws: Workspace) -> int:
    """Persist the working copy and make it the new restore point."""
    console = Console(stderr=True)
    store = _session(ws)
    if not ws.snapshots.save(store.data):
        console.print("[red]Could not write the snapshot; edits are kept in the session[/red]")
        return 1
    store.save_state()
    ws.snapshots.save_session(store.state)
    console.print("Saved", style="green")
    return 0


def run_status(ws: Workspace) -> int:
    console = Console()
    store = ws.open_store()
    state = store.state
    table = Table(title="Edit session")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Mode", state.mode.value)
    table.add_row("Nodes", str(len(state.data.nodes)))
    table.add_row("Links", str(len(state.data.links)))
    if state.is_edit_mode:
        table.add_row("Unsaved changes", "yes" if state.has_unsaved_changes else "no")
        table.add_row("History", f"{state.history_index + 1}/{len(state.history)}")
        table.add_row("Can undo", "yes" if state.can_undo else "no")
        table.add_row("Can redo", "yes" if state.can_redo else "no")
        table.add_row("Selected", ", ".join(state.selected_nodes) or "-")
    console.print(table)
    return 0


def run_select(ws: Workspace, node_ids: tuple[str, ...]) -> int:
    console = Console(stderr=True)
    store = _session(ws)
    missing = [n for n in node_ids if not store.select_node(n)]
    for node_id in missing:
        console.print(f"[yellow]No such node: {node_id}[/yellow]")
    ws.snapshots.save_session(store.state)
    console.print(f"Selected: {', '.join(store.selected_nodes) or '-'}")
    return 1 if missing else 0


def run_deselect(ws: Workspace) -> int:
    return _apply(ws, lambda s: s.deselect_all(), "Selection cleared", "Nothing selected")


def run_add_node(ws: Workspace, fields: dict[str, Any]) -> int:
    return _apply(ws, lambda s: s.add_node(fields), "Added node {result}", "")


def run_update_node(ws: Workspace, node_id: str, patch: dict[str, Any]) -> int:
    return _apply(
        ws,
        lambda s: s.update_node(node_id, patch),
        f"Updated node {node_id}",
        f"No such node: {node_id}",
    )


def run_delete_node(ws: Workspace, node_id: str) -> int:
    return _apply(
        ws,
        lambda s: s.delete_node(node_id),
        f"Deleted node {node_id} and its links",
        f"No such node: {node_id}",
    )


def run_delete_selected(ws: Workspace) -> int:
    def delete(store: EditStore) -> bool:
        count = len(store.selected_nodes)
        changed = store.delete_selected()
        if changed:
            logger.info(f"deleted {count} selected node(s)")
        return changed

    return _apply(ws, delete, "Deleted selected nodes", "Nothing selected")


def run_add_link(ws: Workspace, fields: dict[str, Any]) -> int:
    store = _session(ws)
    index = store.data.node_index()
    missing = [fields[k] for k in ("source", "target") if fields.get(k) not in index]
    if missing:
        raise EditError(f"unknown endpoint(s): {', '.join(map(str, missing))}")
    return _apply(ws, lambda s: s.add_link(fields), "Added link {result}", "")


def run_update_link(ws: Workspace, link_id: str, patch: dict[str, Any]) -> int:
    return _apply(
        ws,
        lambda s: s.update_link(link_id, patch),
        f"Updated link {link_id}",
        f"No such link: {link_id}",
    )


def run_delete_link(ws: Workspace, link_id: str) -> int:
    return _apply(
        ws,
        lambda s: s.delete_link(link_id),
        f"Deleted link {link_id}",
        f"No such link: {link_id}",
    )


def run_undo(ws: Workspace) -> int:
    return _apply(ws, lambda s: s.undo(), "Undone", "Nothing to undo")


def run_redo(ws: Workspace) -> int:
    return _apply(ws, lambda s: s.redo(), "Redone", "Nothing to redo")


def run_restore(ws: Workspace) -> int:
    return _apply(ws, lambda s: s.restore_backup(), "Restored the last saved state", "Nothing to restore")
