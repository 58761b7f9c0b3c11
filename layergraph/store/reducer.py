"""Pure transitions of the edit state.

``reduce(state, action)`` never mutates ``state`` and never touches storage.
When an action is a no-op (unknown id, undo at the first entry, empty
selection) the same state object is returned, so callers can test
``new is old`` to skip persistence and re-rendering.
"""

from __future__ import annotations

import random
from dataclasses import replace
from typing import Any, Callable

from ..errors import EditError
from ..models import (
    DEFAULT_EVIDENCE_DETAIL,
    DEFAULT_LINK_STRENGTH,
    DEFAULT_RELATIONSHIP_TYPE,
    LAYER_INDUSTRY,
    LAYER_JOB,
    LAYER_KNOWLEDGE,
    LAYER_ORIGIN,
    LAYER_SKILL,
    GraphData,
    Link,
    Node,
    _coerce_layer,
)
from . import history
from .state import (
    ADD_LINK,
    ADD_NODE,
    DELETE_LINK,
    DELETE_NODE,
    DELETE_SELECTED,
    DESELECT_ALL,
    ENTER_EDIT_MODE,
    EXIT_EDIT_MODE,
    REDO,
    RESTORE_BACKUP,
    SAVE_STATE,
    SELECT_NODE,
    UNDO,
    UPDATE_LINK,
    UPDATE_NODE,
    EditAction,
    EditState,
    Mode,
)

ID_PREFIXES = {
    LAYER_INDUSTRY: "ind_edit_",
    LAYER_JOB: "job_edit_",
    LAYER_SKILL: "skill_edit_",
    LAYER_KNOWLEDGE: "know_edit_",
}
DEFAULT_ID_PREFIX = "node_edit_"


def generate_node_id(layer: Any, nodes: list[Node]) -> str:
    """Lowest unused ``{prefix}{NNN}`` id for ``layer``."""
    prefix = ID_PREFIXES.get(layer, DEFAULT_ID_PREFIX)
    existing = {n.id for n in nodes}
    counter = 1
    while f"{prefix}{counter:03d}" in existing:
        counter += 1
    return f"{prefix}{counter:03d}"


def _commit(state: EditState, data: GraphData, **changes: Any) -> EditState:
    entries, index = history.record(state.history, state.history_index, state.data, data)
    return replace(
        state,
        data=data,
        history=entries,
        history_index=index,
        has_unsaved_changes=True,
        **changes,
    )


def _enter_edit(state: EditState, action: EditAction) -> EditState:
    seed = action.payload.get("data")
    seed = seed if seed is not None else state.data
    return EditState(mode=Mode.EDIT, data=seed.clone(), backup=seed.clone())


def _exit_edit(state: EditState, action: EditAction) -> EditState:
    if action.payload.get("commit"):
        data = state.data
    else:
        data = state.backup if state.backup is not None else state.data
    return EditState(mode=Mode.VIEW, data=data)


def _select_node(state: EditState, action: EditAction) -> EditState:
    node_id = action.payload["node_id"]
    if state.data.get_node(node_id) is None:
        return state
    if node_id in state.selected_nodes:
        selected = tuple(s for s in state.selected_nodes if s != node_id)
    else:
        selected = state.selected_nodes + (node_id,)
    return replace(state, selected_nodes=selected)


def _deselect_all(state: EditState, action: EditAction) -> EditState:
    if not state.selected_nodes:
        return state
    return replace(state, selected_nodes=())


def _without_nodes(data: GraphData, doomed: set[str]) -> GraphData:
    return GraphData(
        nodes=[n for n in data.nodes if n.id not in doomed],
        links=[l for l in data.links if l.source not in doomed and l.target not in doomed],
        quaternary_relations=data.quaternary_relations,
    )


def _delete_node(state: EditState, action: EditAction) -> EditState:
    node_id = action.payload["node_id"]
    if state.data.get_node(node_id) is None:
        return state
    selected = tuple(s for s in state.selected_nodes if s != node_id)
    return _commit(state, _without_nodes(state.data, {node_id}), selected_nodes=selected)


def _delete_selected(state: EditState, action: EditAction) -> EditState:
    doomed = {s for s in state.selected_nodes if state.data.get_node(s) is not None}
    if not doomed:
        return _deselect_all(state, action)
    return _commit(state, _without_nodes(state.data, doomed), selected_nodes=())


def _add_node(state: EditState, action: EditAction) -> EditState:
    partial = dict(action.payload["node"])
    rng: random.Random = action.payload.get("rng") or random.Random()
    try:
        layer = _coerce_layer(partial.get("layer", LAYER_ORIGIN))
    except ValueError as e:
        raise EditError(str(e)) from e
    partial["layer"] = layer
    if not partial.get("id"):
        partial["id"] = generate_node_id(layer, state.data.nodes)
    elif state.data.get_node(str(partial["id"])) is not None:
        raise EditError(f"node id already exists: {partial['id']}")
    if partial.get("x") is None:
        partial["x"] = rng.random() * 800 + 100
    if partial.get("y") is None:
        partial["y"] = rng.random() * 600 + 100
    try:
        node = Node.from_dict(partial)
    except ValueError as e:
        raise EditError(str(e)) from e
    data = replace(state.data, nodes=[*state.data.nodes, node])
    return _commit(state, data)


def _update_node(state: EditState, action: EditAction) -> EditState:
    node_id = action.payload["node_id"]
    patch = {k: v for k, v in action.payload.get("patch", {}).items() if k != "id"}
    if state.data.get_node(node_id) is None:
        return state
    try:
        nodes = [n.merged(patch) if n.id == node_id else n for n in state.data.nodes]
    except ValueError as e:
        raise EditError(str(e)) from e
    return _commit(state, replace(state.data, nodes=nodes))


def _add_link(state: EditState, action: EditAction) -> EditState:
    partial = {k: v for k, v in action.payload["link"].items() if v is not None}
    record: dict[str, Any] = {
        "relationship_type": DEFAULT_RELATIONSHIP_TYPE,
        "strength": DEFAULT_LINK_STRENGTH,
        "evidence_detail": DEFAULT_EVIDENCE_DETAIL,
    }
    record.update(partial)
    try:
        link = Link.from_dict(record)
    except ValueError as e:
        raise EditError(str(e)) from e
    if state.data.get_link(link.id) is not None:
        raise EditError(f"link id already exists: {link.id}")
    # Endpoints are not checked here; the subgraph filter drops dangling links.
    data = replace(state.data, links=[*state.data.links, link])
    return _commit(state, data)


def _delete_link(state: EditState, action: EditAction) -> EditState:
    link_id = action.payload["link_id"]
    if state.data.get_link(link_id) is None:
        return state
    data = replace(state.data, links=[l for l in state.data.links if l.id != link_id])
    return _commit(state, data)


def _update_link(state: EditState, action: EditAction) -> EditState:
    link_id = action.payload["link_id"]
    patch = {k: v for k, v in action.payload.get("patch", {}).items() if k != "id"}
    if state.data.get_link(link_id) is None:
        return state
    try:
        links = [l.merged(patch) if l.id == link_id else l for l in state.data.links]
    except ValueError as e:
        raise EditError(str(e)) from e
    return _commit(state, replace(state.data, links=links))


def _move(delta: int) -> Callable[[EditState, EditAction], EditState]:
    def move(state: EditState, action: EditAction) -> EditState:
        index = history.step(state.history, state.history_index, delta)
        if index is None:
            return state
        data = state.history[index].clone()
        live = data.node_ids()
        return replace(
            state,
            data=data,
            history_index=index,
            has_unsaved_changes=True,
            selected_nodes=tuple(s for s in state.selected_nodes if s in live),
        )

    return move


def _save_state(state: EditState, action: EditAction) -> EditState:
    return replace(state, has_unsaved_changes=False, backup=state.data.clone())


def _restore_backup(state: EditState, action: EditAction) -> EditState:
    if state.backup is None or state.data.to_dict() == state.backup.to_dict():
        return state
    # Recorded like any edit so history[history_index] stays the current data.
    restored = _commit(state, state.backup.clone(), selected_nodes=())
    return replace(restored, has_unsaved_changes=False)


_HANDLERS: dict[str, Callable[[EditState, EditAction], EditState]] = {
    ENTER_EDIT_MODE: _enter_edit,
    EXIT_EDIT_MODE: _exit_edit,
    SELECT_NODE: _select_node,
    DESELECT_ALL: _deselect_all,
    DELETE_NODE: _delete_node,
    DELETE_SELECTED: _delete_selected,
    ADD_NODE: _add_node,
    UPDATE_NODE: _update_node,
    ADD_LINK: _add_link,
    DELETE_LINK: _delete_link,
    UPDATE_LINK: _update_link,
    UNDO: _move(-1),
    REDO: _move(+1),
    SAVE_STATE: _save_state,
    RESTORE_BACKUP: _restore_backup,
}


def reduce(state: EditState, action: EditAction) -> EditState:
    """Apply one action. Raises EditError if the action is rejected."""
    handler = _HANDLERS.get(action.type)
    if handler is None:
        raise EditError(f"unknown edit action: {action.type}")
    return handler(state, action)
