"""Holder that applies reducer transitions and notifies listeners."""

from __future__ import annotations

import logging
import random
from typing import Any, Callable

from ..models import GraphData
from . import state as actions
from .reducer import reduce
from .state import EditAction, EditState

logger = logging.getLogger(__name__)

Listener = Callable[[EditState, EditState, EditAction], None]


class EditStore:
    """Single mutable source of truth for graph data and edit mode.

    Persistence is not done here: listeners (or the caller) decide what to
    record after a transition succeeds.
    """

    def __init__(
        self,
        data: GraphData | None = None,
        *,
        state: EditState | None = None,
        rng: random.Random | None = None,
    ):
        self.state = state if state is not None else EditState(data=data or GraphData())
        self._rng = rng or random.Random()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: EditAction) -> bool:
        """Apply ``action``. Returns True if the state changed."""
        old = self.state
        new = reduce(old, action)
        if new is old:
            logger.debug(f"no-op edit action: {action.type}")
            return False
        self.state = new
        for listener in list(self._listeners):
            listener(old, new, action)
        return True

    # Read access

    @property
    def data(self) -> GraphData:
        return self.state.data

    @property
    def is_edit_mode(self) -> bool:
        return self.state.is_edit_mode

    @property
    def selected_nodes(self) -> tuple[str, ...]:
        return self.state.selected_nodes

    @property
    def has_unsaved_changes(self) -> bool:
        return self.state.has_unsaved_changes

    # Commands

    def enter_edit(self, seed: GraphData | None = None) -> bool:
        return self.dispatch(EditAction(actions.ENTER_EDIT_MODE, {"data": seed}))

    def exit_edit(self, commit: bool) -> bool:
        return self.dispatch(EditAction(actions.EXIT_EDIT_MODE, {"commit": commit}))

    def select_node(self, node_id: str) -> bool:
        return self.dispatch(EditAction(actions.SELECT_NODE, {"node_id": node_id}))

    def deselect_all(self) -> bool:
        return self.dispatch(EditAction(actions.DESELECT_ALL))

    def delete_node(self, node_id: str) -> bool:
        return self.dispatch(EditAction(actions.DELETE_NODE, {"node_id": node_id}))

    def delete_selected(self) -> bool:
        return self.dispatch(EditAction(actions.DELETE_SELECTED))

    def add_node(self, partial: dict[str, Any]) -> str:
        """Add a node and return its id."""
        self.dispatch(EditAction(actions.ADD_NODE, {"node": partial, "rng": self._rng}))
        return self.state.data.nodes[-1].id

    def update_node(self, node_id: str, patch: dict[str, Any]) -> bool:
        return self.dispatch(EditAction(actions.UPDATE_NODE, {"node_id": node_id, "patch": patch}))

    def add_link(self, partial: dict[str, Any]) -> str:
        """Add a link and return its id."""
        self.dispatch(EditAction(actions.ADD_LINK, {"link": partial}))
        return self.state.data.links[-1].id

    def delete_link(self, link_id: str) -> bool:
        return self.dispatch(EditAction(actions.DELETE_LINK, {"link_id": link_id}))

    def update_link(self, link_id: str, patch: dict[str, Any]) -> bool:
        return self.dispatch(EditAction(actions.UPDATE_LINK, {"link_id": link_id, "patch": patch}))

    def undo(self) -> bool:
        return self.dispatch(EditAction(actions.UNDO))

    def redo(self) -> bool:
        return self.dispatch(EditAction(actions.REDO))

    def save_state(self) -> bool:
        return self.dispatch(EditAction(actions.SAVE_STATE))

    def restore_backup(self) -> bool:
        return self.dispatch(EditAction(actions.RESTORE_BACKUP))

    def replace_data(self, data: GraphData) -> None:
        """Adopt new canonical data (import, reset) outside edit mode."""
        self.replace_state(EditState(data=data))

    def replace_state(self, state: EditState) -> None:
        """Adopt a state loaded from outside (a resumed session or a reload)."""
        old = self.state
        self.state = state
        for listener in list(self._listeners):
            listener(old, state, EditAction("replace_state"))
