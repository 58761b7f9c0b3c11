"""Edit state and the actions that transition it."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..models import GraphData


class Mode(str, Enum):
    VIEW = "view"
    EDIT = "edit"


# Action types
ENTER_EDIT_MODE = "enter_edit_mode"
EXIT_EDIT_MODE = "exit_edit_mode"
SELECT_NODE = "select_node"
DESELECT_ALL = "deselect_all"
DELETE_NODE = "delete_node"
DELETE_SELECTED = "delete_selected"
ADD_NODE = "add_node"
UPDATE_NODE = "update_node"
ADD_LINK = "add_link"
DELETE_LINK = "delete_link"
UPDATE_LINK = "update_link"
UNDO = "undo"
REDO = "redo"
SAVE_STATE = "save_state"
RESTORE_BACKUP = "restore_backup"

MUTATING_ACTIONS = frozenset(
    {DELETE_NODE, DELETE_SELECTED, ADD_NODE, UPDATE_NODE, ADD_LINK, DELETE_LINK, UPDATE_LINK}
)


@dataclass(frozen=True)
class EditAction:
    type: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EditState:
    """Snapshot of the editor. Transitions always build a new instance."""

    mode: Mode = Mode.VIEW
    data: GraphData = field(default_factory=GraphData)
    selected_nodes: tuple[str, ...] = ()
    backup: GraphData | None = None
    history: tuple[GraphData, ...] = ()
    history_index: int = -1
    has_unsaved_changes: bool = False

    @property
    def is_edit_mode(self) -> bool:
        return self.mode is Mode.EDIT

    @property
    def can_undo(self) -> bool:
        return self.history_index > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self.history_index < len(self.history) - 1

    def is_selected(self, node_id: str) -> bool:
        return node_id in self.selected_nodes

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "selected_nodes": list(self.selected_nodes),
            "data": self.data.to_dict(),
            "backup": self.backup.to_dict() if self.backup is not None else None,
            "history": [h.to_dict() for h in self.history],
            "history_index": self.history_index,
            "has_unsaved_changes": self.has_unsaved_changes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EditState":
        backup = data.get("backup")
        history = tuple(GraphData.from_dict(h) for h in data.get("history", []))
        index = int(data.get("history_index", -1))
        valid = 0 <= index < len(history) if history else index == -1
        if not valid:
            raise ValueError(f"history_index {index} out of range for {len(history)} entries")
        return cls(
            mode=Mode(data.get("mode", Mode.VIEW.value)),
            data=GraphData.from_dict(data.get("data", {"nodes": [], "links": []})),
            selected_nodes=tuple(str(s) for s in data.get("selected_nodes", [])),
            backup=GraphData.from_dict(backup) if backup is not None else None,
            history=history,
            history_index=index,
            has_unsaved_changes=bool(data.get("has_unsaved_changes", False)),
        )
