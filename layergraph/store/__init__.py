"""Edit store: edit-mode state machine with bounded undo history."""

from .history import MAX_HISTORY
from .reducer import generate_node_id, reduce
from .state import EditAction, EditState, Mode
from .store import EditStore

__all__ = [
    "MAX_HISTORY",
    "EditAction",
    "EditState",
    "EditStore",
    "Mode",
    "generate_node_id",
    "reduce",
]
