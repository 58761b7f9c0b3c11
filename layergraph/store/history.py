"""Bounded undo history.

``history[index]`` always equals the editor's current data. The first
mutation of a session records the pre-mutation snapshot as well, so undo
after any mutation restores the data as it was before that mutation.
"""

from __future__ import annotations

from ..models import GraphData

MAX_HISTORY = 50


def record(
    history: tuple[GraphData, ...],
    index: int,
    before: GraphData,
    after: GraphData,
    *,
    limit: int = MAX_HISTORY,
) -> tuple[tuple[GraphData, ...], int]:
    """Append a mutation, dropping any redo tail beyond ``index``.

    Returns the new history and cursor.
    """
    entries = list(history[: index + 1])
    if not entries:
        entries.append(before.clone())
    entries.append(after.clone())
    if len(entries) > limit:
        entries = entries[len(entries) - limit :]
    return tuple(entries), len(entries) - 1


def step(history: tuple[GraphData, ...], index: int, delta: int) -> int | None:
    """Cursor after moving by ``delta``, or None when out of bounds."""
    target = index + delta
    if not history or target < 0 or target > len(history) - 1:
        return None
    return target
