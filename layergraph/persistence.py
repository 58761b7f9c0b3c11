"""
Durable local storage for the edited graph.

Layout under the state directory:

    .layergraph/graph.json      canonical snapshot {nodes, links}
    .layergraph/session.json    serialized edit session (mode, history, ...)

The snapshot is the single durable key. It is read once at startup; a file
that cannot be parsed is removed so the next start falls back to the static
sources. Writes go through a temp file and rename.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

from .errors import SnapshotError
from .models import GraphData
from .sanitize import sanitize_graph
from .store.state import EditState

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = ".layergraph"
SNAPSHOT_FILE = "graph.json"
SESSION_FILE = "session.json"
EXPORT_PREFIX = "knowledge-graph-edited"


def export_filename(day: date | None = None) -> str:
    """``knowledge-graph-edited-YYYY-MM-DD.json`` for ``day`` (default today)."""
    day = day or date.today()
    return f"{EXPORT_PREFIX}-{day.isoformat()}.json"


def parse_graph(raw: Any) -> GraphData:
    """Validate and sanitize decoded JSON. Raises SnapshotError."""
    try:
        data = GraphData.from_dict(raw)
    except (ValueError, TypeError, KeyError) as e:
        raise SnapshotError(f"invalid graph data: {e}") from e
    return sanitize_graph(data)


def _write_atomic(path: Path, payload: Any, *, indent: int | None = None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    temp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=indent), encoding="utf-8")
    temp_path.replace(path)



def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"could not remove {path}: {e}")


class SnapshotStore:
    """Reads and writes the graph snapshot and edit session."""

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)
        self.snapshot_path = self.state_dir / SNAPSHOT_FILE
        self.session_path = self.state_dir / SESSION_FILE

    # Snapshot

    def exists(self) -> bool:
        return self.snapshot_path.exists()

    def load(self) -> GraphData | None:
        """
        Load the persisted snapshot.

        Returns:
            The sanitized graph, or None if there is no usable snapshot. A
            corrupt snapshot is deleted and logged.
        """
        if not self.snapshot_path.exists():
            return None
        try:
            raw = json.loads(self.snapshot_path.read_text(encoding="utf-8"))
            return parse_graph(raw)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError, SnapshotError) as e:
            logger.warning(f"discarding unreadable snapshot {self.snapshot_path}: {e}")
            _discard(self.snapshot_path)
            return None

    def save(self, data: GraphData) -> bool:
        """
        Persist ``data`` as the canonical snapshot.

        Returns:
            False if the write failed; the in-memory graph is unaffected.
        """
        try:
            _write_atomic(self.snapshot_path, data.to_dict())
        except OSError as e:
            logger.error(f"failed to save snapshot {self.snapshot_path}: {e}")
            return False
        logger.debug(f"saved snapshot: {len(data.nodes)} nodes, {len(data.links)} links")
        return True

    def clear(self) -> None:
        """Remove the snapshot and any pending session."""
        self.snapshot_path.unlink(missing_ok=True)
        self.session_path.unlink(missing_ok=True)

    # Export / import

    def export_graph(self, data: GraphData, directory: Path, *, day: date | None = None) -> Path:
        """Write a pretty-printed export into ``directory`` and return its path."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / export_filename(day)
        path.write_text(json.dumps(data.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        return path

    def import_graph(self, path: Path) -> GraphData:
        """
        Read, validate and sanitize an exported file, then persist it.

        Raises:
            SnapshotError: the file is missing, not JSON, or not a graph.
                Nothing is persisted in that case.
        """
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise SnapshotError(f"import file not found: {path}") from e
        except OSError as e:
            raise SnapshotError(f"cannot read import file {path}: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SnapshotError(f"import file is not valid JSON: {e}") from e
        data = parse_graph(raw)
        self.save(data)
        return data

    # Edit session

    def load_session(self) -> EditState | None:
        if not self.session_path.exists():
            return None
        try:
            raw = json.loads(self.session_path.read_text(encoding="utf-8"))
            return EditState.from_dict(raw)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError, ValueError, TypeError, KeyError) as e:
            logger.warning(f"discarding unreadable edit session {self.session_path}: {e}")
            _discard(self.session_path)
            return None

    def save_session(self, state: EditState) -> bool:
        try:
            _write_atomic(self.session_path, state.to_dict())
        except OSError as e:
            logger.error(f"failed to save edit session {self.session_path}: {e}")
            return False
        return True

    def clear_session(self) -> None:
        self.session_path.unlink(missing_ok=True)
