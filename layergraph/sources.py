"""Load the static dataset from a data directory.

Each file holds a JSON array. Node files are concatenated in layer order,
then the merged graph is sanitized.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .errors import SnapshotError
from .models import GraphData
from .persistence import SnapshotStore
from .sanitize import sanitize_graph, symbol_usage_report

logger = logging.getLogger(__name__)

NODE_FILES = ("nodes_ind.json", "nodes_job.json", "nodes_skill.json", "nodes_know.json")
EXTRA_NODE_FILE = "nodes_extra.json"
LINK_FILE = "links.json"
QUATERNARY_FILE = "relationships_raw.json"

WATCHED_FILES = frozenset(NODE_FILES + (EXTRA_NODE_FILE, LINK_FILE, QUATERNARY_FILE))


def _read_array(path: Path, *, required: bool = True) -> list[Any]:
    if not path.exists():
        if required:
            raise SnapshotError(f"missing data file: {path}")
        return []
    try:
        value = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotError(f"{path.name} is not valid JSON: {e}") from e
    if not isinstance(value, list):
        raise SnapshotError(f"{path.name} must contain a JSON array")
    return value


def load_sources(data_dir: Path) -> GraphData:
    """Merge the data directory into one sanitized graph.

    Raises SnapshotError if a required file is missing or malformed.
    """
    data_dir = Path(data_dir)
    nodes: list[Any] = []
    for name in NODE_FILES:
        nodes.extend(_read_array(data_dir / name))
    nodes.extend(_read_array(data_dir / EXTRA_NODE_FILE, required=False))
    raw = {
        "nodes": nodes,
        "links": _read_array(data_dir / LINK_FILE),
        "quaternaryRelations": _read_array(data_dir / QUATERNARY_FILE, required=False),
    }
    try:
        unsanitized = GraphData.from_dict(raw)
    except (ValueError, TypeError, KeyError) as e:
        raise SnapshotError(f"invalid data in {data_dir}: {e}") from e
    report = symbol_usage_report(unsanitized.nodes)
    graph = sanitize_graph(unsanitized)
    logger.debug(
        f"loaded {len(graph.nodes)} nodes, {len(graph.links)} links from {data_dir}; "
        f"{report.with_markers}/{report.total} names carried markers"
    )
    return graph


def load_graph(data_dir: Path | None, snapshots: SnapshotStore) -> GraphData:
    """The persisted snapshot if there is one, else the static sources."""
    persisted = snapshots.load()
    if persisted is not None:
        logger.debug(f"using snapshot {snapshots.snapshot_path}")
        return persisted
    if data_dir is None:
        logger.info("no snapshot and no data directory; starting from an empty graph")
        return GraphData()
    return load_sources(data_dir)
