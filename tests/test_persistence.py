import json
from datetime import date
from pathlib import Path

import pytest

from layergraph.errors import SnapshotError
from layergraph.models import GraphData
from layergraph.persistence import SnapshotStore, export_filename
from layergraph.store import EditStore


@pytest.fixture
def snapshots(tmp_path: Path) -> SnapshotStore:
    return SnapshotStore(tmp_path / "state")


def test_load_without_snapshot(snapshots: SnapshotStore) -> None:
    assert not snapshots.exists()
    assert snapshots.load() is None


def test_save_then_load(snapshots: SnapshotStore, tiny_graph: GraphData) -> None:
    assert snapshots.save(tiny_graph)
    assert snapshots.exists()
    loaded = snapshots.load()
    assert loaded.to_dict() == tiny_graph.to_dict()
    assert not snapshots.snapshot_path.with_suffix(".json.tmp").exists()


def test_loaded_snapshot_is_sanitized(snapshots: SnapshotStore) -> None:
    snapshots.state_dir.mkdir(parents=True)
    snapshots.snapshot_path.write_text(
        json.dumps({"nodes": [{"id": "a", "layer": 3, "name": "%@SQL@%"}], "links": []}),
        encoding="utf-8",
    )
    assert snapshots.load().get_node("a").name == "SQL"


@pytest.mark.parametrize("content", ["{not json", '{"nodes": []}', "[1, 2]"])
def test_corrupt_snapshot_is_discarded(snapshots: SnapshotStore, content: str) -> None:
    snapshots.state_dir.mkdir(parents=True)
    snapshots.snapshot_path.write_text(content, encoding="utf-8")
    assert snapshots.load() is None
    assert not snapshots.exists()


def test_save_failure_returns_false(tmp_path: Path, tiny_graph: GraphData) -> None:
    blocker = tmp_path / "state"
    blocker.write_text("not a directory", encoding="utf-8")
    assert not SnapshotStore(blocker).save(tiny_graph)


def test_unreadable_snapshot_path_is_not_fatal(snapshots: SnapshotStore) -> None:
    snapshots.snapshot_path.mkdir(parents=True)
    assert snapshots.load() is None


def test_import_of_unreadable_path(snapshots: SnapshotStore, tmp_path: Path) -> None:
    with pytest.raises(SnapshotError):
        snapshots.import_graph(tmp_path)
    assert not snapshots.exists()


def test_export_filename_uses_date() -> None:
    assert export_filename(date(2024, 3, 9)) == "knowledge-graph-edited-2024-03-09.json"


def test_export_then_import(snapshots: SnapshotStore, fixture_graph: GraphData, tmp_path: Path) -> None:
    path = snapshots.export_graph(fixture_graph, tmp_path / "exports", day=date(2024, 1, 2))
    assert path.name == "knowledge-graph-edited-2024-01-02.json"
    assert "\n  " in path.read_text(encoding="utf-8")

    imported = snapshots.import_graph(path)
    assert len(imported.nodes) == len(fixture_graph.nodes)
    assert snapshots.load().to_dict() == imported.to_dict()


@pytest.mark.parametrize("content", ["{broken", '{"nodes": {}, "links": []}', '"text"'])
def test_bad_import_leaves_snapshot_alone(
    snapshots: SnapshotStore, tiny_graph: GraphData, tmp_path: Path, content: str
) -> None:
    snapshots.save(tiny_graph)
    before = snapshots.snapshot_path.read_text(encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text(content, encoding="utf-8")
    with pytest.raises(SnapshotError):
        snapshots.import_graph(bad)
    assert snapshots.snapshot_path.read_text(encoding="utf-8") == before


def test_import_missing_file(snapshots: SnapshotStore, tmp_path: Path) -> None:
    with pytest.raises(SnapshotError, match="not found"):
        snapshots.import_graph(tmp_path / "missing.json")


def test_session_round_trip(snapshots: SnapshotStore, edit_store: EditStore) -> None:
    edit_store.update_node("s", {"name": "renamed"})
    assert snapshots.save_session(edit_store.state)
    restored = snapshots.load_session()
    assert restored.is_edit_mode
    assert restored.data.get_node("s").name == "renamed"
    assert restored.history_index == edit_store.state.history_index


def test_corrupt_session_is_discarded(snapshots: SnapshotStore) -> None:
    snapshots.state_dir.mkdir(parents=True)
    snapshots.session_path.write_text('{"history": [], "history_index": 5}', encoding="utf-8")
    assert snapshots.load_session() is None
    assert not snapshots.session_path.exists()


def test_clear_removes_snapshot_and_session(snapshots: SnapshotStore, edit_store: EditStore) -> None:
    snapshots.save(edit_store.data)
    snapshots.save_session(edit_store.state)
    snapshots.clear()
    assert not snapshots.exists()
    assert snapshots.load_session() is None
