import json
from pathlib import Path

import pytest

from layergraph.errors import SnapshotError
from layergraph.models import JobPayload
from layergraph.persistence import SnapshotStore
from layergraph.sources import load_graph, load_sources


def test_load_sources_merges_files(fixture_graph) -> None:
    assert len(fixture_graph.nodes) == 13
    assert len(fixture_graph.links) == 11
    assert [n.layer for n in fixture_graph.nodes[:2]] == [1, 1]
    assert fixture_graph.nodes[-1].id == "r_ani_02"
    assert len(fixture_graph.quaternary_relations) == 1


def test_load_sources_strips_markers(fixture_graph) -> None:
    assert fixture_graph.get_node("skill_01").name == "SQL"
    stats = fixture_graph.get_node("k_stat_01")
    assert stats.name == "统计学"
    assert stats.description == "统计学 基础"
    assert isinstance(fixture_graph.get_node("job_01").payload, JobPayload)


def test_optional_files_may_be_missing(data_dir: Path) -> None:
    (data_dir / "nodes_extra.json").unlink()
    (data_dir / "relationships_raw.json").unlink()
    graph = load_sources(data_dir)
    assert len(graph.nodes) == 11
    assert graph.quaternary_relations == []


def test_missing_required_file(data_dir: Path) -> None:
    (data_dir / "links.json").unlink()
    with pytest.raises(SnapshotError, match="missing data file"):
        load_sources(data_dir)


@pytest.mark.parametrize("content", ["{oops", '{"id": "x"}'])
def test_malformed_file(data_dir: Path, content: str) -> None:
    (data_dir / "nodes_job.json").write_text(content, encoding="utf-8")
    with pytest.raises(SnapshotError, match="nodes_job.json"):
        load_sources(data_dir)


def test_snapshot_takes_precedence(data_dir: Path, tmp_path: Path, tiny_graph) -> None:
    snapshots = SnapshotStore(tmp_path / "state")
    assert len(load_graph(data_dir, snapshots).nodes) == 13
    snapshots.save(tiny_graph)
    assert [n.id for n in load_graph(data_dir, snapshots).nodes] == ["o", "i", "j", "s", "k"]


def test_corrupt_snapshot_falls_back_to_sources(data_dir: Path, tmp_path: Path) -> None:
    snapshots = SnapshotStore(tmp_path / "state")
    snapshots.state_dir.mkdir()
    snapshots.snapshot_path.write_text(json.dumps({"nodes": "bad"}), encoding="utf-8")
    assert len(load_graph(data_dir, snapshots).nodes) == 13
    assert not snapshots.exists()


def test_no_sources_gives_empty_graph(tmp_path: Path) -> None:
    graph = load_graph(None, SnapshotStore(tmp_path / "state"))
    assert graph.nodes == []
    assert graph.links == []
