import pytest

from layergraph.models import (
    DEFAULT_NODE_SIZE,
    GraphData,
    JobPayload,
    KnowledgePayload,
    Link,
    Node,
    OriginPayload,
)


def test_node_payload_follows_layer() -> None:
    node = Node.from_dict({"id": "j", "layer": 2, "name": "Analyst", "department": "Data"})
    assert isinstance(node.payload, JobPayload)
    assert node.payload.department == "Data"
    assert isinstance(Node(id="o", layer=0).payload, OriginPayload)


def test_node_keeps_unknown_fields_and_drops_runtime_state() -> None:
    raw = {"id": "k", "layer": 4, "name": "Stats", "custom": {"a": 1}, "vx": 3.0, "fx": 10, "index": 2}
    node = Node.from_dict(raw)
    assert node.extra == {"custom": {"a": 1}}
    out = node.to_dict()
    assert "vx" not in out and "fx" not in out and "index" not in out
    assert out["custom"] == {"a": 1}


def test_node_position_hint_round_trips() -> None:
    node = Node.from_dict({"id": "n", "layer": 1, "x": 12.5, "y": 40})
    assert node.position_hint == (12.5, 40.0)
    assert node.to_dict()["x"] == 12.5


def test_node_defaults() -> None:
    node = Node.from_dict({"id": "n", "layer": 3, "size": "big"})
    assert node.size == DEFAULT_NODE_SIZE
    assert node.name == ""


def test_node_requires_id() -> None:
    with pytest.raises(ValueError):
        Node.from_dict({"layer": 1, "name": "nameless"})


def test_node_merged_changes_layer_and_payload() -> None:
    node = Node.from_dict({"id": "n", "layer": 3, "name": "x", "skill_type": "tech"})
    moved = node.merged({"layer": 4, "knowledge_type": "theory"})
    assert isinstance(moved.payload, KnowledgePayload)
    assert moved.payload.knowledge_type == "theory"
    assert moved.extra["skill_type"] == "tech"


def test_link_defaults() -> None:
    link = Link.from_dict({"source": {"id": "a"}, "target": "b"})
    assert link.id == "a-b"
    assert link.source == "a"
    assert link.weight == 1.0
    assert Link(source="a", target="b", strength=0.25).weight == 0.25


def test_graph_from_dict_requires_arrays() -> None:
    with pytest.raises(ValueError):
        GraphData.from_dict({"nodes": []})
    with pytest.raises(ValueError):
        GraphData.from_dict([])


def test_graph_helpers(tiny_graph: GraphData) -> None:
    assert tiny_graph.get_node("j").name == "job"
    assert tiny_graph.get_link("i-j").strength == 0.8
    assert tiny_graph.degree()["i"] == 2
    assert tiny_graph.layer_counts()[0] == 1
    assert tiny_graph.density() == pytest.approx(4 / 20)
    tiny_graph.links.append(Link(source="k", target="ghost"))
    assert [l.id for l in tiny_graph.dangling_links()] == ["k-ghost"]


def test_graph_clone_is_deep(tiny_graph: GraphData) -> None:
    copy = tiny_graph.clone()
    copy.nodes[0].name = "changed"
    assert tiny_graph.nodes[0].name == "origin"


def test_graph_to_dict_carries_quaternary_relations(fixture_graph: GraphData) -> None:
    out = fixture_graph.to_dict()
    assert out["quaternaryRelations"][0]["skill"] == "用户增长"
    again = GraphData.from_dict(out)
    assert len(again.nodes) == len(fixture_graph.nodes)
