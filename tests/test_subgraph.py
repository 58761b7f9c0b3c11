import pytest

from layergraph.models import GraphData, Link
from layergraph.subgraph import ALL_LAYERS, filter_graph, matches, parse_layer_selector


def _ids(sub) -> set[str]:
    return {n.id for n in sub.nodes}


def test_all_layers_keeps_everything(fixture_graph: GraphData) -> None:
    sub = filter_graph(fixture_graph)
    assert len(sub.nodes) == len(fixture_graph.nodes)
    assert len(sub.edges) == len(fixture_graph.links)


def test_layer_filter_keeps_layer_and_origin(fixture_graph: GraphData) -> None:
    sub = filter_graph(fixture_graph, layer=3)
    assert _ids(sub) == {"origin", "skill_01", "skill_02", "skill_03", "deco_01"}
    # No link in the fixture joins two of those nodes directly.
    assert sub.edges == []


def test_layer_filter_accepts_digit_strings(fixture_graph: GraphData) -> None:
    assert _ids(filter_graph(fixture_graph, layer="1")) == {"origin", "ind_01", "ind_02"}
    assert len(filter_graph(fixture_graph, layer="1").edges) == 2


def test_search_expands_one_hop(fixture_graph: GraphData) -> None:
    sub = filter_graph(fixture_graph, search="aarrr")
    assert _ids(sub) == {"k_jjj_49", "skill_02", "r_ani_02"}
    assert {e.id for e in sub.edges} == {"skill_02-k_jjj_49", "k_jjj_49-r_ani_02"}


def test_search_matches_keywords(fixture_graph: GraphData) -> None:
    sub = filter_graph(fixture_graph, search="海盗")
    assert "k_jjj_49" in _ids(sub)


def test_search_runs_within_layer_filter(fixture_graph: GraphData) -> None:
    sub = filter_graph(fixture_graph, layer=4, search="AARRR")
    assert _ids(sub) == {"k_jjj_49"}


def test_blank_search_means_no_search(fixture_graph: GraphData) -> None:
    assert len(filter_graph(fixture_graph, search="   ").nodes) == len(fixture_graph.nodes)


def test_search_without_matches_is_empty(fixture_graph: GraphData) -> None:
    sub = filter_graph(fixture_graph, search="no such thing")
    assert sub.nodes == []
    assert sub.edges == []


def test_dangling_links_are_dropped(tiny_graph: GraphData) -> None:
    tiny_graph.links.append(Link(source="k", target="ghost"))
    sub = filter_graph(tiny_graph)
    assert "k-ghost" not in {e.id for e in sub.edges}
    assert len(sub.edges) == 4


def test_edges_resolve_to_nodes(tiny_graph: GraphData) -> None:
    sub = filter_graph(tiny_graph)
    edge = sub.edges_of("j")[0]
    assert edge.source.id == "i"
    assert edge.other("i").id == "j"
    assert sub.index["k"].name == "knowledge"


def test_parse_layer_selector() -> None:
    assert parse_layer_selector(None) == ALL_LAYERS
    assert parse_layer_selector("all") == ALL_LAYERS
    assert parse_layer_selector("2") == 2
    with pytest.raises(ValueError):
        parse_layer_selector("skills")
    with pytest.raises(ValueError):
        parse_layer_selector(True)


def test_matches_is_case_insensitive(fixture_graph: GraphData) -> None:
    node = fixture_graph.get_node("skill_01")
    assert node.name == "SQL"
    assert matches(node, "sql")
