import pytest

from layergraph.models import GraphData, Node
from layergraph.sanitize import (
    cleanup_patches,
    has_markers,
    sanitize,
    sanitize_graph,
    symbol_usage_report,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("%@SQL@%", "SQL"),
        ("##@统计学@##", "统计学"),
        ("  plain  ", "plain"),
        ("a@b#c%d", "abcd"),
        ("掌握 %@Python@% 与 ##@线性代数@##", "掌握 Python 与 线性代数"),
        ("", ""),
    ],
)
def test_sanitize_strips_markers(raw: str, expected: str) -> None:
    assert sanitize(raw) == expected


def test_sanitize_is_idempotent() -> None:
    once = sanitize("%@@@x@%##")
    assert sanitize(once) == once


def test_sanitize_returns_non_strings_unchanged() -> None:
    assert sanitize(None) is None
    assert sanitize(42) == 42


def test_has_markers() -> None:
    assert has_markers("%@a@%")
    assert has_markers("50%")
    assert not has_markers("clean")
    assert not has_markers(None)


def test_sanitize_graph_cleans_name_and_description_only() -> None:
    node = Node(id="%@id@%", layer=3, name="%@SQL@%", description="##@d@##")
    data = GraphData(nodes=[node])
    cleaned = sanitize_graph(data)
    assert cleaned.nodes[0].name == "SQL"
    assert cleaned.nodes[0].description == "d"
    assert cleaned.nodes[0].id == "%@id@%"
    assert data.nodes[0].name == "%@SQL@%"


def test_cleanup_patches_lists_only_changed_fields() -> None:
    data = GraphData(
        nodes=[
            Node(id="a", layer=3, name="%@SQL@%", description="ok"),
            Node(id="b", layer=4, name="fine"),
        ]
    )
    assert cleanup_patches(data) == {"a": {"name": "SQL"}}


def test_symbol_usage_report_counts_by_layer() -> None:
    nodes = [
        Node(id="a", layer=3, name="%@SQL@%"),
        Node(id="b", layer=3, name="Excel"),
        Node(id="c", layer=4, name="##@统计@##"),
    ]
    report = symbol_usage_report(nodes)
    assert report.total == 3
    assert report.with_markers == 2
    assert report.by_layer[3].total == 2
    assert report.by_layer[3].with_markers == 1
    assert report.to_dict()["by_layer"]["4"] == {"total": 1, "with_markers": 1}
