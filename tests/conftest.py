"""Pytest configuration and fixtures."""

import random
import shutil
from pathlib import Path

import pytest

from layergraph.config import Config
from layergraph.models import GraphData, Link, Node
from layergraph.sources import load_sources
from layergraph.store import EditStore
from layergraph.workspace import Workspace


@pytest.fixture
def fixture_data_path() -> Path:
    """Path to the small fixture dataset."""
    return Path(__file__).parent / "fixtures" / "data"


@pytest.fixture
def fixture_graph(fixture_data_path: Path) -> GraphData:
    """Load and sanitize the fixture dataset."""
    return load_sources(fixture_data_path)


@pytest.fixture
def tiny_graph() -> GraphData:
    """Origin, one node per layer 1-4, a chain of links between them."""
    nodes = [
        Node(id="o", layer=0, name="origin", size=30),
        Node(id="i", layer=1, name="industry", size=20),
        Node(id="j", layer=2, name="job", size=18),
        Node(id="s", layer=3, name="skill", size=15),
        Node(id="k", layer=4, name="knowledge", size=12),
    ]
    links = [
        Link(source="o", target="i"),
        Link(source="i", target="j", strength=0.8),
        Link(source="j", target="s", strength=0.6),
        Link(source="s", target="k", strength=0.4),
    ]
    return GraphData(nodes=nodes, links=links)


@pytest.fixture
def edit_store(tiny_graph: GraphData) -> EditStore:
    """A store already in edit mode over ``tiny_graph``."""
    store = EditStore(tiny_graph, rng=random.Random(7))
    store.enter_edit()
    return store


@pytest.fixture
def data_dir(tmp_path: Path, fixture_data_path: Path) -> Path:
    """Writable copy of the fixture dataset."""
    target = tmp_path / "data"
    shutil.copytree(fixture_data_path, target)
    return target


@pytest.fixture
def workspace(tmp_path: Path, data_dir: Path) -> Workspace:
    config = Config(width=1000, height=800, seed=3, max_ticks=120)
    return Workspace.from_config(config, data_dir=data_dir, state_dir=tmp_path / "state")
