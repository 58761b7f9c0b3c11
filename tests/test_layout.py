"""Tests for the force simulation and the layer-banded configuration."""

from __future__ import annotations

import math
import random
from statistics import mean

import pytest

from layergraph.layout import build_simulation, link_distance
from layergraph.layout.forces import Body, CenterForce, CollideForce, ManyBodyForce, PositionForce
from layergraph.layout.layered import band_y, charge_strength, collision_radius, y_strength
from layergraph.layout.simulation import ALPHA_DECAY, DRAG_ALPHA_TARGET, Simulation
from layergraph.models import GraphData, Node
from layergraph.subgraph import filter_graph

WIDTH, HEIGHT = 1000, 800


def _sim(data: GraphData, seed: int = 11) -> Simulation:
    return build_simulation(filter_graph(data), WIDTH, HEIGHT, rng=random.Random(seed))


def test_alpha_decay_reaches_min_in_300_ticks() -> None:
    assert (1 - ALPHA_DECAY) ** 300 == pytest.approx(0.001)


def test_link_distance_rules() -> None:
    origin = Node(id="o", layer=0)
    industry = Node(id="i", layer=1)
    skill = Node(id="s", layer=3)
    other_skill = Node(id="s2", layer=3)
    assert link_distance(origin, skill) == 180
    assert link_distance(industry, skill) == 150 + 2 * 30
    assert link_distance(skill, other_skill) == 100


def test_per_node_parameters() -> None:
    node = Node(id="n", layer=2, size=20)
    deco = Node(id="d", layer=3, size=3, is_decorative=True)
    assert charge_strength(node) == -(400 + 200)
    assert charge_strength(deco) == -50
    assert collision_radius(node) == 35
    assert collision_radius(deco) == 8
    assert y_strength(deco) == 0.08
    assert y_strength(Node(id="o", layer=0)) == 1.5
    assert band_y(Node(id="x", layer=9), HEIGHT) == pytest.approx(0.8 * HEIGHT)


def test_bodies_without_hints_start_on_spiral() -> None:
    sim = Simulation([Body("a"), Body("b")])
    a, b = sim.bodies
    assert (a.x, a.y) != (b.x, b.y)
    assert math.hypot(a.x, a.y) == pytest.approx(10 * math.sqrt(0.5))


def test_position_hint_and_previous_positions_seed_bodies(tiny_graph: GraphData) -> None:
    tiny_graph.nodes[1].position_hint = (321.0, 123.0)
    sub = filter_graph(tiny_graph)
    sim = build_simulation(sub, WIDTH, HEIGHT, rng=random.Random(1), previous={"o": (5.0, 6.0)})
    assert (sim.body("o").x, sim.body("o").y) == (5.0, 6.0)
    assert (sim.body("i").x, sim.body("i").y) == (321.0, 123.0)


def test_layout_is_deterministic_for_a_seed(fixture_graph: GraphData) -> None:
    first = _sim(fixture_graph, seed=5)
    second = _sim(fixture_graph, seed=5)
    first.run()
    second.run()
    assert first.positions() == second.positions()


def test_run_stops_once_alpha_is_below_min(tiny_graph: GraphData) -> None:
    sim = _sim(tiny_graph)
    ticks = sim.run()
    assert 299 <= ticks <= 302
    assert sim.settled
    assert not sim.step()


def test_run_respects_max_ticks(tiny_graph: GraphData) -> None:
    sim = _sim(tiny_graph)
    assert sim.run(max_ticks=10) == 10
    assert sim.running


def test_layers_stack_top_to_bottom(tiny_graph: GraphData) -> None:
    sim = _sim(tiny_graph)
    sim.run()
    ys = [sim.body(node_id).y for node_id in ("o", "i", "j", "s", "k")]
    assert ys == sorted(ys)
    assert ys[0] < HEIGHT / 2


def test_fixture_layers_order_by_mean_height(fixture_graph: GraphData) -> None:
    sim = _sim(fixture_graph)
    sim.run()
    by_layer: dict[int, list[float]] = {}
    for body in sim.bodies:
        if not body.node.is_decorative:
            by_layer.setdefault(body.node.layer, []).append(body.y)
    means = [mean(by_layer[layer]) for layer in sorted(by_layer)]
    assert means == sorted(means)


def test_origin_stays_near_horizontal_center(fixture_graph: GraphData) -> None:
    sim = _sim(fixture_graph)
    sim.run()
    origin = sim.body("origin")
    assert abs(origin.x - WIDTH / 2) < WIDTH * 0.2


def test_band_jitter_is_fixed_per_body(tiny_graph: GraphData) -> None:
    sim = _sim(tiny_graph)
    force = sim.force("y")
    body = sim.body("s")
    target = force.target_of(body)
    sim.run(max_ticks=5)
    assert force.target_of(body) == target
    assert abs(target - 0.45 * HEIGHT) <= 0.02 * HEIGHT


def test_drag_pins_and_releases(tiny_graph: GraphData) -> None:
    sim = _sim(tiny_graph)
    sim.run()
    assert sim.drag_start("s")
    assert sim.alpha_target == DRAG_ALPHA_TARGET
    assert sim.running
    sim.drag_move("s", 500.0, 500.0)
    for _ in range(5):
        sim.step()
    body = sim.body("s")
    assert (body.x, body.y) == (500.0, 500.0)
    assert body.pinned
    sim.drag_end("s")
    assert not body.pinned
    assert sim.alpha_target == 0.0
    assert not sim.drag_start("missing")


def test_reheat_and_stop(tiny_graph: GraphData) -> None:
    sim = _sim(tiny_graph)
    sim.run()
    sim.reheat()
    assert sim.alpha == 1.0
    assert sim.running
    sim.stop()
    assert not sim.step()
    sim.play()
    assert sim.alpha == pytest.approx(0.3)
    assert sim.step()


def test_find_returns_closest_within_radius() -> None:
    sim = Simulation([Body("a", x=0.0, y=0.0), Body("b", x=100.0, y=0.0)])
    assert sim.find(90, 0).id == "b"
    assert sim.find(50, 50, radius=10) is None


def test_charge_pushes_bodies_apart() -> None:
    bodies = [Body("a", x=0.0, y=0.0), Body("b", x=10.0, y=0.0)]
    sim = Simulation(bodies, rng=random.Random(0))
    sim.add_force("charge", ManyBodyForce(-100.0))
    sim.tick()
    assert bodies[0].x < 0 < 10 < bodies[1].x


def test_collision_separates_overlapping_bodies() -> None:
    bodies = [Body("a", x=0.0, y=0.0), Body("b", x=2.0, y=0.0)]
    sim = Simulation(bodies, rng=random.Random(0))
    sim.add_force("collide", CollideForce(5.0))
    sim.tick()
    assert bodies[1].x - bodies[0].x > 2.0


def test_center_force_moves_mean() -> None:
    bodies = [Body("a", x=0.0, y=0.0), Body("b", x=10.0, y=10.0)]
    sim = Simulation(bodies)
    sim.add_force("center", CenterForce(100.0, 100.0))
    sim.tick()
    assert mean(b.x for b in bodies) == pytest.approx(100.0)
    assert mean(b.y for b in bodies) == pytest.approx(100.0)


def test_position_force_rejects_bad_axis() -> None:
    with pytest.raises(ValueError):
        PositionForce("z", 0.0)
