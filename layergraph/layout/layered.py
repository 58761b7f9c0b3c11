"""Layer-banded force configuration for the knowledge graph.

Layers stack top to bottom: origin, industry, job, skill, knowledge,
resource. Decorative nodes get weak charge and weak vertical pull so they
scatter as background texture.
"""

from __future__ import annotations

import random
from typing import Mapping

from ..models import LAYER_ORIGIN, Node
from ..subgraph import Subgraph
from .forces import (
    Body,
    CenterForce,
    CollideForce,
    LinkForce,
    ManyBodyForce,
    PositionForce,
)
from .simulation import Simulation

LINK_STRENGTH = 0.15
ORIGIN_LINK_DISTANCE = 180.0
SAME_LAYER_LINK_DISTANCE = 100.0
CROSS_LAYER_BASE_DISTANCE = 150.0
CROSS_LAYER_STEP = 30.0

DECORATIVE_CHARGE = 50.0
CHARGE_BASE = 400.0
CHARGE_PER_SIZE = 10.0

DECORATIVE_PADDING = 5.0
NODE_PADDING = 15.0

ORIGIN_X_STRENGTH = 0.8
NODE_X_STRENGTH = 0.03

# Fraction of canvas height for each layer's band.
LAYER_BANDS = {0: 0.03, 1: 0.12, 2: 0.28, 3: 0.45, 4: 0.65, 5: 0.85}
DEFAULT_BAND = 0.80
DECORATIVE_JITTER = 0.12
NODE_JITTER = 0.02

ORIGIN_Y_STRENGTH = 1.5
NODE_Y_STRENGTH = 0.6
DECORATIVE_Y_STRENGTH = 0.08


def link_distance(source: Node, target: Node) -> float:
    if source.layer == LAYER_ORIGIN or target.layer == LAYER_ORIGIN:
        return ORIGIN_LINK_DISTANCE
    gap = abs(source.layer - target.layer)
    if gap:
        return CROSS_LAYER_BASE_DISTANCE + gap * CROSS_LAYER_STEP
    return SAME_LAYER_LINK_DISTANCE


def charge_strength(node: Node) -> float:
    """Signed charge; negative values repel."""
    if node.is_decorative:
        return -DECORATIVE_CHARGE
    return -(CHARGE_BASE + node.size * CHARGE_PER_SIZE)


def collision_radius(node: Node) -> float:
    return node.size + (DECORATIVE_PADDING if node.is_decorative else NODE_PADDING)


def x_strength(node: Node) -> float:
    return ORIGIN_X_STRENGTH if node.layer == LAYER_ORIGIN else NODE_X_STRENGTH


def band_y(node: Node, height: float) -> float:
    """Centre of the node's vertical band, before jitter."""
    return height * LAYER_BANDS.get(node.layer, DEFAULT_BAND)


def band_jitter(node: Node, height: float) -> float:
    return height * (DECORATIVE_JITTER if node.is_decorative else NODE_JITTER)


def y_strength(node: Node) -> float:
    if node.is_decorative:
        return DECORATIVE_Y_STRENGTH
    if node.layer == LAYER_ORIGIN:
        return ORIGIN_Y_STRENGTH
    return NODE_Y_STRENGTH


def build_simulation(
    subgraph: Subgraph,
    width: float,
    height: float,
    *,
    rng: random.Random | None = None,
    previous: Mapping[str, tuple[float, float]] | None = None,
) -> Simulation:
    """Build a fresh simulation over the visible subgraph.

    Bodies start from ``previous`` positions when known (so re-filtering does
    not scatter the layout), else from the node's position hint, else from
    the simulation's spiral placement.
    """
    rng = rng or random.Random()
    previous = previous or {}
    bodies = []
    for node in subgraph.nodes:
        x, y = previous.get(node.id) or node.position_hint or (None, None)
        bodies.append(Body(node.id, node, x, y))

    def jittered_band(body: Body) -> float:
        spread = band_jitter(body.node, height)
        return band_y(body.node, height) + (rng.random() - 0.5) * 2 * spread

    links = [(e.source.id, e.target.id, e) for e in subgraph.edges]
    sim = Simulation(bodies, rng=rng)
    sim.add_force(
        "link",
        LinkForce(links, lambda s, t, _: link_distance(s.node, t.node), strength=LINK_STRENGTH),
    )
    sim.add_force("charge", ManyBodyForce(lambda b: charge_strength(b.node)))
    sim.add_force("center", CenterForce(width / 2, height / 2))
    sim.add_force("collision", CollideForce(lambda b: collision_radius(b.node)))
    sim.add_force("x", PositionForce("x", width / 2, lambda b: x_strength(b.node)))
    sim.add_force("y", PositionForce("y", jittered_band, lambda b: y_strength(b.node)))
    return sim
