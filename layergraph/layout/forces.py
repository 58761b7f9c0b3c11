"""Forces for the velocity-Verlet simulation.

Each force is initialized with the simulation's bodies and random source,
then called once per tick with the current alpha. Forces either nudge body
velocities (link, charge, collision, x, y) or shift positions directly
(center).
"""

from __future__ import annotations

import math
import random
from typing import Callable, Sequence

from .quadtree import Quad, QuadTree


class Body:
    """Simulation-owned position record for one node."""

    __slots__ = ("id", "index", "node", "x", "y", "vx", "vy", "fx", "fy")

    def __init__(self, node_id: str, node=None, x: float | None = None, y: float | None = None):
        self.id = node_id
        self.index = 0
        self.node = node
        self.x = x
        self.y = y
        self.vx = 0.0
        self.vy = 0.0
        self.fx: float | None = None
        self.fy: float | None = None

    @property
    def pinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    def __repr__(self) -> str:
        return f"Body({self.id!r}, x={self.x:.1f}, y={self.y:.1f})"


def _jiggle(rng: random.Random) -> float:
    return (rng.random() - 0.5) * 1e-6


def _constant(value: float) -> Callable[[Body], float]:
    return lambda body: value


class Force:
    def initialize(self, bodies: Sequence[Body], rng: random.Random) -> None:
        self.bodies = bodies
        self.rng = rng

    def __call__(self, alpha: float) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class LinkForce(Force):
    """Springs pulling linked bodies toward a target distance.

    ``links`` are ``(source_id, target_id, payload)`` triples; ``distance``
    receives the two bodies and the payload.
    """

    def __init__(
        self,
        links: Sequence[tuple[str, str, object]],
        distance: Callable[[Body, Body, object], float],
        strength: float = 1.0,
        iterations: int = 1,
    ):
        self.links = list(links)
        self.distance = distance
        self.strength = strength
        self.iterations = iterations
        self._resolved: list[tuple[Body, Body, float, float]] = []

    def initialize(self, bodies: Sequence[Body], rng: random.Random) -> None:
        super().initialize(bodies, rng)
        by_id = {b.id: b for b in bodies}
        count: dict[str, int] = {}
        pairs = []
        for source_id, target_id, payload in self.links:
            source = by_id.get(source_id)
            target = by_id.get(target_id)
            if source is None or target is None:
                continue
            count[source.id] = count.get(source.id, 0) + 1
            count[target.id] = count.get(target.id, 0) + 1
            pairs.append((source, target, payload))
        self._resolved = []
        for source, target, payload in pairs:
            bias = count[source.id] / (count[source.id] + count[target.id])
            self._resolved.append((source, target, self.distance(source, target, payload), bias))

    def __call__(self, alpha: float) -> None:
        for _ in range(self.iterations):
            for source, target, distance, bias in self._resolved:
                x = target.x + target.vx - source.x - source.vx or _jiggle(self.rng)
                y = target.y + target.vy - source.y - source.vy or _jiggle(self.rng)
                length = math.sqrt(x * x + y * y)
                k = (length - distance) / length * alpha * self.strength
                x *= k
                y *= k
                target.vx -= x * bias
                target.vy -= y * bias
                source.vx += x * (1 - bias)
                source.vy += y * (1 - bias)


class ManyBodyForce(Force):
    """Barnes-Hut approximated n-body charge. Negative strength repels."""

    def __init__(
        self,
        strength: Callable[[Body], float] | float = -30.0,
        theta: float = 0.9,
        distance_min: float = 1.0,
        distance_max: float = math.inf,
    ):
        self.strength = strength if callable(strength) else _constant(strength)
        self.theta2 = theta * theta
        self.distance_min2 = distance_min * distance_min
        self.distance_max2 = distance_max * distance_max
        self._strengths: list[float] = []

    def initialize(self, bodies: Sequence[Body], rng: random.Random) -> None:
        super().initialize(bodies, rng)
        self._strengths = [self.strength(b) for b in bodies]

    def _accumulate(self, quad: Quad) -> None:
        if quad.is_leaf:
            quad.value = sum(self._strengths[p.index] for p in quad.points)
            if quad.points:
                quad.cx = quad.points[0].x
                quad.cy = quad.points[0].y
            return
        total = weight = cx = cy = 0.0
        for child in quad.children:
            if child is None or not child.value:
                continue
            w = abs(child.value)
            total += child.value
            weight += w
            cx += w * child.cx
            cy += w * child.cy
        quad.value = total
        if weight:
            quad.cx = cx / weight
            quad.cy = cy / weight

    def __call__(self, alpha: float) -> None:
        tree = QuadTree(self.bodies)
        tree.visit_after(self._accumulate)
        for body in self.bodies:
            tree.visit(lambda quad, body=body: self._apply(quad, body, alpha))

    def _apply(self, quad: Quad, body: Body, alpha: float) -> bool:
        if not quad.value:
            return True
        dx = quad.cx - body.x
        dy = quad.cy - body.y
        w = quad.width
        dist2 = dx * dx + dy * dy

        # Far enough away: treat the whole cell as a single charge.
        if w * w / self.theta2 < dist2:
            if dist2 < self.distance_max2:
                if dx == 0:
                    dx = _jiggle(self.rng)
                    dist2 += dx * dx
                if dy == 0:
                    dy = _jiggle(self.rng)
                    dist2 += dy * dy
                if dist2 < self.distance_min2:
                    dist2 = math.sqrt(self.distance_min2 * dist2)
                body.vx += dx * quad.value * alpha / dist2
                body.vy += dy * quad.value * alpha / dist2
            return True

        if not quad.is_leaf or dist2 >= self.distance_max2:
            return False

        for other in quad.points:
            if other is body:
                continue
            ox = other.x - body.x
            oy = other.y - body.y
            if ox == 0:
                ox = _jiggle(self.rng)
            if oy == 0:
                oy = _jiggle(self.rng)
            l2 = ox * ox + oy * oy
            if l2 < self.distance_min2:
                l2 = math.sqrt(self.distance_min2 * l2)
            k = self._strengths[other.index] * alpha / l2
            body.vx += ox * k
            body.vy += oy * k
        return True


class CollideForce(Force):
    """Keeps bodies at least ``radius(a) + radius(b)`` apart."""

    def __init__(self, radius: Callable[[Body], float] | float = 1.0, strength: float = 1.0, iterations: int = 1):
        self.radius = radius if callable(radius) else _constant(radius)
        self.strength = strength
        self.iterations = iterations
        self._radii: list[float] = []

    def initialize(self, bodies: Sequence[Body], rng: random.Random) -> None:
        super().initialize(bodies, rng)
        self._radii = [self.radius(b) for b in bodies]

    def _prepare(self, quad: Quad) -> None:
        if quad.is_leaf:
            quad.r = max((self._radii[p.index] for p in quad.points), default=0.0)
        else:
            quad.r = max((c.r for c in quad.children if c is not None), default=0.0)

    def __call__(self, alpha: float) -> None:
        for _ in range(self.iterations):
            tree = QuadTree(self.bodies, key=lambda b: (b.x + b.vx, b.y + b.vy))
            tree.visit_after(self._prepare)
            for body in self.bodies:
                ri = self._radii[body.index]
                xi = body.x + body.vx
                yi = body.y + body.vy
                tree.visit(lambda quad, body=body, ri=ri, xi=xi, yi=yi: self._apply(quad, body, ri, xi, yi))

    def _apply(self, quad: Quad, body: Body, ri: float, xi: float, yi: float) -> bool:
        reach = ri + quad.r
        if not quad.is_leaf:
            return (
                quad.x0 > xi + reach
                or quad.x1 < xi - reach
                or quad.y0 > yi + reach
                or quad.y1 < yi - reach
            )
        for other in quad.points:
            if other.index <= body.index:
                continue
            rj = self._radii[other.index]
            r = ri + rj
            x = xi - other.x - other.vx
            y = yi - other.y - other.vy
            l2 = x * x + y * y
            if l2 >= r * r:
                continue
            if x == 0:
                x = _jiggle(self.rng)
                l2 += x * x
            if y == 0:
                y = _jiggle(self.rng)
                l2 += y * y
            length = math.sqrt(l2)
            k = (r - length) / length * self.strength
            x *= k
            y *= k
            share = rj * rj / (ri * ri + rj * rj) if (ri or rj) else 0.5
            body.vx += x * share
            body.vy += y * share
            other.vx -= x * (1 - share)
            other.vy -= y * (1 - share)
        return True


class CenterForce(Force):
    """Translates all bodies so their mean position sits on (x, y)."""

    def __init__(self, x: float = 0.0, y: float = 0.0, strength: float = 1.0):
        self.x = x
        self.y = y
        self.strength = strength

    def __call__(self, alpha: float) -> None:
        if not self.bodies:
            return
        n = len(self.bodies)
        sx = sum(b.x for b in self.bodies) / n - self.x
        sy = sum(b.y for b in self.bodies) / n - self.y
        for body in self.bodies:
            body.x -= sx * self.strength
            body.y -= sy * self.strength


class PositionForce(Force):
    """Pulls each body toward a per-body target on one axis."""

    def __init__(
        self,
        axis: str,
        target: Callable[[Body], float] | float,
        strength: Callable[[Body], float] | float = 0.1,
    ):
        if axis not in ("x", "y"):
            raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")
        self.axis = axis
        self.target = target if callable(target) else _constant(target)
        self.strength = strength if callable(strength) else _constant(strength)
        self._targets: list[float] = []
        self._strengths: list[float] = []

    def initialize(self, bodies: Sequence[Body], rng: random.Random) -> None:
        super().initialize(bodies, rng)
        # Targets are evaluated once so random jitter stays fixed per body.
        self._targets = [self.target(b) for b in bodies]
        self._strengths = [self.strength(b) for b in bodies]

    def target_of(self, body: Body) -> float:
        return self._targets[body.index]

    def __call__(self, alpha: float) -> None:
        if self.axis == "x":
            for body in self.bodies:
                body.vx += (self._targets[body.index] - body.x) * self._strengths[body.index] * alpha
        else:
            for body in self.bodies:
                body.vy += (self._targets[body.index] - body.y) * self._strengths[body.index] * alpha
