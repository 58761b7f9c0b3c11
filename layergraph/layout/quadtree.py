"""Point quadtree used by the charge and collision forces."""

from __future__ import annotations

from typing import Callable, Iterable, Protocol

MAX_DEPTH = 48


class Point(Protocol):
    x: float
    y: float


class Quad:
    """A square cell. Leaves hold one or more coincident points."""

    __slots__ = ("x0", "y0", "x1", "y1", "children", "points", "value", "cx", "cy", "r")

    def __init__(self, x0: float, y0: float, x1: float, y1: float):
        self.x0 = x0
        self.y0 = y0
        self.x1 = x1
        self.y1 = y1
        self.children: list[Quad | None] | None = None
        self.points: list = []
        # Aggregates filled in by the forces (charge sum, centroid, radius).
        self.value = 0.0
        self.cx = 0.0
        self.cy = 0.0
        self.r = 0.0

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    def _child_index(self, x: float, y: float) -> int:
        xm = (self.x0 + self.x1) / 2
        ym = (self.y0 + self.y1) / 2
        return (1 if x >= xm else 0) | (2 if y >= ym else 0)

    def _child_bounds(self, i: int) -> tuple[float, float, float, float]:
        xm = (self.x0 + self.x1) / 2
        ym = (self.y0 + self.y1) / 2
        x0, x1 = (xm, self.x1) if i & 1 else (self.x0, xm)
        y0, y1 = (ym, self.y1) if i & 2 else (self.y0, ym)
        return x0, y0, x1, y1


class QuadTree:
    """Quadtree over points whose coordinates come from ``key``."""

    def __init__(
        self,
        points: Iterable[Point],
        key: Callable[[Point], tuple[float, float]] | None = None,
    ):
        self.key = key or (lambda p: (p.x, p.y))
        pts = list(points)
        self.root: Quad | None = None
        if not pts:
            return
        coords = [self.key(p) for p in pts]
        x0 = min(c[0] for c in coords)
        y0 = min(c[1] for c in coords)
        x1 = max(c[0] for c in coords)
        y1 = max(c[1] for c in coords)
        size = max(x1 - x0, y1 - y0, 1.0)
        self.root = Quad(x0, y0, x0 + size, y0 + size)
        for p, (x, y) in zip(pts, coords):
            self._insert(self.root, p, x, y, 0)

    def _insert(self, quad: Quad, point: Point, x: float, y: float, depth: int) -> None:
        while True:
            if quad.is_leaf:
                if not quad.points or depth >= MAX_DEPTH:
                    quad.points.append(point)
                    return
                ex, ey = self.key(quad.points[0])
                if ex == x and ey == y:
                    quad.points.append(point)
                    return
                # Split: push existing points down one level.
                existing = quad.points
                quad.points = []
                quad.children = [None, None, None, None]
                for p in existing:
                    px, py = self.key(p)
                    self._insert(self._child(quad, quad._child_index(px, py)), p, px, py, depth + 1)
            quad = self._child(quad, quad._child_index(x, y))
            depth += 1

    @staticmethod
    def _child(quad: Quad, i: int) -> Quad:
        child = quad.children[i]
        if child is None:
            child = Quad(*quad._child_bounds(i))
            quad.children[i] = child
        return child

    def visit(self, callback: Callable[[Quad], bool]) -> None:
        """Pre-order walk; children are skipped when ``callback`` returns True."""
        if self.root is None:
            return
        stack = [self.root]
        while stack:
            quad = stack.pop()
            if callback(quad) or quad.is_leaf:
                continue
            stack.extend(c for c in reversed(quad.children) if c is not None)

    def visit_after(self, callback: Callable[[Quad], None]) -> None:
        """Post-order walk; children are visited before their parent."""
        if self.root is None:
            return
        order: list[Quad] = []
        stack = [self.root]
        while stack:
            quad = stack.pop()
            order.append(quad)
            if not quad.is_leaf:
                stack.extend(c for c in quad.children if c is not None)
        for quad in reversed(order):
            callback(quad)
