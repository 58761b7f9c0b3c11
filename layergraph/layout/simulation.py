"""Iterative force simulation with a decaying temperature (alpha).

The simulation is advanced cooperatively: a host calls :meth:`Simulation.step`
once per frame and each call performs at most one tick. :meth:`run` ticks
until alpha falls below ``alpha_min`` for headless use.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Iterable

from .forces import Body, Force

logger = logging.getLogger(__name__)

ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4
DRAG_ALPHA_TARGET = 0.3
PLAY_ALPHA = 0.3

_INITIAL_RADIUS = 10.0
_INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


class Simulation:
    def __init__(
        self,
        bodies: Iterable[Body],
        *,
        rng: random.Random | None = None,
        alpha: float = 1.0,
        alpha_min: float = ALPHA_MIN,
        alpha_decay: float = ALPHA_DECAY,
        alpha_target: float = 0.0,
        velocity_decay: float = VELOCITY_DECAY,
    ):
        self.rng = rng or random.Random()
        self.alpha = alpha
        self.alpha_min = alpha_min
        self.alpha_decay = alpha_decay
        self.alpha_target = alpha_target
        self.velocity_decay = velocity_decay
        self.bodies: list[Body] = list(bodies)
        self.forces: dict[str, Force] = {}
        self.running = True
        self.ticks = 0
        self._by_id = {b.id: b for b in self.bodies}
        self._initialize_bodies()

    def _initialize_bodies(self) -> None:
        for i, body in enumerate(self.bodies):
            body.index = i
            if body.fx is not None:
                body.x = body.fx
            if body.fy is not None:
                body.y = body.fy
            if body.x is None or body.y is None or math.isnan(body.x) or math.isnan(body.y):
                radius = _INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * _INITIAL_ANGLE
                body.x = radius * math.cos(angle)
                body.y = radius * math.sin(angle)
            if body.vx is None or math.isnan(body.vx) or body.vy is None or math.isnan(body.vy):
                body.vx = body.vy = 0.0

    def add_force(self, name: str, force: Force) -> "Simulation":
        force.initialize(self.bodies, self.rng)
        self.forces[name] = force
        return self

    def force(self, name: str) -> Force | None:
        return self.forces.get(name)

    def body(self, node_id: str) -> Body | None:
        return self._by_id.get(node_id)

    @property
    def settled(self) -> bool:
        return self.alpha < self.alpha_min

    def tick(self, iterations: int = 1) -> None:
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
            for force in self.forces.values():
                force(self.alpha)
            keep = 1 - self.velocity_decay
            for body in self.bodies:
                if body.fx is None:
                    body.vx *= keep
                    body.x += body.vx
                else:
                    body.x = body.fx
                    body.vx = 0.0
                if body.fy is None:
                    body.vy *= keep
                    body.y += body.vy
                else:
                    body.y = body.fy
                    body.vy = 0.0
            self.ticks += 1

    def step(self) -> bool:
        """Advance one frame. Returns False once the simulation is idle."""
        if not self.running:
            return False
        self.tick()
        if self.alpha < self.alpha_min:
            self.running = False
            logger.debug(f"simulation settled after {self.ticks} ticks")
        return True

    def run(self, max_ticks: int | None = None) -> int:
        """Tick until settled (or ``max_ticks``). Returns ticks performed."""
        if max_ticks is None:
            max_ticks = math.ceil(math.log(self.alpha_min) / math.log(1 - self.alpha_decay)) + 1
        done = 0
        while done < max_ticks and self.step():
            done += 1
        return done

    def restart(self, alpha: float | None = None) -> None:
        if alpha is not None:
            self.alpha = alpha
        self.running = True

    def reheat(self) -> None:
        """Maximum energy without rebuilding the body set."""
        self.restart(1.0)

    def stop(self) -> None:
        self.running = False

    def play(self) -> None:
        self.restart(PLAY_ALPHA)

    # Pins and dragging

    def pin(self, node_id: str, x: float, y: float) -> None:
        body = self._by_id.get(node_id)
        if body is not None:
            body.fx = x
            body.fy = y

    def unpin(self, node_id: str) -> None:
        body = self._by_id.get(node_id)
        if body is not None:
            body.fx = None
            body.fy = None

    def drag_start(self, node_id: str) -> bool:
        body = self._by_id.get(node_id)
        if body is None:
            return False
        self.alpha_target = DRAG_ALPHA_TARGET
        self.restart()
        self.pin(node_id, body.x, body.y)
        return True

    def drag_move(self, node_id: str, x: float, y: float) -> None:
        self.pin(node_id, x, y)

    def drag_end(self, node_id: str) -> None:
        self.alpha_target = 0.0
        self.unpin(node_id)

    def positions(self) -> dict[str, tuple[float, float]]:
        return {b.id: (b.x, b.y) for b in self.bodies}

    def find(self, x: float, y: float, radius: float = math.inf) -> Body | None:
        """Closest body to (x, y) within ``radius``."""
        best = None
        best_d2 = radius * radius
        for body in self.bodies:
            dx = x - body.x
            dy = y - body.y
            d2 = dx * dx + dy * dy
            if d2 < best_d2:
                best = body
                best_d2 = d2
        return best
