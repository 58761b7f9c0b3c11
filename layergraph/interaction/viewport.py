"""Pan/zoom transform between screen and world coordinates."""

from __future__ import annotations

from dataclasses import dataclass

SCALE_MIN = 0.1
SCALE_MAX = 3.0
WHEEL_FACTOR = 1.15


@dataclass
class Viewport:
    """``screen = world * k + (x, y)``."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0
    scale_min: float = SCALE_MIN
    scale_max: float = SCALE_MAX

    def to_world(self, sx: float, sy: float) -> tuple[float, float]:
        return (sx - self.x) / self.k, (sy - self.y) / self.k

    def to_screen(self, wx: float, wy: float) -> tuple[float, float]:
        return wx * self.k + self.x, wy * self.k + self.y

    def pan(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def zoom_at(self, sx: float, sy: float, factor: float) -> None:
        """Scale by ``factor`` keeping the world point under (sx, sy) fixed."""
        k = min(self.scale_max, max(self.scale_min, self.k * factor))
        wx, wy = self.to_world(sx, sy)
        self.k = k
        self.x = sx - wx * k
        self.y = sy - wy * k

    def wheel(self, sx: float, sy: float, delta_y: float) -> None:
        if delta_y == 0:
            return
        self.zoom_at(sx, sy, WHEEL_FACTOR if delta_y < 0 else 1 / WHEEL_FACTOR)

    def reset(self) -> None:
        self.k = 1.0
        self.x = 0.0
        self.y = 0.0

    def svg_transform(self) -> str:
        return f"translate({self.x:.2f},{self.y:.2f}) scale({self.k:.4f})"
