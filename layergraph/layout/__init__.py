"""Force-directed layout engine."""

from .forces import Body
from .layered import build_simulation, link_distance
from .simulation import Simulation

__all__ = ["Body", "Simulation", "build_simulation", "link_distance"]
