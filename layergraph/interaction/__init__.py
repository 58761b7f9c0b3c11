"""Hit-testing, hover, selection and pan/zoom over a laid-out subgraph."""

from .styles import DEFAULT_LAYER_COLORS, LinkStyle, NodeStyle
from .viewer import Scene, Viewer, link_explanation
from .viewport import Viewport

__all__ = [
    "DEFAULT_LAYER_COLORS",
    "LinkStyle",
    "NodeStyle",
    "Scene",
    "Viewer",
    "Viewport",
    "link_explanation",
]
