"""layergraph - layered knowledge graph layout, filtering and editing."""

__version__ = "0.3.0"
