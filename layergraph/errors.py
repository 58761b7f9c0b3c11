"""Exception types raised at the package's boundaries."""


class SnapshotError(ValueError):
    """Persisted or imported graph data could not be read."""


class EditError(ValueError):
    """An edit command was rejected and the state left unchanged."""
