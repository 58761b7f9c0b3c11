"""Resolved CLI context: configuration, storage and the loaded edit store."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path

from .config import Config
from .interaction.viewer import Viewer
from .models import GraphData
from .persistence import SnapshotStore
from .sources import load_graph
from .store import EditStore

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    config: Config
    data_dir: Path | None
    snapshots: SnapshotStore

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        data_dir: Path | None = None,
        state_dir: Path | None = None,
    ) -> "Workspace":
        return cls(
            config=config,
            data_dir=data_dir or config.data_dir,
            snapshots=SnapshotStore(state_dir or config.state_dir),
        )

    def rng(self) -> random.Random:
        return random.Random(self.config.seed)

    def load_data(self) -> GraphData:
        """Canonical graph: the snapshot if present, else the static sources."""
        return load_graph(self.data_dir, self.snapshots)

    def open_store(self) -> EditStore:
        """Resume the pending edit session if there is one."""
        session = self.snapshots.load_session()
        if session is not None:
            logger.debug(f"resuming edit session at history index {session.history_index}")
            return EditStore(state=session, rng=self.rng())
        return EditStore(self.load_data(), rng=self.rng())

    def open_viewer(self, store: EditStore, **kwargs) -> Viewer:
        return Viewer(
            store,
            width=self.config.width,
            height=self.config.height,
            emphasized=self.config.highlight_links,
            layer_colors=self.config.layer_colors,
            rng=self.rng(),
            **kwargs,
        )
