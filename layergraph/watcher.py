"""
File system watcher for the data directory and the persisted snapshot.

Observer callbacks run on watchdog's thread and only record pending paths.
The caller drains them with ``flush_pending`` between frames, so the reload
itself always happens on the main loop.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .persistence import SESSION_FILE, SNAPSHOT_FILE
from .sources import WATCHED_FILES

logger = logging.getLogger(__name__)


class GraphSourceHandler(FileSystemEventHandler):
    """
    Collects changes to graph source files.

    Key behaviors:
    - Only data-directory JSON files and the snapshot file are relevant
    - Rapid writes to the same file collapse into one pending entry
    - A path is released once it has been quiet for ``DEBOUNCE_SECONDS``
    """

    DEBOUNCE_SECONDS = 0.5

    def __init__(self, on_change: Callable[[set[Path]], None], *, relevant: frozenset[str] | None = None):
        super().__init__()
        self.on_change = on_change
        self.relevant = relevant if relevant is not None else WATCHED_FILES | {SNAPSHOT_FILE, SESSION_FILE}
        self.pending: dict[str, float] = {}
        self._lock = threading.Lock()

    def _is_relevant(self, path: str) -> bool:
        return Path(path).name in self.relevant

    def _touch(self, path: str) -> None:
        if not self._is_relevant(path):
            return
        with self._lock:
            self.pending[path] = time.time()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._touch(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._touch(event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._touch(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._touch(event.src_path)
        self._touch(event.dest_path)

    def flush_pending(self, now: float | None = None) -> set[Path]:
        """Release quiet paths and notify once for the batch."""
        now = time.time() if now is None else now
        with self._lock:
            ready = {p for p, stamp in self.pending.items() if now - stamp >= self.DEBOUNCE_SECONDS}
            for p in ready:
                del self.pending[p]
        if not ready:
            return set()
        paths = {Path(p) for p in ready}
        logger.debug(f"source change: {', '.join(sorted(p.name for p in paths))}")
        self.on_change(paths)
        return paths


def watch_sources(
    directories: list[Path],
    on_change: Callable[[set[Path]], None],
) -> tuple[Observer, GraphSourceHandler]:
    """
    Start watching ``directories`` (non-recursively).

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = GraphSourceHandler(on_change)
    observer = Observer()
    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
        observer.schedule(handler, str(directory), recursive=False)
    observer.start()
    return observer, handler


def run_watch_loop(
    directories: list[Path],
    on_change: Callable[[set[Path]], None],
    *,
    on_frame: Callable[[], None] | None = None,
    interval: float = 0.5,
) -> None:
    """
    Run until interrupted, flushing pending changes every ``interval``.

    ``on_frame`` runs after each flush on the same thread.
    """
    observer, handler = watch_sources(directories, on_change)
    try:
        while True:
            time.sleep(interval)
            handler.flush_pending()
            if on_frame is not None:
                on_frame()
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
