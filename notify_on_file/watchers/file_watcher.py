"""File system watchers backed by watchfiles."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from watchfiles import Change, awatch

from ..host.base import (
    Disposable,
    FileEventSource,
    FileListener,
    FileSystemWatcher,
    subscribe,
)
from ..models import FileEventType
from .watch_pattern import WatchPattern

logger = logging.getLogger(__name__)

_CHANGE_TYPES = {
    Change.added: FileEventType.CREATED,
    Change.modified: FileEventType.CHANGED,
    Change.deleted: FileEventType.DELETED,
}


class WatchfilesWatcher(FileSystemWatcher):
    """Watches the roots of one WatchPattern and calls listeners per file event.

    Features:
    - One watchfiles loop over all roots of the pattern
    - Glob filtering relative to the root the file lives under
    - Ignored event types are dropped before any listener is consulted
    """

    def __init__(
        self,
        pattern: WatchPattern,
        ignore_create: bool = False,
        ignore_change: bool = False,
        ignore_delete: bool = False,
        step_ms: int = 50,
        debounce_ms: int = 200,
    ):
        self.pattern = pattern
        self.step_ms = step_ms
        self.debounce_ms = debounce_ms
        self._ignored: set[FileEventType] = set()
        if ignore_create:
            self._ignored.add(FileEventType.CREATED)
        if ignore_change:
            self._ignored.add(FileEventType.CHANGED)
        if ignore_delete:
            self._ignored.add(FileEventType.DELETED)

        self._listeners: dict[FileEventType, list[FileListener]] = {
            event_type: [] for event_type in FileEventType
        }
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._disposed = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the watch loop (requires a running event loop)."""
        if self._disposed or self.is_running:
            return

        roots = [root for root in self.pattern.roots if root.is_dir()]
        for missing in set(self.pattern.roots) - set(roots):
            logger.warning(f"Watch root does not exist, skipping: {missing}")
        if not roots:
            logger.warning(f"Nothing to watch for pattern {self.pattern.glob!r}")
            return

        self._task = asyncio.create_task(self._watch(roots))

    def on_did_create(self, listener: FileListener) -> Disposable:
        return subscribe(self._listeners[FileEventType.CREATED], listener)

    def on_did_change(self, listener: FileListener) -> Disposable:
        return subscribe(self._listeners[FileEventType.CHANGED], listener)

    def on_did_delete(self, listener: FileListener) -> Disposable:
        return subscribe(self._listeners[FileEventType.DELETED], listener)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._stop_event.set()
        if self._task and not self._task.done():
            self._task.cancel()
        for listeners in self._listeners.values():
            listeners.clear()

    async def _watch(self, roots: list[Path]) -> None:
        """Watch the roots until disposed."""
        try:
            logger.debug(f"Starting watch loop for {self.pattern.glob!r} under {roots}")

            async for changes in awatch(
                *roots,
                stop_event=self._stop_event,
                step=self.step_ms,
                debounce=self.debounce_ms,
                # Glob filtering happens in emit, so dotfiles and .git paths reach it
                watch_filter=None,
            ):
                for change, path_str in changes:
                    self.emit(_CHANGE_TYPES.get(change), Path(path_str))

        except asyncio.CancelledError:
            logger.debug(f"Watch cancelled: {self.pattern.glob!r}")
        except Exception as e:
            logger.error(f"Error watching {self.pattern.glob!r}: {e}", exc_info=True)

    def emit(self, event_type: Optional[FileEventType], path: Path) -> None:
        """Deliver one file event to the listeners, if it passes the filters."""
        if self._disposed or event_type is None or event_type in self._ignored:
            return
        if event_type != FileEventType.DELETED and path.is_dir():
            return
        if not self.pattern.matches(path):
            return

        for listener in list(self._listeners[event_type]):
            try:
                listener(path)
            except Exception as e:
                logger.error(f"Error in file event listener: {e}", exc_info=True)


class WatchfilesEventSource(FileEventSource):
    """Creates a WatchfilesWatcher per watcher declaration."""

    def __init__(self, step_ms: int = 50, debounce_ms: int = 200):
        self.step_ms = step_ms
        self.debounce_ms = debounce_ms

    def create_watcher(
        self,
        pattern: WatchPattern,
        ignore_create: bool = False,
        ignore_change: bool = False,
        ignore_delete: bool = False,
    ) -> WatchfilesWatcher:
        watcher = WatchfilesWatcher(
            pattern,
            ignore_create=ignore_create,
            ignore_change=ignore_change,
            ignore_delete=ignore_delete,
            step_ms=self.step_ms,
            debounce_ms=self.debounce_ms,
        )
        watcher.start()
        return watcher
