"""Watcher registry - builds the live subscriptions from watcher declarations."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from ..engine.executor import ActionExecutor
from ..engine.save_tracker import SaveOriginTracker
from ..host.base import Disposable, FileEventSource, FileSystemWatcher
from ..host.workspace import Workspace
from ..models import FileEvent, FileEventType, SaveOrigin, WatcherDeclaration
from ..variables import PlaceholderExpander
from .watch_pattern import WatchPattern

logger = logging.getLogger(__name__)


@dataclass
class WatcherSubscription:
    """A live watcher bound to one declaration."""
    declaration: WatcherDeclaration
    pattern: WatchPattern
    watcher: FileSystemWatcher
    listeners: list[Disposable] = field(default_factory=list)
    disposed: bool = False

    @property
    def events(self) -> list[FileEventType]:
        return list(self.declaration.handlers)

    def dispose(self) -> None:
        if self.disposed:
            return
        for listener in self.listeners:
            listener.dispose()
        self.watcher.dispose()
        self.disposed = True

    def to_dict(self) -> dict:
        return {
            **self.pattern.to_dict(),
            "events": [e.value for e in self.events],
            "trigger_on_vscode_save": self.declaration.trigger_on_vscode_save,
            "trigger_on_external_save": self.declaration.trigger_on_external_save,
        }


class WatcherRegistry:
    """
    Holds the active watcher subscriptions.

    Every reload disposes all subscriptions before building new ones from the
    declarations; there is no diffing between old and new settings.

    Usage:
        registry = WatcherRegistry(source, tracker, executor, expander, workspace)
        await registry.reload(settings.active_declarations())
        ...
        registry.dispose()
    """

    def __init__(
        self,
        source: FileEventSource,
        tracker: SaveOriginTracker,
        executor: ActionExecutor,
        expander: PlaceholderExpander,
        workspace: Workspace,
    ):
        self.source = source
        self.tracker = tracker
        self.executor = executor
        self.expander = expander
        self.workspace = workspace
        self._subscriptions: list[WatcherSubscription] = []
        self._lock = asyncio.Lock()

    @property
    def subscriptions(self) -> list[WatcherSubscription]:
        return list(self._subscriptions)

    def __len__(self) -> int:
        return len(self._subscriptions)

    async def reload(self, declarations: Sequence[WatcherDeclaration]) -> int:
        """
        Replace every subscription with ones built from declarations.

        Reloads are serialised, and the old subscriptions are fully disposed
        before the first new one is created.

        Returns:
            Number of active subscriptions
        """
        async with self._lock:
            self.dispose()
            for declaration in declarations:
                self._subscriptions.append(self._subscribe(declaration))

            logger.info(f"Watching with {len(self._subscriptions)} watcher(s)")
            return len(self._subscriptions)

    def dispose(self) -> None:
        """Dispose every subscription."""
        if self._subscriptions:
            logger.debug(f"Disposing {len(self._subscriptions)} watcher(s)")
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []

    def build_pattern(self, declaration: WatcherDeclaration) -> WatchPattern:
        """
        Scope a declaration's glob.

        With a path the glob is anchored at the expanded path, so "*.js" only
        matches its direct children. Without one it is relative to every
        workspace folder.
        """
        if declaration.path is not None:
            root = self.expander.expand(declaration.path)
            return WatchPattern(
                glob=declaration.glob_pattern,
                roots=[Path(root).expanduser()],
                anchored=True,
            )
        return WatchPattern(
            glob=declaration.glob_pattern,
            roots=[folder.root for folder in self.workspace.folders],
        )

    def _subscribe(self, declaration: WatcherDeclaration) -> WatcherSubscription:
        handlers = declaration.handlers
        pattern = self.build_pattern(declaration)

        watcher = self.source.create_watcher(
            pattern,
            ignore_create=FileEventType.CREATED not in handlers,
            ignore_change=FileEventType.CHANGED not in handlers,
            ignore_delete=FileEventType.DELETED not in handlers,
        )
        subscription = WatcherSubscription(declaration, pattern, watcher)

        if FileEventType.CHANGED in handlers:
            subscription.listeners.append(
                watcher.on_did_change(lambda path: self._on_change(declaration, path))
            )
        if FileEventType.CREATED in handlers:
            subscription.listeners.append(
                watcher.on_did_create(
                    lambda path: self._dispatch(declaration, FileEventType.CREATED, path)
                )
            )
        if FileEventType.DELETED in handlers:
            subscription.listeners.append(
                watcher.on_did_delete(
                    lambda path: self._dispatch(declaration, FileEventType.DELETED, path)
                )
            )

        logger.info(
            f"Added watcher: {pattern.glob!r} under {[str(r) for r in pattern.roots]} "
            f"(events: {[e.value for e in handlers]})"
        )
        return subscription

    def _on_change(self, declaration: WatcherDeclaration, path: Path) -> None:
        if self.tracker.was_saved_internally(path):
            origin = SaveOrigin.EDITOR
        else:
            origin = SaveOrigin.EXTERNAL

        if not declaration.accepts_change(origin):
            logger.debug(f"Ignoring change to {path} saved by {origin.value}")
            return

        self._dispatch(declaration, FileEventType.CHANGED, path, origin)

    def _dispatch(
        self,
        declaration: WatcherDeclaration,
        event_type: FileEventType,
        path: Path,
        origin: Optional[SaveOrigin] = None,
    ) -> None:
        event = FileEvent(event_type=event_type, path=path, origin=origin)
        logger.info(f"File event: {event_type.value} {path}")
        self.executor.dispatch(event, declaration.handlers[event_type])
