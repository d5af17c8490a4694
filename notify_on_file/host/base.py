"""Host interfaces - the collaborators the extension is wired to.

The extension never talks to the operating system, a GUI or a settings
store directly. It goes through the interfaces below, so the same engine
runs against the headless host in this package or against test doubles.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

if TYPE_CHECKING:
    from ..watchers.watch_pattern import WatchPattern


class Disposable:
    """
    Handle returned by every subscription; dispose() cancels it.

    Disposing twice is harmless.
    """

    def __init__(self, on_dispose: Optional[Callable[[], None]] = None):
        self._on_dispose = on_dispose
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self._on_dispose:
            self._on_dispose()


def subscribe(listeners: list, listener) -> Disposable:
    """Append a listener and return a Disposable that removes it."""
    listeners.append(listener)

    def remove():
        if listener in listeners:
            listeners.remove(listener)

    return Disposable(remove)


# -------------------------------------------------------------------------
# UI
# -------------------------------------------------------------------------

class StatusItem(ABC):
    """A persistent, labelled indicator in the status bar."""

    item_id: str
    text: str = ""
    tooltip: Optional[str] = None
    color: Optional[str] = None
    name: Optional[str] = None
    background_color: Optional[str] = None

    @abstractmethod
    def show(self) -> None:
        ...

    @abstractmethod
    def hide(self) -> None:
        ...

    @abstractmethod
    def dispose(self) -> None:
        ...


class UISurface(ABC):
    """Status bar items, notifications and error messages."""

    @abstractmethod
    def create_status_item(self, item_id: str) -> StatusItem:
        """Create a new, hidden status item."""

    @abstractmethod
    async def show_information_message(self, message: str, *actions: str) -> Optional[str]:
        """
        Show a dismissible notification.

        Returns:
            The label of the action the user chose, or None if dismissed
        """

    @abstractmethod
    def show_error_message(self, message: str) -> None:
        """Show an error message without waiting for the user."""


# -------------------------------------------------------------------------
# Documents
# -------------------------------------------------------------------------

class TextDocument(ABC):
    """A file loaded into the editor."""

    path: Path
    text: str

    @property
    @abstractmethod
    def is_dirty(self) -> bool:
        ...

    @abstractmethod
    async def save(self) -> bool:
        """Save through the editor's save pipeline. Returns True on success."""


class DocumentStore(ABC):
    """Open, show and save documents; notify when the editor saved one."""

    @abstractmethod
    async def open_text_document(self, path: Path) -> TextDocument:
        """Load a document (re-reading it from disk when it is not dirty)."""

    @abstractmethod
    async def show_text_document(self, document: TextDocument) -> None:
        """Bring a document to the foreground for editing."""

    @abstractmethod
    def on_did_save(self, listener: Callable[[TextDocument], None]) -> Disposable:
        """Subscribe to "document was saved by the editor" notifications."""


# -------------------------------------------------------------------------
# File events
# -------------------------------------------------------------------------

FileListener = Callable[[Path], None]


class FileSystemWatcher(ABC):
    """Create/change/delete events for files matching one WatchPattern."""

    @abstractmethod
    def on_did_create(self, listener: FileListener) -> Disposable:
        ...

    @abstractmethod
    def on_did_change(self, listener: FileListener) -> Disposable:
        ...

    @abstractmethod
    def on_did_delete(self, listener: FileListener) -> Disposable:
        ...

    @abstractmethod
    def dispose(self) -> None:
        """Stop observing; no listener is called afterwards."""


class FileEventSource(ABC):
    """Factory for file system watchers."""

    @abstractmethod
    def create_watcher(
        self,
        pattern: "WatchPattern",
        ignore_create: bool = False,
        ignore_change: bool = False,
        ignore_delete: bool = False,
    ) -> FileSystemWatcher:
        """Start observing files matching pattern, skipping ignored event types."""


# -------------------------------------------------------------------------
# Settings
# -------------------------------------------------------------------------

class SettingsChangeEvent:
    """Describes which top-level settings sections changed."""

    def __init__(self, changed_sections: set[str]):
        self.changed_sections = set(changed_sections)

    def affects(self, section: str) -> bool:
        return section in self.changed_sections


SettingsListener = Callable[[SettingsChangeEvent], Awaitable[None]]


class SettingsSource(ABC):
    """Read-only settings store with change notifications."""

    error: Optional[str] = None
    """Why the last load failed, if it did."""

    @abstractmethod
    def get_section(self, section: str) -> dict:
        """Return a top-level section ({} when absent)."""

    @abstractmethod
    def on_did_change(self, listener: SettingsListener) -> Disposable:
        """Subscribe to settings changes."""
