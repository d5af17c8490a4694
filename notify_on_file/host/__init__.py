"""Host collaborators: interfaces and the headless implementations."""

from .base import (
    Disposable,
    DocumentStore,
    FileEventSource,
    FileSystemWatcher,
    SettingsChangeEvent,
    SettingsSource,
    StatusItem,
    TextDocument,
    UISurface,
)
from .workspace import Workspace, WorkspaceFolder
from .ui import HeadlessUI, HeadlessStatusItem, Notification
from .documents import FileDocument, FileDocumentStore, Revision

__all__ = [
    "Disposable",
    "DocumentStore",
    "FileEventSource",
    "FileSystemWatcher",
    "SettingsChangeEvent",
    "SettingsSource",
    "StatusItem",
    "TextDocument",
    "UISurface",
    "Workspace",
    "WorkspaceFolder",
    "HeadlessUI",
    "HeadlessStatusItem",
    "Notification",
    "FileDocument",
    "FileDocumentStore",
    "Revision",
]
