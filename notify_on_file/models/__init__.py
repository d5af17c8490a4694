"""Data models for notify-on-file."""

from .enums import FileEventType, SaveOrigin
from .events import FileEvent
from .actions import (
    Action,
    ShowStatusBarItem,
    RemoveStatusBarItem,
    Notify,
    AutoSave,
    parse_action,
    action_to_dict,
)
from .watcher import WatcherDeclaration
from .settings import ExtensionSettings, WorkspaceSettings, WorkspaceFolderSettings, SECTION

__all__ = [
    "FileEventType",
    "SaveOrigin",
    "FileEvent",
    "Action",
    "ShowStatusBarItem",
    "RemoveStatusBarItem",
    "Notify",
    "AutoSave",
    "parse_action",
    "action_to_dict",
    "WatcherDeclaration",
    "ExtensionSettings",
    "WorkspaceSettings",
    "WorkspaceFolderSettings",
    "SECTION",
]
