"""Enumerations for notify-on-file."""

from enum import Enum


class FileEventType(str, Enum):
    """Kind of file-system event a watcher can react to."""
    
    CREATED = "created"
    """A file matching the watcher appeared."""
    
    CHANGED = "changed"
    """A file matching the watcher was written."""
    
    DELETED = "deleted"
    """A file matching the watcher was removed."""


class SaveOrigin(str, Enum):
    """Who wrote a changed file."""
    
    EDITOR = "editor"
    """The editor saved the document itself (recorded by the save tracker)."""
    
    EXTERNAL = "external"
    """Another program wrote the file."""
