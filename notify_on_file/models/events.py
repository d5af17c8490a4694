"""File events delivered to the action executor."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from .enums import FileEventType, SaveOrigin


@dataclass
class FileEvent:
    """A file system event that passed a watcher's filters."""
    event_type: FileEventType
    path: Path
    timestamp: datetime = field(default_factory=datetime.now)
    origin: Optional[SaveOrigin] = None  # Only set for change events
