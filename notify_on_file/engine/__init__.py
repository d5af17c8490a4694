"""Action engine for notify-on-file."""

from .status import StatusItemCache
from .save_tracker import SaveOriginTracker
from .executor import ActionExecutor

__all__ = ["StatusItemCache", "SaveOriginTracker", "ActionExecutor"]
