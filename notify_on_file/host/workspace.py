"""Workspace folders - the set of open project roots."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..models.settings import WorkspaceSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceFolder:
    """An open project root."""
    name: str
    root: Path

    def contains(self, path: Path) -> bool:
        """Check whether path is the root or lives under it."""
        try:
            path.relative_to(self.root)
        except ValueError:
            return False
        return True


class Workspace:
    """
    The open workspace folders.

    Folders are kept in the order they were opened; the first one is used
    when a file belongs to none of them.
    """

    def __init__(self, folders: Optional[Iterable[WorkspaceFolder]] = None):
        self._folders: list[WorkspaceFolder] = list(folders or [])

    @property
    def folders(self) -> list[WorkspaceFolder]:
        return list(self._folders)

    def set_folders(self, folders: Iterable[WorkspaceFolder]) -> None:
        self._folders = list(folders)
        logger.info(f"Workspace folders: {[f.name for f in self._folders]}")

    def get_workspace_folder(self, path: Path) -> Optional[WorkspaceFolder]:
        """Return the folder owning path (the deepest root containing it)."""
        owners = [f for f in self._folders if f.contains(path)]
        if not owners:
            return None
        return max(owners, key=lambda f: len(f.root.parts))

    def get_named_folder(self, name: str) -> Optional[WorkspaceFolder]:
        """
        Find a folder by name.

        When name contains "/", it is matched as a suffix of the folder's
        root path instead, so "client/app" selects /work/client/app.
        """
        if "/" in name:
            matches = [f for f in self._folders if f.root.as_posix().endswith(name)]
        else:
            matches = [f for f in self._folders if f.name == name]
        return matches[0] if matches else None

    @classmethod
    def from_settings(cls, settings: WorkspaceSettings) -> "Workspace":
        workspace = cls()
        workspace.update_from_settings(settings)
        return workspace

    def update_from_settings(self, settings: WorkspaceSettings) -> None:
        folders = []
        for folder in settings.folders:
            root = Path(folder.path).expanduser().resolve()
            folders.append(WorkspaceFolder(name=folder.name or root.name, root=root))
        self.set_folders(folders)
