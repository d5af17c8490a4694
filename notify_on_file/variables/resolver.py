"""
Variable resolver - the catalog of ${...} variables and their values.

Supports:
- OS: ${pathSeparator}, ${userHome}, ${env:NAME}
- workspace: ${workspaceFolder}, ${workspaceFolder:NAME}, ${workspaceFolderBasename}
- file: ${file}, ${relativeFile}, ${fileBasename}, ${fileBasenameNoExtension},
  ${fileExtname}, ${fileDirname}, ${relativeFileDirname}
"""

import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional

from ..exceptions import NotFoundError, ResolutionError
from ..host.workspace import Workspace, WorkspaceFolder


class VariableResolver:
    """
    Supplies the values behind the variable catalog.

    The environment, platform and workspace are injected so resolution does
    not depend on the process it runs in.
    """

    def __init__(
        self,
        workspace: Workspace,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[str] = None,
    ):
        self.workspace = workspace
        self.environ = os.environ if environ is None else environ
        self.platform = sys.platform if platform is None else platform

    @property
    def is_windows(self) -> bool:
        return self.platform == "win32"

    # -------------------------------------------------------------------------
    # OS
    # -------------------------------------------------------------------------

    def path_separator(self) -> str:
        return "\\" if self.is_windows else "/"

    def user_home(self) -> str:
        """Home directory as env placeholders, resolved by a later pattern."""
        if self.is_windows:
            return "${env:HOMEDRIVE}${env:HOMEPATH}"
        return "${env:HOME}"

    def env(self, name: str) -> str:
        return self.environ.get(name, "")

    # -------------------------------------------------------------------------
    # Workspace
    # -------------------------------------------------------------------------

    def owning_folder(self, file: Optional[Path]) -> WorkspaceFolder:
        """
        Pick the workspace folder a variable refers to.

        Args:
            file: The triggering file, if any

        Returns:
            The only folder, or the folder containing file when several are
            open (the first folder if none contains it)

        Raises:
            ResolutionError: If no folder is open, or several are open and
                there is no file to choose between them
        """
        folders = self.workspace.folders
        if not folders:
            raise ResolutionError("No folder open")
        if len(folders) == 1:
            return folders[0]
        if file is None:
            raise ResolutionError("Use the name of the Workspace Folder")
        return self.workspace.get_workspace_folder(file) or folders[0]

    def named_folder(self, name: str) -> WorkspaceFolder:
        folder = self.workspace.get_named_folder(name)
        if folder is None:
            raise NotFoundError(f"Workspace not found with name: {name}")
        return folder

    # -------------------------------------------------------------------------
    # File
    # -------------------------------------------------------------------------

    def relative_file(self, file: Path) -> str:
        folder = self.owning_folder(file)
        try:
            return str(file.relative_to(folder.root))
        except ValueError:
            raise ResolutionError(
                f"{file} is not inside workspace folder {folder.name}"
            ) from None

    def relative_file_dirname(self, file: Path) -> str:
        folder = self.owning_folder(file)
        try:
            relative = file.parent.relative_to(folder.root)
        except ValueError:
            raise ResolutionError(
                f"{file} is not inside workspace folder {folder.name}"
            ) from None
        return "" if relative == Path(".") else str(relative)

    @staticmethod
    def split_extension(file: Path) -> tuple[str, str]:
        """Split the basename at its last ".", so ".gitignore" has no stem."""
        name = file.name
        dot = name.rfind(".")
        if dot < 0:
            return name, ""
        return name[:dot], name[dot:]


Resolve = Callable[..., str]


@dataclass(frozen=True)
class Variable:
    """
    One entry of the variable catalog.

    Attributes:
        name: Display name used in diagnostics
        pattern: Regex for the text between "${" and "}"; capture groups are
            passed to resolve as arguments
        resolve: Called as resolve(resolver, file, *groups)
        needs_file: Whether the variable only makes sense for a file event
    """
    name: str
    pattern: str
    resolve: Resolve
    needs_file: bool = False

    @property
    def regex(self) -> re.Pattern:
        return re.compile(r"\$\{" + self.pattern + r"\}")


# Order matters: ${userHome} emits ${env:...} for the env pattern to pick up
# in the same pass.
CATALOG: tuple[Variable, ...] = (
    Variable("pathSeparator", "pathSeparator", lambda r, f: r.path_separator()),
    Variable("userHome", "userHome", lambda r, f: r.user_home()),
    Variable("env", "env:(.+?)", lambda r, f, name: r.env(name)),
    Variable(
        "workspaceFolder", "workspaceFolder",
        lambda r, f: str(r.owning_folder(f).root),
    ),
    Variable(
        "workspaceFolder:NAME", "workspaceFolder:(.+?)",
        lambda r, f, name: str(r.named_folder(name).root),
    ),
    Variable(
        "workspaceFolderBasename", "workspaceFolderBasename",
        lambda r, f: r.owning_folder(f).root.name,
    ),
    Variable("file", "file", lambda r, f: str(f), needs_file=True),
    Variable("relativeFile", "relativeFile", lambda r, f: r.relative_file(f), needs_file=True),
    Variable("fileBasename", "fileBasename", lambda r, f: f.name, needs_file=True),
    Variable(
        "fileBasenameNoExtension", "fileBasenameNoExtension",
        lambda r, f: r.split_extension(f)[0], needs_file=True,
    ),
    Variable(
        "fileExtname", "fileExtname",
        lambda r, f: r.split_extension(f)[1], needs_file=True,
    ),
    Variable("fileDirname", "fileDirname", lambda r, f: str(f.parent), needs_file=True),
    Variable(
        "relativeFileDirname", "relativeFileDirname",
        lambda r, f: r.relative_file_dirname(f), needs_file=True,
    ),
)
