"""Settings models for the notify-on-file section and the workspace section."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .watcher import WatcherDeclaration

SECTION = "notify-on-file"
"""Top-level key of the extension's settings."""

WORKSPACE_SECTION = "workspace"
"""Top-level key describing the open workspace folders."""

DEFAULT_SAVE_ORIGIN_WINDOW_MS = 500.0


class ExtensionSettings(BaseModel):
    """The `notify-on-file` settings section."""
    
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    
    watchers: list[WatcherDeclaration] = Field(default_factory=list)
    """Independent watcher declarations."""
    
    notify: Optional[WatcherDeclaration] = None
    """Legacy single declaration, used only when `watchers` is empty."""
    
    save_origin_window_ms: float = Field(
        default=DEFAULT_SAVE_ORIGIN_WINDOW_MS, alias="saveOriginWindowMs", ge=0
    )
    """How long an editor save is remembered to attribute the next change to it."""
    
    @field_validator("watchers", mode="before")
    @classmethod
    def _null_watchers_is_empty(cls, value: Any) -> Any:
        # A bare `watchers:` key in YAML
        if value is None:
            return []
        return value
    
    def active_declarations(self) -> list[WatcherDeclaration]:
        """Declarations to build watchers from: the list, else the legacy object."""
        if self.watchers:
            return list(self.watchers)
        if self.notify is not None:
            return [self.notify]
        return []


class WorkspaceFolderSettings(BaseModel):
    """One workspace folder of the headless host."""
    
    path: str
    name: Optional[str] = None


class WorkspaceSettings(BaseModel):
    """The `workspace` settings section."""
    
    folders: list[WorkspaceFolderSettings] = Field(default_factory=list)
