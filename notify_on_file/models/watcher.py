"""Watcher declarations - one configured watch rule."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .actions import Action, action_to_dict, parse_action
from .enums import FileEventType, SaveOrigin


class WatcherDeclaration(BaseModel):
    """
    A single watch rule from the settings.

    Example:
        path: ${workspaceFolder}/docs
        globPattern: "**/*.md"
        triggerOnVSCodeSave: false
        onChange:
          - notify: "${relativeFile} was changed"
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    path: Optional[str] = None
    """Root the glob is relative to; a template expanded once per reload."""

    glob_pattern: str = Field(default="*.js", alias="globPattern")
    """Glob selecting the files to watch."""

    trigger_on_vscode_save: bool = Field(default=True, alias="triggerOnVSCodeSave")
    """Run onChange actions when the editor saved the file."""

    trigger_on_external_save: bool = Field(default=True, alias="triggerOnExternalSave")
    """Run onChange actions when another program wrote the file."""

    on_create: Optional[list[Action]] = Field(default=None, alias="onCreate")
    on_change: Optional[list[Action]] = Field(default=None, alias="onChange")
    on_delete: Optional[list[Action]] = Field(default=None, alias="onDelete")

    @field_validator("path", mode="before")
    @classmethod
    def _empty_path_is_none(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @field_validator("on_create", "on_change", "on_delete", mode="before")
    @classmethod
    def _parse_actions(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, list):
            raise ValueError("action list must be a sequence of action objects")
        return [parse_action(item) for item in value]

    @property
    def handlers(self) -> dict[FileEventType, list[Action]]:
        """Declared action lists by event type (undeclared types are absent)."""
        declared = {
            FileEventType.CREATED: self.on_create,
            FileEventType.CHANGED: self.on_change,
            FileEventType.DELETED: self.on_delete,
        }
        return {event: actions for event, actions in declared.items() if actions is not None}

    def accepts_change(self, origin: SaveOrigin) -> bool:
        """Check whether a change with the given save origin should run onChange."""
        if origin == SaveOrigin.EDITOR:
            return self.trigger_on_vscode_save
        return self.trigger_on_external_save

    def to_dict(self) -> dict:
        """Convert to the settings form."""
        data: dict[str, Any] = {
            "globPattern": self.glob_pattern,
            "triggerOnVSCodeSave": self.trigger_on_vscode_save,
            "triggerOnExternalSave": self.trigger_on_external_save,
        }
        if self.path is not None:
            data["path"] = self.path
        for alias, actions in (
            ("onCreate", self.on_create),
            ("onChange", self.on_change),
            ("onDelete", self.on_delete),
        ):
            if actions is not None:
                data[alias] = [action_to_dict(a) for a in actions]
        return data
