"""Action models - the effects a watcher runs for a file event.

An action object in the settings has exactly one primary key that selects
its kind; the remaining keys are that kind's parameters:

    {showStatusBarItem: id, text?, tooltip?, color?, name?, backgroundColor?}
    {removeStatusBarItem: id}
    {notify: template, openLabel?}
    {autoSave: true}

Action objects are parsed once, when the settings are loaded, into one of
the models below.
"""

from typing import Any, ClassVar, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import ConfigurationError


class _ActionModel(BaseModel):
    """Shared configuration for action models."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    key: ClassVar[str] = ""
    """Primary key that selects this action kind in a settings object."""


class ShowStatusBarItem(_ActionModel):
    """Create or update a status bar item and make it visible."""

    key: ClassVar[str] = "showStatusBarItem"

    item_id: str = Field(alias="showStatusBarItem")
    """Identifier of the item in the status item cache."""

    text: Optional[str] = None
    """Label text; may contain ${...} placeholders."""

    tooltip: Optional[str] = None
    """Hover text; may contain ${...} placeholders."""

    color: Optional[str] = None
    """Theme color id for the foreground."""

    name: Optional[str] = None
    """Human readable name of the item."""

    background_color: Optional[str] = Field(default=None, alias="backgroundColor")
    """Theme color id for the background."""


class RemoveStatusBarItem(_ActionModel):
    """Hide and discard a status bar item."""

    key: ClassVar[str] = "removeStatusBarItem"

    item_id: str = Field(alias="removeStatusBarItem")


class Notify(_ActionModel):
    """Show a notification with an action that opens the triggering file."""

    key: ClassVar[str] = "notify"

    message: str = Field(alias="notify")
    """Message template; may contain ${...} placeholders."""

    open_label: Optional[str] = Field(default=None, alias="openLabel")
    """Label of the open action (defaults to "Open")."""

    DEFAULT_OPEN_LABEL: ClassVar[str] = "Open"

    @property
    def label(self) -> str:
        return self.open_label or self.DEFAULT_OPEN_LABEL


class AutoSave(_ActionModel):
    """Reload the triggering file from disk and save it through the editor."""

    key: ClassVar[str] = "autoSave"

    enabled: bool = Field(alias="autoSave")


Action = Union[ShowStatusBarItem, RemoveStatusBarItem, Notify, AutoSave]

ACTION_TYPES: dict[str, type[_ActionModel]] = {
    cls.key: cls for cls in (ShowStatusBarItem, RemoveStatusBarItem, Notify, AutoSave)
}


def parse_action(data: Any) -> Action:
    """
    Parse one action object from the settings.

    Args:
        data: The raw action object

    Returns:
        The typed action

    Raises:
        ConfigurationError: If the object is not a mapping, has no primary
            key, has more than one, or its parameters are invalid
    """
    if isinstance(data, tuple(ACTION_TYPES.values())):
        return data

    if not isinstance(data, dict):
        raise ConfigurationError(f"Action must be an object, got {type(data).__name__}")

    keys = [key for key in ACTION_TYPES if key in data]
    if not keys:
        raise ConfigurationError(
            f"Action has none of the keys {sorted(ACTION_TYPES)}: {sorted(data)}"
        )
    if len(keys) > 1:
        raise ConfigurationError(f"Action has more than one primary key: {keys}")

    try:
        return ACTION_TYPES[keys[0]].model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid '{keys[0]}' action: {e}") from e


def action_to_dict(action: Action) -> dict:
    """Convert an action back to its settings form."""
    return action.model_dump(by_alias=True, exclude_none=True)
