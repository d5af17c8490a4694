"""Load settings from a YAML file and watch it for changes."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import yaml
from watchfiles import awatch

from ..host.base import (
    Disposable,
    SettingsChangeEvent,
    SettingsListener,
    SettingsSource,
    subscribe,
)

logger = logging.getLogger(__name__)


def load_settings(settings_path: Path) -> dict:
    """
    Load the settings file.

    Expected format:

    ```yaml
    workspace:
      folders:
        - name: proj
          path: ~/proj

    notify-on-file:
      watchers:
        - path: ${workspaceFolder}
          globPattern: "**/*.md"
          onChange:
            - notify: "${relativeFile} changed"
    ```

    Args:
        settings_path: Path to the YAML file

    Returns:
        The top-level mapping ({} for a missing or empty file)

    Raises:
        yaml.YAMLError: If the file is not valid YAML
        ValueError: If the top level is not a mapping
    """
    if not settings_path.exists():
        logger.warning(f"Settings file not found: {settings_path}")
        return {}

    with open(settings_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings must be a mapping, got {type(data).__name__}")
    return data


class YamlSettings(SettingsSource):
    """
    Settings read from a YAML file.

    A file that cannot be parsed counts as empty; the reason is kept in
    `error` so the extension can show it.

    Usage:
        settings = YamlSettings(Path("config/settings.yaml"))
        settings.on_did_change(handle_change)
        task = asyncio.create_task(settings.watch())
    """

    def __init__(self, settings_path: Path | str):
        self.path = Path(settings_path).expanduser().absolute()
        self.error: Optional[str] = None
        self._data: dict = {}
        self._listeners: list[SettingsListener] = []
        self._stop_event = asyncio.Event()
        self._read()

    def get_section(self, section: str) -> dict:
        value = self._data.get(section)
        return value if isinstance(value, dict) else {}

    def on_did_change(self, listener: SettingsListener) -> Disposable:
        return subscribe(self._listeners, listener)

    def _read(self) -> None:
        try:
            self._data = load_settings(self.path)
            self.error = None
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.error(f"Error loading settings from {self.path}: {e}")
            self._data = {}
            self.error = f"Invalid settings file {self.path}: {e}"

    async def reload(self) -> SettingsChangeEvent:
        """Re-read the file and notify listeners of the sections that changed."""
        old = self._data
        old_error = self.error
        self._read()

        changed = {
            key for key in set(old) | set(self._data)
            if old.get(key) != self._data.get(key)
        }
        if self.error != old_error:
            # Every section reads as empty while the file is invalid
            changed |= set(old) | set(self._data)

        event = SettingsChangeEvent(changed)
        if changed:
            logger.info(f"Settings changed: {sorted(changed)}")
            for listener in list(self._listeners):
                try:
                    await listener(event)
                except Exception as e:
                    logger.error(f"Error in settings listener: {e}", exc_info=True)
        return event

    async def watch(self) -> None:
        """Reload whenever the settings file changes, until stop() is called."""
        self._stop_event.clear()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async for changes in awatch(self.path.parent, stop_event=self._stop_event, recursive=False):
                if any(Path(p).name == self.path.name for _, p in changes):
                    await self.reload()
        except asyncio.CancelledError:
            logger.debug("Settings watch cancelled")

    def stop(self) -> None:
        self._stop_event.set()


# Example settings template
EXAMPLE_SETTINGS = """# notify-on-file settings
#
# Watchers run actions when files matching their glob are created, changed
# or deleted. Strings may use ${variables}: ${workspaceFolder},
# ${workspaceFolder:Name}, ${relativeFile}, ${fileBasename}, ${env:NAME}, ...

workspace:
  folders:
    - name: notes
      path: ~/notes

notify-on-file:
  # How long (ms) an editor save is remembered to tell it from an external one
  saveOriginWindowMs: 500

  watchers:
    # Record external edits as saved revisions and say so
    - path: ${workspaceFolder:notes}
      globPattern: "**/*.md"
      triggerOnVSCodeSave: false
      onChange:
        - autoSave: true
        - notify: "${relativeFile} was changed outside the editor"
          openLabel: Show
        - showStatusBarItem: notes-changed
          text: "${fileBasename} changed"
          tooltip: "${file}"

    # Track new and removed build outputs
    - path: ${userHome}${pathSeparator}build
      globPattern: "*.{zip,tar.gz}"
      onCreate:
        - showStatusBarItem: build
          text: "Built ${fileBasename}"
      onDelete:
        - removeStatusBarItem: build
"""


def write_example_settings(settings_path: Path) -> None:
    """Write an example settings file."""
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    with open(settings_path, "w", encoding="utf-8") as f:
        f.write(EXAMPLE_SETTINGS)
    logger.info(f"Wrote example settings to {settings_path}")
