"""Extension - the coordinating object behind activate/deactivate."""

import logging
from typing import Callable, Mapping, Optional

from pydantic import ValidationError

from .engine import ActionExecutor, SaveOriginTracker, StatusItemCache
from .host.base import (
    Disposable,
    DocumentStore,
    FileEventSource,
    SettingsChangeEvent,
    SettingsSource,
    TextDocument,
    UISurface,
)
from .host.workspace import Workspace
from .models.settings import SECTION, WORKSPACE_SECTION, ExtensionSettings
from .variables import PlaceholderExpander, VariableResolver
from .watchers.registry import WatcherRegistry

logger = logging.getLogger(__name__)


class Extension:
    """
    Owns the extension's state for its lifetime.

    Manages:
    - The status item cache and the save-origin tracker
    - The variable resolver and expander
    - The action executor and the watcher registry
    - Subscriptions to settings changes and editor saves

    Usage:
        extension = Extension(settings, source, ui, documents, workspace)
        await extension.activate()
        ...
        await extension.deactivate()
    """

    def __init__(
        self,
        settings: SettingsSource,
        source: FileEventSource,
        ui: UISurface,
        documents: DocumentStore,
        workspace: Workspace,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[str] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.settings = settings
        self.ui = ui
        self.documents = documents
        self.workspace = workspace

        self.status_items = StatusItemCache(ui)
        self.tracker = SaveOriginTracker(clock=clock)
        self.resolver = VariableResolver(workspace, environ=environ, platform=platform)
        self.expander = PlaceholderExpander(self.resolver, report=ui.show_error_message)
        self.executor = ActionExecutor(ui, documents, self.expander, self.status_items)
        self.registry = WatcherRegistry(
            source, self.tracker, self.executor, self.expander, workspace
        )

        self._subscriptions: list[Disposable] = []
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def activate(self) -> None:
        """Subscribe to settings and save notifications and build the watchers."""
        if self._active:
            logger.warning("Extension already active")
            return

        self._subscriptions.append(self.settings.on_did_change(self._on_settings_changed))
        self._subscriptions.append(self.documents.on_did_save(self._on_document_saved))
        self.tracker.start()
        self._active = True

        await self.update_configuration()
        logger.info("Extension activated")

    async def deactivate(self) -> None:
        """Dispose every watcher and subscription."""
        if not self._active:
            return

        self._active = False
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions.clear()

        self.registry.dispose()
        await self.tracker.stop()
        self.status_items.clear()
        logger.info("Extension deactivated")

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def read_settings(self) -> Optional[ExtensionSettings]:
        """
        Parse the extension's settings section.

        Returns:
            The parsed settings, or None (after showing the reason) when the
            settings are invalid
        """
        if self.settings.error:
            self.ui.show_error_message(self.settings.error)
            return None

        try:
            return ExtensionSettings.model_validate(self.settings.get_section(SECTION))
        except ValidationError as e:
            logger.error(f"Invalid {SECTION} settings: {e}")
            self.ui.show_error_message(f"Invalid {SECTION} settings: {e}")
            return None

    async def update_configuration(self) -> int:
        """
        Rebuild every watcher from the current settings.

        Returns:
            Number of active watchers
        """
        extension_settings = self.read_settings()
        if extension_settings is None:
            return await self.registry.reload([])

        self.tracker.window_ms = extension_settings.save_origin_window_ms
        return await self.registry.reload(extension_settings.active_declarations())

    async def _on_settings_changed(self, event: SettingsChangeEvent) -> None:
        if event.affects(SECTION) or event.affects(WORKSPACE_SECTION):
            await self.update_configuration()

    def _on_document_saved(self, document: TextDocument) -> None:
        self.tracker.mark(document.path)
