"""Action executor - runs a watcher's action list for a file event."""

import asyncio
import logging
from typing import Sequence

from ..exceptions import DocumentError
from ..host.base import DocumentStore, UISurface
from ..models import (
    Action,
    AutoSave,
    FileEvent,
    Notify,
    RemoveStatusBarItem,
    ShowStatusBarItem,
)
from ..variables import PlaceholderExpander
from .status import StatusItemCache

logger = logging.getLogger(__name__)


class ActionExecutor:
    """
    Executes action lists for file events.

    Handles:
    - Status bar items (show/update and remove)
    - Notifications with an "open file" action
    - Forced saves through the editor's save pipeline

    Actions of one list run strictly in order. Each list runs in its own
    task, so a notification waiting for the user only holds up the rest of
    its own list, never other events.
    """

    def __init__(
        self,
        ui: UISurface,
        documents: DocumentStore,
        expander: PlaceholderExpander,
        status_items: StatusItemCache,
    ):
        self.ui = ui
        self.documents = documents
        self.expander = expander
        self.status_items = status_items
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        """Number of action lists still running."""
        return len(self._tasks)

    def dispatch(self, event: FileEvent, actions: Sequence[Action]) -> asyncio.Task:
        """
        Run an action list in the background.

        Args:
            event: The file event that triggered the list
            actions: The declared actions

        Returns:
            The task running the list
        """
        task = asyncio.create_task(self.run_actions(event, actions))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Error running actions: {error}", exc_info=error)

    async def drain(self) -> None:
        """Wait until every dispatched action list has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel(self) -> None:
        """Cancel every action list still running."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def run_actions(self, event: FileEvent, actions: Sequence[Action]) -> None:
        """
        Run actions in declaration order.

        Args:
            event: The file event that triggered the list
            actions: The declared actions
        """
        logger.debug(f"Running {len(actions)} action(s) for {event.event_type.value} {event.path}")

        for action in actions:
            if isinstance(action, ShowStatusBarItem):
                self._show_status_item(event, action)
            elif isinstance(action, RemoveStatusBarItem):
                self.status_items.remove(action.item_id)
            elif isinstance(action, Notify):
                await self._notify(event, action)
            elif isinstance(action, AutoSave):
                if action.enabled:
                    await self._auto_save(event)
            else:
                logger.warning(f"Unknown action type: {type(action).__name__}")

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def _show_status_item(self, event: FileEvent, action: ShowStatusBarItem) -> None:
        item = self.status_items.get_or_create(action.item_id)

        if action.background_color is not None:
            item.background_color = action.background_color
        if action.color is not None:
            item.color = action.color
        if action.name is not None:
            item.name = action.name
        if action.text is not None:
            item.text = self.expander.expand(action.text, event.path)
        if action.tooltip is not None:
            item.tooltip = self.expander.expand(action.tooltip, event.path)

        item.show()

    async def _notify(self, event: FileEvent, action: Notify) -> None:
        message = self.expander.expand(action.message, event.path)
        label = action.label

        selected = await self.ui.show_information_message(message, label)
        if selected != label:
            return

        try:
            document = await self.documents.open_text_document(event.path)
            await self.documents.show_text_document(document)
        except DocumentError as e:
            logger.warning(f"Could not open {event.path}: {e}")
            self.ui.show_error_message(f"notify-on-file open error: {e}")

    async def _auto_save(self, event: FileEvent) -> None:
        try:
            document = await self.documents.open_text_document(event.path)
            await document.save()
            logger.info(f"Saved {event.path} through the editor")
        except DocumentError as e:
            logger.warning(f"autoSave failed for {event.path}: {e}")
            self.ui.show_error_message(f"notify-on-file autoSave error: {e}")
