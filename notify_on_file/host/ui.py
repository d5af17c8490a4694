"""Headless UI - status items, notifications and errors kept in memory.

The API server exposes this state over HTTP and pushes every change to
WebSocket clients; a client answers notifications through the API.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from .base import Disposable, StatusItem, UISurface, subscribe

logger = logging.getLogger(__name__)

UIListener = Callable[[dict], None]


class HeadlessStatusItem(StatusItem):
    """A status item that only records its state."""

    def __init__(self, ui: "HeadlessUI", item_id: str):
        self._ui = ui
        self.item_id = item_id
        self.text = ""
        self.tooltip = None
        self.color = None
        self.name = None
        self.background_color = None
        self.visible = False
        self.disposed = False

    def show(self) -> None:
        if self.disposed:
            return
        self.visible = True
        self._ui._emit({"event": "status_item_shown", "item": self.to_dict()})

    def hide(self) -> None:
        if self.disposed:
            return
        self.visible = False
        self._ui._emit({"event": "status_item_hidden", "item_id": self.item_id})

    def dispose(self) -> None:
        if self.disposed:
            return
        self.visible = False
        self.disposed = True
        self._ui._forget_status_item(self)
        self._ui._emit({"event": "status_item_disposed", "item_id": self.item_id})

    def to_dict(self) -> dict:
        return {
            "id": self.item_id,
            "text": self.text,
            "tooltip": self.tooltip,
            "color": self.color,
            "name": self.name,
            "background_color": self.background_color,
            "visible": self.visible,
        }


@dataclass
class Notification:
    """An information message waiting for the user."""
    message: str
    actions: list[str]
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    response: Optional[asyncio.Future] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "message": self.message,
            "actions": self.actions,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class ErrorMessage:
    """An error shown to the user."""
    message: str
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {"message": self.message, "created_at": self.created_at.isoformat()}


class HeadlessUI(UISurface):
    """
    In-memory UI surface.

    Usage:
        ui = HeadlessUI()
        ui.on_event(lambda message: print(message))

        # Somewhere else, a user answers:
        ui.respond(notification_id, "Open")
    """

    def __init__(self, max_errors: int = 100):
        self.max_errors = max_errors
        self._status_items: dict[str, HeadlessStatusItem] = {}
        self._notifications: dict[str, Notification] = {}
        self._errors: list[ErrorMessage] = []
        self._listeners: list[UIListener] = []

    def on_event(self, listener: UIListener) -> Disposable:
        """Subscribe to UI changes (each one a JSON-serialisable dict)."""
        return subscribe(self._listeners, listener)

    def _emit(self, message: dict) -> None:
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception as e:
                logger.error(f"Error in UI listener: {e}", exc_info=True)

    # -------------------------------------------------------------------------
    # Status items
    # -------------------------------------------------------------------------

    def create_status_item(self, item_id: str) -> HeadlessStatusItem:
        item = HeadlessStatusItem(self, item_id)
        self._status_items[item_id] = item
        return item

    def _forget_status_item(self, item: HeadlessStatusItem) -> None:
        if self._status_items.get(item.item_id) is item:
            del self._status_items[item.item_id]

    @property
    def status_items(self) -> list[HeadlessStatusItem]:
        return list(self._status_items.values())

    def get_status_item(self, item_id: str) -> Optional[HeadlessStatusItem]:
        return self._status_items.get(item_id)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    async def show_information_message(self, message: str, *actions: str) -> Optional[str]:
        notification = Notification(
            message=message,
            actions=list(actions),
            response=asyncio.get_running_loop().create_future(),
        )
        self._notifications[notification.id] = notification
        logger.info(f"Notification: {message}")
        self._emit({"event": "notification", "notification": notification.to_dict()})

        try:
            return await notification.response
        finally:
            self._notifications.pop(notification.id, None)

    @property
    def notifications(self) -> list[Notification]:
        """Notifications still waiting for an answer, oldest first."""
        return list(self._notifications.values())

    def respond(self, notification_id: str, action: Optional[str]) -> bool:
        """
        Answer a notification.

        Args:
            notification_id: ID of the notification
            action: Label of the chosen action, or None to dismiss

        Returns:
            True if the notification was waiting for an answer

        Raises:
            ValueError: If action is not one of the notification's actions
        """
        notification = self._notifications.get(notification_id)
        if notification is None or notification.response.done():
            return False
        if action is not None and action not in notification.actions:
            raise ValueError(f"Unknown action {action!r}, expected one of {notification.actions}")

        notification.response.set_result(action)
        self._emit({
            "event": "notification_closed",
            "notification_id": notification_id,
            "action": action,
        })
        return True

    def dismiss(self, notification_id: str) -> bool:
        return self.respond(notification_id, None)

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def show_error_message(self, message: str) -> None:
        logger.error(message)
        self._errors.append(ErrorMessage(message))
        del self._errors[:-self.max_errors]
        self._emit({"event": "error", "message": message})

    @property
    def errors(self) -> list[ErrorMessage]:
        return list(self._errors)

    def clear_errors(self) -> None:
        self._errors.clear()
