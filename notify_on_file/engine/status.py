"""Status item cache - live status bar items by identifier."""

import logging
from typing import Optional

from ..host.base import StatusItem, UISurface

logger = logging.getLogger(__name__)


class StatusItemCache:
    """
    Status bar items keyed by the id used in showStatusBarItem actions.
    
    Items are created on first use and reused afterwards. Only an explicit
    remove() destroys one; its id can then be used for a brand-new item.
    """
    
    def __init__(self, ui: UISurface):
        self._ui = ui
        self._items: dict[str, StatusItem] = {}
    
    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items
    
    def __len__(self) -> int:
        return len(self._items)
    
    def get(self, item_id: str) -> Optional[StatusItem]:
        return self._items.get(item_id)
    
    def get_or_create(self, item_id: str) -> StatusItem:
        item = self._items.get(item_id)
        if item is None:
            item = self._ui.create_status_item(item_id)
            self._items[item_id] = item
            logger.debug(f"Created status item: {item_id}")
        return item
    
    def remove(self, item_id: str) -> bool:
        """
        Hide and dispose an item.
        
        Returns:
            True if the item existed
        """
        item = self._items.pop(item_id, None)
        if item is None:
            logger.debug(f"Status item not found, nothing to remove: {item_id}")
            return False
        item.hide()
        item.dispose()
        logger.debug(f"Removed status item: {item_id}")
        return True
    
    def clear(self) -> None:
        """Dispose every item (extension shutdown)."""
        for item_id in list(self._items):
            self.remove(item_id)
