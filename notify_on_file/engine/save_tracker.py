"""Save-origin tracking - was a changed file just saved by the editor?"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from ..models.settings import DEFAULT_SAVE_ORIGIN_WINDOW_MS

logger = logging.getLogger(__name__)


class SaveOriginTracker:
    """
    Remembers paths the editor saved for a short window.

    The editor's "document saved" notification arrives just before the file
    system reports the change. While a path is remembered, a change event for
    it is attributed to the editor; afterwards to an external program.

    Entries map a path to its expiry deadline. Lookups drop expired entries
    lazily and a background task sweeps the rest.
    """

    def __init__(
        self,
        window_ms: float = DEFAULT_SAVE_ORIGIN_WINDOW_MS,
        clock: Optional[Callable[[], float]] = None,
        sweep_interval: float = 1.0,
    ):
        self.window_ms = window_ms
        self.sweep_interval = sweep_interval
        self._clock = clock or time.monotonic
        self._deadlines: dict[str, float] = {}
        self._sweep_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._deadlines)

    @staticmethod
    def _key(path: Path | str) -> str:
        # Symlinked and real paths of one file share an entry
        return str(Path(path).resolve())

    def mark(self, path: Path | str) -> None:
        """Record that the editor just saved path."""
        key = self._key(path)
        self._deadlines[key] = self._clock() + self.window_ms / 1000.0
        logger.debug(f"Marked editor save: {key}")

    def was_saved_internally(self, path: Path | str) -> bool:
        """Check whether path was saved by the editor within the window."""
        key = self._key(path)
        deadline = self._deadlines.get(key)
        if deadline is None:
            return False
        if self._clock() >= deadline:
            del self._deadlines[key]
            return False
        return True

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were dropped."""
        now = self._clock()
        expired = [key for key, deadline in self._deadlines.items() if now >= deadline]
        for key in expired:
            del self._deadlines[key]
        return len(expired)

    def clear(self) -> None:
        self._deadlines.clear()

    # -------------------------------------------------------------------------
    # Sweep task
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic sweep."""
        if self._sweep_task and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Stop the periodic sweep and forget every entry."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        self.clear()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            dropped = self.sweep()
            if dropped:
                logger.debug(f"Expired {dropped} editor save(s)")
