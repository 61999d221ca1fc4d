"""Background refresh manager for periodic index rebuilds.

Runs an asyncio task that periodically calls service.rebuild_index() to pick
up record changes made outside of incremental updates.
"""

import asyncio
import logging

from projiki_search.service import SearchService

logger = logging.getLogger(__name__)


class RefreshManager:
    """Manages periodic background rebuilds of the search index."""

    def __init__(self, service: SearchService, interval: float):
        """Initialize the refresh manager.

        Args:
            service: The search service whose index is rebuilt.
            interval: Refresh interval in seconds. Must be > 0.
        """
        if interval <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval}")

        self._service = service
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background refresh task. Must be called from a running loop."""
        if self.running:
            logger.warning("Refresh task already running")
            return

        self._task = asyncio.create_task(self._refresh_loop(), name="projiki-refresh")
        logger.info("Refresh manager started (interval: %ss)", self._interval)

    async def stop(self) -> None:
        """Cancel the refresh task and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Refresh manager stopped")

    async def _refresh_loop(self) -> None:
        """Main refresh loop."""
        logger.debug("Refresh loop started")

        while True:
            # Sleep first, then rebuild
            await asyncio.sleep(self._interval)

            try:
                count = await self._service.rebuild_index()
                logger.debug("Auto-refresh: %d documents indexed", count)
            except Exception:
                logger.exception("Error during auto-refresh")
