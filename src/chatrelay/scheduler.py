"""TickLoop — periodic asyncio task that drives the relay coordinator."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatrelay.relay.coordinator import RelayCoordinator

logger = logging.getLogger("chatrelay.scheduler")

# Minecraft runs 20 ticks per second.
DEFAULT_TICK_INTERVAL_S = 0.05


class TickLoop:
    """Calls ``coordinator.tick()`` every *interval* seconds until stopped.

    An exception raised by a tick is logged and the loop carries on with the
    next one.
    """

    def __init__(
        self,
        coordinator: RelayCoordinator,
        interval: float = DEFAULT_TICK_INTERVAL_S,
    ) -> None:
        self._coordinator = coordinator
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the tick task. Calling it again while running is a no-op."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the tick task."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval)
                self.ticks += 1
                try:
                    self._coordinator.tick()
                except Exception:
                    logger.exception("Relay tick %d failed", self.ticks)
        except asyncio.CancelledError:
            logger.debug("TickLoop cancelled after %d ticks", self.ticks)
            raise
