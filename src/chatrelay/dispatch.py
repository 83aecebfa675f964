"""BackgroundSender — fire-and-forget execution of network sends."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Coroutine
from typing import Any

from chatrelay.models import TransientSendFailure

logger = logging.getLogger("chatrelay.dispatch")


class BackgroundSender:
    """Runs send coroutines as detached tasks and logs their failures.

    Tick handlers call ``submit()`` and return immediately; a slow or failing
    send never stalls the tick. Failed sends are logged and dropped, since a
    retry could deliver the same line twice.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task[Any]:
        """Schedule *coro* on the running loop. *description* names it in logs."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(t, description))
        return task

    def _on_done(self, task: asyncio.Task[Any], description: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("Send cancelled: %s", description)
            return
        exc = task.exception()
        if exc is None:
            return
        failure = TransientSendFailure(f"{description}: {exc}")
        logger.warning("%s", failure, exc_info=exc)

    async def drain(self) -> None:
        """Wait for every in-flight send to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel every in-flight send and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task
