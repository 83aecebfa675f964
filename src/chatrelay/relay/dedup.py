"""InboundDedupWindow — collapses repeated game chat into decorated notifications.

A window holds the most recently seen distinct lines, oldest first. A
repeated line moves to the back with its count bumped. Counts that land on a
power of two are announced immediately (``"gg [x4]"``); any other count above
two is announced once, when the entry is finally evicted.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable
from typing import Any

from chatrelay.models import Emission, RecentMessage
from chatrelay.relay.formatting import format_for_repeats

logger = logging.getLogger("chatrelay.relay.dedup")

SOFT_MAX_ENTRIES = 5


def is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def stale_threshold(repeat_count: int) -> float:
    """Seconds an entry may sit at the front before it is evicted.

    Lines repeated many times get more leeway, so a spammer's burst is
    reported as one big count instead of several small ones.
    """
    if repeat_count > 32:
        return 16
    if repeat_count > 16:
        return 8
    return 2


class InboundDedupWindow:
    """Sliding, count-sensitive dedup window for one game identity."""

    def __init__(
        self,
        soft_max: int = SOFT_MAX_ENTRIES,
        _clock: Callable[[], float] | None = None,
    ) -> None:
        self.soft_max = soft_max
        self._clock = _clock or time.monotonic
        self._entries: deque[RecentMessage] = deque()

    def __len__(self) -> int:
        return len(self._entries)

    def contents(self) -> list[str]:
        """Current entry contents, oldest first."""
        return [entry.content for entry in self._entries]

    def observe(self, text: str, metadata: Any = None, now: float | None = None) -> Emission | None:
        """Record an incoming line and decide whether to emit it now."""
        if now is None:
            now = self._clock()

        for entry in self._entries:
            if entry.content == text:
                self._entries.remove(entry)
                break
        else:
            self._entries.append(RecentMessage(text, 1, now, metadata))
            return Emission(content=text, metadata=metadata, repeat_count=1)

        count = entry.repeat_count + 1
        self._entries.append(RecentMessage(text, count, now, metadata))
        if is_power_of_two(count):
            return Emission(format_for_repeats(text, count), metadata, count)
        logger.debug("Absorbed repeat #%d of %r", count, text)
        return None

    def evict_stale(self, now: float | None = None) -> list[Emission]:
        """Pop entries that are over capacity or stale, reporting unannounced counts."""
        if now is None:
            now = self._clock()

        emissions: list[Emission] = []
        # Each pass pops one entry, so the starting size bounds the loop.
        for _ in range(len(self._entries)):
            front = self._entries[0]
            waited_enough = now - front.last_seen_at > stale_threshold(front.repeat_count)
            if len(self._entries) <= self.soft_max and not waited_enough:
                break
            self._entries.popleft()

            # Powers of two were already announced when they happened.
            if front.repeat_count > 2 and not is_power_of_two(front.repeat_count):
                emissions.append(
                    Emission(
                        format_for_repeats(front.content, front.repeat_count),
                        front.metadata,
                        front.repeat_count,
                    )
                )
        return emissions
