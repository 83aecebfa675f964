"""OutboundThrottle — token-bucket queue for lines sent into the game session."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

from chatrelay.models import PendingOutboundLine, UnknownIdentityError

logger = logging.getLogger("chatrelay.relay.throttle")

# The server kicks at 200; staying at half of it leaves room for clock drift.
MAX_SPAM_CREDIT = 100
CREDIT_PER_LINE = 20

# (identity, text) → None, fire-and-forget
SendLine = Callable[[str, str], None]


@dataclass
class ThrottleState:
    """Queue and spam credit for one game identity."""

    queue: deque[PendingOutboundLine] = field(default_factory=deque)
    spam_credit: int = 0


class OutboundThrottle:
    """Queues outbound game lines per identity and drains them under a spam budget.

    Each drained line costs ``CREDIT_PER_LINE``; credit decays by one per
    tick and never exceeds ``MAX_SPAM_CREDIT``. State for an identity is
    created on its first ``enqueue``; ``tick`` and the inspection helpers
    raise ``UnknownIdentityError`` for identities that were never enqueued
    to (or were discarded).
    """

    def __init__(
        self,
        send_line: SendLine,
        _clock: Callable[[], float] | None = None,
    ) -> None:
        self._send_line = send_line
        self._clock = _clock or time.monotonic
        self._states: dict[str, ThrottleState] = {}

    def enqueue(self, identity: str, text: str) -> None:
        state = self._states.setdefault(identity, ThrottleState())
        state.queue.append(PendingOutboundLine(content=text, enqueued_at=self._clock()))

    def tick(self, identity: str) -> list[str]:
        """Advance one game tick for *identity*, returning the lines forwarded."""
        state = self._get(identity)

        if state.spam_credit > 0:
            state.spam_credit -= 1

        max_drain = (MAX_SPAM_CREDIT - state.spam_credit) // CREDIT_PER_LINE
        n = min(max_drain, len(state.queue))
        state.spam_credit += n * CREDIT_PER_LINE

        drained = [state.queue.popleft().content for _ in range(n)]
        for line in drained:
            logger.debug("Draining chat line for %s: %s", identity, line)
            self._send_line(identity, line)

        if state.queue and n == 0:
            logger.debug(
                "Throttled %s: %d queued, credit=%d",
                identity, len(state.queue), state.spam_credit,
            )
        return drained

    def tick_all(self) -> int:
        """Tick every tracked identity. Returns the total number of lines forwarded."""
        return sum(len(self.tick(identity)) for identity in list(self._states))

    def discard(self, identity: str) -> None:
        """Drop *identity*'s state. Undrained lines are lost."""
        state = self._states.pop(identity, None)
        if state is not None and state.queue:
            logger.info("Dropping %d undrained line(s) for %s", len(state.queue), identity)

    def spam_credit(self, identity: str) -> int:
        return self._get(identity).spam_credit

    def pending(self, identity: str) -> list[str]:
        return [line.content for line in self._get(identity).queue]

    def identities(self) -> list[str]:
        return list(self._states)

    def _get(self, identity: str) -> ThrottleState:
        try:
            return self._states[identity]
        except KeyError:
            raise UnknownIdentityError(identity) from None
