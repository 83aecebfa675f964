"""Per-channel batched, rate-limited queue for Discord sends."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

from chatrelay.models import PendingOutboundLine, UnknownChannelError

logger = logging.getLogger("chatrelay.relay.batcher")

# Discord caps messages at 2000 characters; half of that keeps us clear of it.
MAX_PAYLOAD_CHARS = 1000
RATE_LIMIT_CREDIT = 100
CREDIT_PER_LINE = 20

# (channel_id, content) → None, fire-and-forget
SendMessage = Callable[[int, str], None]


@dataclass
class BatchState:
    """Queued lines and rate credit for one channel."""

    queue: deque[PendingOutboundLine] = field(default_factory=deque)
    rate_credit: int = 0


class OutboundBatcher:
    """Packs queued lines into combined sends under a size and rate budget.

    Lines must already be escaped for the destination. Each line accepted
    into a batch costs ``CREDIT_PER_LINE``; credit decays by one per flush
    tick and nothing is sent while it is at or above ``RATE_LIMIT_CREDIT``.
    """

    def __init__(
        self,
        send_message: SendMessage,
        max_payload: int = MAX_PAYLOAD_CHARS,
        _clock: Callable[[], float] | None = None,
    ) -> None:
        self._send_message = send_message
        self._max_payload = max_payload
        self._clock = _clock or time.monotonic
        self._states: dict[int, BatchState] = {}

    def enqueue(self, channel_id: int, line: str) -> None:
        state = self._states.setdefault(channel_id, BatchState())
        state.queue.append(PendingOutboundLine(content=line, enqueued_at=self._clock()))

    def tick(self, channel_id: int) -> str | None:
        """Flush what fits for *channel_id*. Returns the payload sent, if any."""
        state = self._get(channel_id)

        if state.rate_credit > 0:
            state.rate_credit -= 1
        if state.rate_credit >= RATE_LIMIT_CREDIT:
            if state.queue:
                logger.debug(
                    "Rate limited on channel %s: %d queued, credit=%d",
                    channel_id, len(state.queue), state.rate_credit,
                )
            return None

        lines: list[str] = []
        size = 0
        while state.queue:
            content = state.queue[0].content
            added = len(content) if not lines else len(content) + 1
            if size + added > self._max_payload:
                if lines:
                    break
                logger.warning(
                    "Line of %d chars exceeds the %d char budget on channel %s, truncating",
                    len(content), self._max_payload, channel_id,
                )
                content = content[: self._max_payload]
                added = len(content)
            state.queue.popleft()
            state.rate_credit += CREDIT_PER_LINE
            lines.append(content)
            size += added

        if not lines:
            return None

        payload = "\n".join(lines)
        self._send_message(channel_id, payload)
        return payload

    def tick_all(self) -> int:
        """Tick every tracked channel. Returns the number of sends issued."""
        return sum(1 for channel_id in list(self._states) if self.tick(channel_id) is not None)

    def discard(self, channel_id: int) -> None:
        self._states.pop(channel_id, None)

    def rate_credit(self, channel_id: int) -> int:
        return self._get(channel_id).rate_credit

    def pending(self, channel_id: int) -> list[str]:
        return [line.content for line in self._get(channel_id).queue]

    def channels(self) -> list[int]:
        return list(self._states)

    def _get(self, channel_id: int) -> BatchState:
        try:
            return self._states[channel_id]
        except KeyError:
            raise UnknownChannelError(channel_id) from None
