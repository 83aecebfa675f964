"""RelayCoordinator — wires filter, throttle, dedup windows, and batcher together."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from chatrelay.models import (
    Emission,
    FromGameSession,
    GameChatEvent,
    RelayNotice,
    RelayOutcome,
    RequestContext,
)
from chatrelay.relay.batcher import OutboundBatcher
from chatrelay.relay.dedup import InboundDedupWindow
from chatrelay.relay.filter import is_legal
from chatrelay.relay.formatting import escape_markdown
from chatrelay.relay.throttle import OutboundThrottle

if TYPE_CHECKING:
    from chatrelay.dispatch import BackgroundSender
    from chatrelay.game import GameClient

logger = logging.getLogger("chatrelay.relay.coordinator")

# (channel_id, content) → awaitable
PlatformSend = Callable[[int, str], Awaitable[None]]
FromGameCallback = Callable[[FromGameSession], None]


class RelayCoordinator:
    """Owns all per-identity and per-channel relay state and runs it one tick at a time.

    Parameters
    ----------
    platform_send:
        Coroutine function that posts one combined message to a channel.
    sender:
        Runs every network send in the background.
    flush_every_ticks:
        The batcher flushes on every Nth game tick.
    on_from_game:
        Optional observer for each deduped line before it is queued for the platform.
    """

    def __init__(
        self,
        platform_send: PlatformSend,
        sender: BackgroundSender,
        *,
        flush_every_ticks: int = 2,
        on_from_game: FromGameCallback | None = None,
        _clock: Callable[[], float] | None = None,
    ) -> None:
        if flush_every_ticks < 1:
            raise ValueError("flush_every_ticks must be at least 1")
        self._platform_send = platform_send
        self._sender = sender
        self._flush_every_ticks = flush_every_ticks
        self._on_from_game = on_from_game
        self._clock = _clock or time.monotonic

        self.throttle = OutboundThrottle(self._send_to_game_client, _clock=self._clock)
        self.batcher = OutboundBatcher(self._send_to_platform, _clock=self._clock)
        self._windows: dict[str, InboundDedupWindow] = {}
        self._clients: dict[str, GameClient] = {}
        self._channel_to_identity: dict[int, str] = {}
        self._inbox: deque[tuple[str, GameChatEvent]] = deque()
        self._tick_count = 0

    # -- sessions and bindings ------------------------------------------------

    def connect(self, identity: str, client: GameClient) -> None:
        """Mark *identity* as in session, sending through *client*."""
        self._clients[identity] = client
        logger.info("Game identity %s connected", identity)

    def disconnect(self, identity: str) -> None:
        """End *identity*'s session and drop everything queued for it."""
        self._clients.pop(identity, None)
        self.throttle.discard(identity)
        self._windows.pop(identity, None)
        self._inbox = deque(item for item in self._inbox if item[0] != identity)
        logger.info("Game identity %s disconnected", identity)

    def is_connected(self, identity: str) -> bool:
        return identity in self._clients

    def bind_channel(self, channel_id: int, identity: str) -> None:
        self._channel_to_identity[channel_id] = identity

    def unbind_channel(self, channel_id: int) -> None:
        self._channel_to_identity.pop(channel_id, None)
        self.batcher.discard(channel_id)

    def identity_for_channel(self, channel_id: int) -> str | None:
        return self._channel_to_identity.get(channel_id)

    def channels_for(self, identity: str) -> list[int]:
        return [ch for ch, ident in self._channel_to_identity.items() if ident == identity]

    def window(self, identity: str) -> InboundDedupWindow | None:
        return self._windows.get(identity)

    # -- intake ---------------------------------------------------------------

    def receive_game_chat(self, identity: str, event: GameChatEvent) -> None:
        """Queue a chat line received by *identity*; it is processed on the next tick."""
        if identity not in self._clients:
            logger.debug("Dropping game chat for %s: not in session", identity)
            return
        if event.sender is not None and event.sender == identity:
            # Our own line echoed back by the server.
            return
        self._inbox.append((identity, event))

    def send_to_game(
        self,
        identity: str | None,
        text: str,
        request_context: RequestContext | None = None,
    ) -> RelayNotice:
        """Validate *text* and queue it for *identity*'s game session."""
        if identity is None or identity not in self._clients:
            return RelayNotice(RelayOutcome.NOT_IN_SESSION, identity, request_context)

        if not is_legal(text):
            logger.info("Rejected illegal message for %s: %r", identity, text[:80])
            return RelayNotice(RelayOutcome.ILLEGAL_MESSAGE, identity, request_context)

        self.throttle.enqueue(identity, text)
        return RelayNotice(RelayOutcome.ACKNOWLEDGED, identity, request_context)

    # -- tick -----------------------------------------------------------------

    def tick(self, now: float | None = None) -> None:
        """Run one game tick.

        Order: evict stale dedup entries, process queued inbound chat, flush
        batches (every Nth tick), then drain the outbound throttle.
        """
        if now is None:
            now = self._clock()
        self._tick_count += 1

        for identity, window in list(self._windows.items()):
            for emission in window.evict_stale(now):
                self._route_from_game(identity, emission)

        while self._inbox:
            identity, event = self._inbox.popleft()
            try:
                self._observe(identity, event, now)
            except Exception:
                logger.exception("Skipping game chat event for %s: %r", identity, event)

        if self._tick_count % self._flush_every_ticks == 0:
            self.batcher.tick_all()

        self.throttle.tick_all()

    def _observe(self, identity: str, event: GameChatEvent, now: float) -> None:
        if not isinstance(event.text, str):
            logger.warning("Skipping game chat event with non-text content: %r", event)
            return
        window = self._windows.get(identity)
        if window is None:
            window = self._windows[identity] = InboundDedupWindow(_clock=self._clock)
        emission = window.observe(event.text, event, now)
        if emission is not None:
            self._route_from_game(identity, emission)

    def _route_from_game(self, identity: str, emission: Emission) -> None:
        if self._on_from_game is not None:
            try:
                self._on_from_game(FromGameSession(identity, emission.content, emission.metadata))
            except Exception:
                logger.warning("on_from_game callback error for %s", identity, exc_info=True)

        channels = self.channels_for(identity)
        if not channels:
            logger.debug("No channel bound to %s; dropping %r", identity, emission.content)
            return
        line = escape_markdown(emission.content)
        for channel_id in channels:
            self.batcher.enqueue(channel_id, line)

    # -- send primitives ------------------------------------------------------

    def _send_to_game_client(self, identity: str, text: str) -> None:
        client = self._clients.get(identity)
        if client is None:
            logger.warning("No game client for %s; dropping %r", identity, text)
            return
        self._sender.submit(client.send_chat(text), f"game chat for {identity}")

    def _send_to_platform(self, channel_id: int, content: str) -> None:
        self._sender.submit(
            self._platform_send(channel_id, content), f"message to channel {channel_id}"
        )
