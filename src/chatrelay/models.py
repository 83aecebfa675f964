"""Data models for the relay: queue entries, window entries, events, and notices."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class UnknownIdentityError(KeyError):
    """Raised when a throttle operation targets an identity with no tracked state."""


class UnknownChannelError(KeyError):
    """Raised when a batcher operation targets a channel with no tracked state."""


class TransientSendFailure(Exception):
    """A fire-and-forget send to the game or the platform failed. Logged, never retried."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RelayOutcome(Enum):
    """Result of a request to relay a platform message into the game."""

    ACKNOWLEDGED = "acknowledged"
    ILLEGAL_MESSAGE = "illegal_message"
    NOT_IN_SESSION = "not_in_session"


# ---------------------------------------------------------------------------
# Queue and window state
# ---------------------------------------------------------------------------


@dataclass
class PendingOutboundLine:
    """A line waiting in a throttle or batcher queue."""

    content: str
    enqueued_at: float


@dataclass
class RecentMessage:
    """An entry in a dedup window. ``content`` is the dedup key."""

    content: str
    repeat_count: int
    last_seen_at: float
    metadata: Any = None


@dataclass
class Emission:
    """A (possibly decorated) line to forward downstream."""

    content: str
    metadata: Any = None
    repeat_count: int = 1


# ---------------------------------------------------------------------------
# Events crossing the relay boundary
# ---------------------------------------------------------------------------


@dataclass
class GameChatEvent:
    """A chat line received from the game session."""

    text: str
    sender: str | None = None
    raw: Any = None


@dataclass
class FromGameSession:
    """Deduped/decorated game text, tagged with the identity that received it."""

    identity: str
    content: str
    metadata: Any = None


@dataclass(frozen=True)
class RequestContext:
    """Where a relay request came from, so notices can be correlated back."""

    channel_id: int
    message_id: int


@dataclass
class RelayNotice:
    """Outcome of ``RelayCoordinator.send_to_game``."""

    outcome: RelayOutcome
    identity: str | None
    request_context: RequestContext | None = None


@dataclass
class PlatformMessage:
    """A message created on the external platform, reduced to the fields the relay needs."""

    author_id: int
    author_name: str
    channel_id: int
    message_id: int
    content: str
    is_bot: bool = False
    discriminator: str = "0"

    @property
    def request_context(self) -> RequestContext:
        return RequestContext(channel_id=self.channel_id, message_id=self.message_id)
