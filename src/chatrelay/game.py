"""Game session collaborator: the client protocol and its startup factory loader."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chatrelay.config import RelayConfig
    from chatrelay.relay.coordinator import RelayCoordinator

logger = logging.getLogger("chatrelay.game")


class GameClientFactoryError(ValueError):
    """Raised when the configured game client factory can't be resolved."""


@runtime_checkable
class GameClient(Protocol):
    """What the relay needs from a connected game session.

    Implementations own the protocol connection. They report session changes
    to the coordinator (``connect``/``disconnect``) and push every received
    chat line with ``receive_game_chat``.
    """

    async def send_chat(self, text: str) -> None:
        """Send one chat line. Best effort; raising marks the send as failed."""
        ...


GameClientFactory = Callable[["RelayConfig", "RelayCoordinator"], GameClient]


def load_game_client_factory(path: str) -> GameClientFactory:
    """Resolve a ``"package.module:callable"`` path to a game client factory."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise GameClientFactoryError(
            f"Invalid game client factory {path!r}; expected 'package.module:callable'"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise GameClientFactoryError(f"Can't import game client module {module_name!r}: {e}") from e

    factory = getattr(module, attr, None)
    if factory is None or not callable(factory):
        raise GameClientFactoryError(f"{module_name!r} has no callable {attr!r}")
    logger.info("Using game client factory %s", path)
    return factory  # type: ignore[no-any-return]
