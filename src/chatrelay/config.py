"""Relay configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from chatrelay.scheduler import DEFAULT_TICK_INTERVAL_S

logger = logging.getLogger("chatrelay.config")


def _env_int(name: str, default: int | None = None) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class RelayConfig:
    """Immutable relay configuration. Construct via ``from_env()`` or directly for tests."""

    discord_token: str
    discord_channel_id: int
    game_identity: str = "relaybot"
    game_client_factory: str | None = None
    tick_interval: float = DEFAULT_TICK_INTERVAL_S
    flush_every_ticks: int = 2

    @classmethod
    def from_env(cls) -> RelayConfig:
        """Build config from ``os.environ``. Raises ``ValueError`` on missing or bad values."""
        token = os.environ.get("DISCORD_TOKEN", "").strip()
        if not token:
            raise ValueError("DISCORD_TOKEN is required but missing or empty")

        channel_id = _env_int("DISCORD_CHANNEL_ID")
        if channel_id is None:
            raise ValueError("DISCORD_CHANNEL_ID is required but missing or empty")

        identity = os.environ.get("RELAY_GAME_IDENTITY", "").strip() or "relaybot"
        factory = os.environ.get("RELAY_GAME_CLIENT", "").strip() or None

        raw_interval = os.environ.get("RELAY_TICK_INTERVAL", "").strip()
        try:
            tick_interval = float(raw_interval) if raw_interval else DEFAULT_TICK_INTERVAL_S
        except ValueError:
            raise ValueError(
                f"RELAY_TICK_INTERVAL must be a number of seconds, got {raw_interval!r}"
            ) from None
        if tick_interval <= 0:
            raise ValueError("RELAY_TICK_INTERVAL must be positive")

        flush_every = _env_int("RELAY_FLUSH_EVERY_TICKS", 2)
        assert flush_every is not None
        if flush_every < 1:
            raise ValueError("RELAY_FLUSH_EVERY_TICKS must be at least 1")

        config = cls(
            discord_token=token,
            discord_channel_id=channel_id,
            game_identity=identity,
            game_client_factory=factory,
            tick_interval=tick_interval,
            flush_every_ticks=flush_every,
        )
        logger.info(
            "Config loaded: channel=%s, identity=%s, tick=%.3fs, flush every %d tick(s)",
            channel_id, identity, tick_interval, flush_every,
        )
        return config
