"""Shared test fixtures for chatrelay."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from chatrelay.config import RelayConfig
from chatrelay.dispatch import BackgroundSender
from chatrelay.relay.coordinator import RelayCoordinator

CHANNEL_ID = 987654321
IDENTITY = "relaybot"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSender:
    """Stand-in for BackgroundSender that closes submitted coroutines and records them."""

    def __init__(self) -> None:
        self.submitted: list[str] = []

    def submit(self, coro: Any, description: str) -> None:
        coro.close()
        self.submitted.append(description)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tmp_env(monkeypatch: pytest.MonkeyPatch) -> RelayConfig:
    """Set environment variables for config tests and return the expected config."""
    monkeypatch.setenv("DISCORD_TOKEN", "test-token-123")
    monkeypatch.setenv("DISCORD_CHANNEL_ID", str(CHANNEL_ID))
    monkeypatch.setenv("RELAY_GAME_IDENTITY", IDENTITY)
    monkeypatch.setenv("RELAY_GAME_CLIENT", "mygame.client:build")
    monkeypatch.setenv("RELAY_TICK_INTERVAL", "0.1")
    monkeypatch.setenv("RELAY_FLUSH_EVERY_TICKS", "4")
    return RelayConfig(
        discord_token="test-token-123",
        discord_channel_id=CHANNEL_ID,
        game_identity=IDENTITY,
        game_client_factory="mygame.client:build",
        tick_interval=0.1,
        flush_every_ticks=4,
    )


@pytest.fixture
def relay_config() -> RelayConfig:
    return RelayConfig(discord_token="test-token", discord_channel_id=CHANNEL_ID)


@pytest.fixture
def game_client() -> MagicMock:
    """Mock game client recording every chat line sent."""
    client = MagicMock()
    client.sent = []

    async def send_chat(text: str) -> None:
        client.sent.append(text)

    client.send_chat = AsyncMock(side_effect=send_chat)
    return client


@pytest.fixture
def platform_send() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def sender() -> BackgroundSender:
    return BackgroundSender()


@pytest.fixture
def coordinator(
    platform_send: AsyncMock,
    sender: BackgroundSender,
    clock: FakeClock,
) -> RelayCoordinator:
    """Coordinator with one bound channel, flushing the batcher every tick."""
    coord = RelayCoordinator(platform_send, sender, flush_every_ticks=1, _clock=clock)
    coord.bind_channel(CHANNEL_ID, IDENTITY)
    return coord


@pytest.fixture
def recording_sender() -> RecordingSender:
    return RecordingSender()
