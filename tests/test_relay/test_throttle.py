"""Tests for chatrelay.relay.throttle — token-bucket outbound game queue."""

from __future__ import annotations

import pytest

from chatrelay.models import UnknownIdentityError
from chatrelay.relay.throttle import MAX_SPAM_CREDIT, OutboundThrottle


@pytest.fixture
def sent() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def throttle(sent: list[tuple[str, str]]) -> OutboundThrottle:
    return OutboundThrottle(lambda identity, text: sent.append((identity, text)))


class TestEnqueue:
    def test_auto_creates_state(self, throttle: OutboundThrottle) -> None:
        throttle.enqueue("bot", "hello")
        assert throttle.identities() == ["bot"]
        assert throttle.pending("bot") == ["hello"]
        assert throttle.spam_credit("bot") == 0

    def test_unknown_identity_raises(self, throttle: OutboundThrottle) -> None:
        with pytest.raises(UnknownIdentityError):
            throttle.tick("nobody")
        with pytest.raises(UnknownIdentityError):
            throttle.spam_credit("nobody")


class TestDrain:
    def test_burst_then_blocked(
        self, throttle: OutboundThrottle, sent: list[tuple[str, str]]
    ) -> None:
        for i in range(7):
            throttle.enqueue("bot", f"line {i}")

        drained = throttle.tick("bot")
        assert drained == [f"line {i}" for i in range(5)]
        assert throttle.spam_credit("bot") == 100
        assert sent == [("bot", f"line {i}") for i in range(5)]

        assert throttle.tick("bot") == []
        assert throttle.spam_credit("bot") == 99
        assert throttle.pending("bot") == ["line 5", "line 6"]

    def test_one_line_per_twenty_ticks_when_saturated(self, throttle: OutboundThrottle) -> None:
        for i in range(10):
            throttle.enqueue("bot", f"line {i}")
        throttle.tick("bot")  # drains 5, credit 100

        drained_at: list[int] = []
        for t in range(1, 41):
            if throttle.tick("bot"):
                drained_at.append(t)
        # Credit must fall to 80 before another line fits.
        assert drained_at == [20, 40]

    def test_fifo_across_partial_drains(
        self, throttle: OutboundThrottle, sent: list[tuple[str, str]]
    ) -> None:
        for i in range(12):
            throttle.enqueue("bot", f"m{i}")
        for _ in range(200):
            throttle.tick("bot")
        assert [text for _, text in sent] == [f"m{i}" for i in range(12)]

    def test_no_loss_without_disconnect(
        self, throttle: OutboundThrottle, sent: list[tuple[str, str]]
    ) -> None:
        total = 0
        for round_ in range(30):
            for i in range(round_ % 4):
                throttle.enqueue("bot", f"{round_}-{i}")
                total += 1
            throttle.tick("bot")
        for _ in range(20 * total):
            throttle.tick("bot")
        assert len(sent) == total
        assert throttle.pending("bot") == []

    def test_credit_stays_in_bounds(self, throttle: OutboundThrottle) -> None:
        for i in range(50):
            throttle.enqueue("bot", str(i))
            throttle.enqueue("bot", str(i))
            throttle.tick("bot")
            assert 0 <= throttle.spam_credit("bot") <= MAX_SPAM_CREDIT

    def test_empty_queue_decays_credit(self, throttle: OutboundThrottle) -> None:
        throttle.enqueue("bot", "x")
        throttle.tick("bot")
        assert throttle.spam_credit("bot") == 20
        for _ in range(25):
            throttle.tick("bot")
        assert throttle.spam_credit("bot") == 0

    def test_identities_are_independent(
        self, throttle: OutboundThrottle, sent: list[tuple[str, str]]
    ) -> None:
        for i in range(6):
            throttle.enqueue("a", f"a{i}")
        throttle.enqueue("b", "b0")
        assert throttle.tick_all() == 6
        assert ("b", "b0") in sent
        assert throttle.pending("a") == ["a5"]


class TestDiscard:
    def test_discard_drops_state_and_lines(
        self, throttle: OutboundThrottle, sent: list[tuple[str, str]]
    ) -> None:
        throttle.enqueue("bot", "never sent")
        throttle.discard("bot")
        assert throttle.identities() == []
        assert throttle.tick_all() == 0
        assert sent == []

    def test_discard_unknown_is_noop(self, throttle: OutboundThrottle) -> None:
        throttle.discard("nobody")
