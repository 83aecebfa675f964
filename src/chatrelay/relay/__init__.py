"""Relay core — legality filter, outbound throttle, dedup window, batcher, coordinator."""

from chatrelay.relay.batcher import OutboundBatcher
from chatrelay.relay.coordinator import RelayCoordinator
from chatrelay.relay.dedup import InboundDedupWindow
from chatrelay.relay.filter import is_legal
from chatrelay.relay.throttle import OutboundThrottle

__all__ = [
    "InboundDedupWindow",
    "OutboundBatcher",
    "OutboundThrottle",
    "RelayCoordinator",
    "is_legal",
]
