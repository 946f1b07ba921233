"""Outbound events of the product composition."""

from stream_compositions.events.bus import (
    EventBus,
    InMemoryEventBus,
    SvixEventBus,
    build_event_bus,
)
from stream_compositions.events.constants.event_types import EventType

__all__ = ["EventBus", "EventType", "InMemoryEventBus", "SvixEventBus", "build_event_bus"]
