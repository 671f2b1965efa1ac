"""
Event system for booking state transitions.
"""

from .base_event import BaseEvent, BookingEvent
from .publisher import (
    EventPublisher,
    LoggingEventPublisher,
    NullEventPublisher,
    RedisEventPublisher,
    build_event_publisher,
    safe_publish,
)

__all__ = [
    "BaseEvent",
    "BookingEvent",
    "EventPublisher",
    "LoggingEventPublisher",
    "NullEventPublisher",
    "RedisEventPublisher",
    "build_event_publisher",
    "safe_publish",
]
