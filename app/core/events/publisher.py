"""
Event publishers for booking state transitions.

Services call a publisher only after their unit of work has committed.
Delivery is fire-and-forget: a failing publisher is logged and never
affects the outcome of the operation that emitted the event.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import redis

from app.config.settings import Settings, get_settings
from app.core.events.base_event import BookingEvent
from app.core.logging import get_logger

logger = get_logger(__name__)


class EventPublisher(ABC):
    """Interface for booking event fan-out."""

    @abstractmethod
    def publish(self, event: BookingEvent) -> None:
        """Deliver a single event."""

    def emit(
        self,
        event_type: str,
        booking_id: str,
        state: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.publish(BookingEvent(event_type, booking_id, state, payload))


class NullEventPublisher(EventPublisher):
    """Publisher that drops every event."""

    def publish(self, event: BookingEvent) -> None:
        return None


class LoggingEventPublisher(EventPublisher):
    """Publisher that writes events to the application log."""

    def publish(self, event: BookingEvent) -> None:
        logger.info(
            f"Event {event.event_type} for booking {event.booking_id}",
            extra={"booking_event": event.to_dict()},
        )


class RedisEventPublisher(EventPublisher):
    """Publisher that pushes JSON events onto a Redis pub/sub channel."""

    def __init__(self, client: "redis.Redis", channel: str):
        self.client = client
        self.channel = channel

    @classmethod
    def from_url(cls, url: str, channel: str) -> "RedisEventPublisher":
        return cls(redis.Redis.from_url(url), channel)

    def publish(self, event: BookingEvent) -> None:
        self.client.publish(self.channel, event.to_json())


def safe_publish(
    publisher: EventPublisher,
    event_type: str,
    booking_id: str,
    state: str,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Emit an event, logging instead of raising when delivery fails."""
    try:
        publisher.emit(event_type, booking_id, state, payload)
    except Exception as exc:
        logger.warning(
            f"Failed to publish {event_type} for booking {booking_id}: {exc}",
            extra={"event_type": event_type, "booking_id": booking_id},
        )


def build_event_publisher(settings: Optional[Settings] = None) -> EventPublisher:
    """Create the publisher selected by EVENT_PUBLISHER."""
    settings = settings or get_settings()

    if settings.EVENT_PUBLISHER == "redis":
        return RedisEventPublisher.from_url(settings.get_redis_url(), settings.EVENT_CHANNEL)
    if settings.EVENT_PUBLISHER == "none":
        return NullEventPublisher()
    return LoggingEventPublisher()
