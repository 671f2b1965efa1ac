import json

from app.core.events.base_event import BookingEvent
from app.core.events.publisher import (
    EventPublisher,
    LoggingEventPublisher,
    NullEventPublisher,
    RedisEventPublisher,
    build_event_publisher,
    safe_publish,
)


class _FakeRedis:
    def __init__(self):
        self.messages = []

    def publish(self, channel, message):
        self.messages.append((channel, message))


class _BrokenPublisher(EventPublisher):
    def publish(self, event):
        raise ConnectionError("broker unreachable")


def test_booking_event_payload():
    event = BookingEvent("verification.verified", "b-1", "verified", {"radius_m": 100.0})

    data = event.to_dict()["data"]

    assert data == {"radius_m": 100.0, "booking_id": "b-1", "state": "verified"}
    assert json.loads(event.to_json())["event_type"] == "verification.verified"


def test_redis_publisher_sends_json():
    client = _FakeRedis()
    publisher = RedisEventPublisher(client, "booking-events")

    publisher.emit("booking.cancelled", "b-1", "cancelled", {"reason": "location_verification_failed"})

    channel, message = client.messages[0]
    assert channel == "booking-events"
    assert json.loads(message)["data"]["reason"] == "location_verification_failed"


def test_safe_publish_swallows_delivery_errors():
    safe_publish(_BrokenPublisher(), "booking.completed", "b-1", "completed")


def test_build_event_publisher_selects_backend(settings):
    assert isinstance(build_event_publisher(settings.model_copy(update={"EVENT_PUBLISHER": "none"})), NullEventPublisher)
    assert isinstance(
        build_event_publisher(settings.model_copy(update={"EVENT_PUBLISHER": "logging"})),
        LoggingEventPublisher,
    )
