"""
Base event class for the event system.
"""
import json
from abc import ABC
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4


class BaseEvent(ABC):
    """Base class for all events in the system."""

    def __init__(self, event_type: str, data: Optional[Dict[str, Any]] = None):
        self.event_id = str(uuid4())
        self.event_type = event_type
        self.data = data or {}
        self.occurred_at = datetime.now(timezone.utc)

    def __str__(self) -> str:
        return f"{self.event_type}({self.event_id})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "data": self.data,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class BookingEvent(BaseEvent):
    """Events emitted after a booking state transition has been committed."""

    def __init__(
        self,
        event_type: str,
        booking_id: str,
        state: str,
        payload: Optional[Dict[str, Any]] = None,
    ):
        data = dict(payload or {})
        data["booking_id"] = booking_id
        data["state"] = state
        super().__init__(event_type, data)
        self.booking_id = booking_id
        self.state = state
