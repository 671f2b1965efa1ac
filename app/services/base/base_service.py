"""
Base service class providing common functionality for all services.
"""

from abc import ABC
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.config.settings import Settings, get_settings
from app.core.events.publisher import EventPublisher, NullEventPublisher, safe_publish
from app.core.logging import get_logger
from app.services.base.transaction_manager import TransactionContext, TransactionManager


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseService(ABC):
    """
    Base service with common behaviors:
    - Shared logger, settings and db session
    - Transaction management through TransactionManager
    - Event publication deferred until commit
    - Injectable clock
    """

    def __init__(
        self,
        db_session: Session,
        publisher: Optional[EventPublisher] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize base service.

        Args:
            db_session: SQLAlchemy database session
            publisher: Event publisher (events are dropped when omitted)
            settings: Settings override
            clock: Callable returning the current UTC time
        """
        self.db: Session = db_session
        self.publisher: EventPublisher = publisher or NullEventPublisher()
        self.settings: Settings = settings or get_settings()
        self.clock: Clock = clock or utc_now
        self.transactions = TransactionManager(db_session)
        self._logger = get_logger(self.__class__.__name__)

    def transaction(self, isolation_level: Optional[str] = None):
        """
        Context manager for a unit of work.

        Example:
            with self.transaction() as ctx:
                booking = self.bookings.get_for_update(booking_id)
                ...
        """
        return self.transactions.start(isolation_level=isolation_level)

    def publish_after_commit(
        self,
        ctx: TransactionContext,
        event_type: str,
        booking_id: str,
        state: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Queue an event that is only emitted if ``ctx`` commits."""
        ctx.after_commit(
            lambda: safe_publish(self.publisher, event_type, booking_id, state, payload)
        )
