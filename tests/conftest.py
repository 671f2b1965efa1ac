import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EVENT_PUBLISHER"] = "none"
os.environ["LOG_FORMAT"] = "text"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENVIRONMENT"] = "test"

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.settings import get_settings
from app.core.events.base_event import BookingEvent
from app.core.events.publisher import EventPublisher
from app.core.exceptions import ProcessorFailure
from app.db.base import Base
from app.models.base.enums import BookingStatus, PaymentStatus
from app.models.booking.booking import Booking
from app.models.booking.booking_verification import BookingVerification
from app.models.payment.payout_account import PayoutAccount
from app.services.admin.dispute_service import DisputeService
from app.services.booking.verification_service import VerificationService
from app.services.payment.settlement_service import SettlementService

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

REQUESTER_ID = "requester-1"
PROVIDER_ID = "provider-1"
REQUESTER_CODE = "111111"
PROVIDER_CODE = "222222"


class FakePaymentProcessor:
    """Records every call; operations listed in ``fail_on`` raise ProcessorFailure."""

    def __init__(self):
        self.calls = []
        self.fail_on = set()

    def _call(self, operation, *args):
        self.calls.append((operation,) + args)
        if operation in self.fail_on:
            raise ProcessorFailure(
                f"Payment processor {operation} failed",
                operation=operation,
                processor_error="card_declined",
            )

    @property
    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]

    def authorize(self, amount, payer_ref):
        self._call("authorize", amount, payer_ref)
        return "pi_new"

    def capture(self, authorization_ref):
        self._call("capture", authorization_ref)
        return authorization_ref

    def cancel(self, authorization_ref):
        self._call("cancel", authorization_ref)

    def transfer(self, destination_ref, amount, metadata=None):
        self._call("transfer", destination_ref, amount)
        return "tr_1"


class RecordingPublisher(EventPublisher):
    def __init__(self):
        self.events: List[BookingEvent] = []

    def publish(self, event: BookingEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> List[str]:
        return [event.event_type for event in self.events]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def settings():
    return get_settings().model_copy(
        update={
            "VERIFICATION_RADIUS_METERS": 100.0,
            "OTP_LENGTH": 6,
            "MAX_OTP_ATTEMPTS": 3,
            "AUTO_SETTLE_ON_VERIFICATION": True,
        }
    )


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def processor():
    return FakePaymentProcessor()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def make_booking(db_session):
    """Persist a booking with its verification record and, optionally, a payout account."""

    def _make(
        status: BookingStatus = BookingStatus.CONFIRMED,
        payment_status: PaymentStatus = PaymentStatus.AUTHORIZED,
        authorization_ref: Optional[str] = "pi_hold",
        booking_date: date = date(2026, 3, 10),
        start_time: time = time(11, 0),
        end_time: time = time(13, 0),
        meeting_latitude: Optional[float] = 0.0,
        meeting_longitude: Optional[float] = 0.0,
        total_amount: Decimal = Decimal("100.00"),
        platform_fee_amount: Decimal = Decimal("15.00"),
        payout_destination: Optional[str] = "acct_provider",
        with_verification: bool = True,
    ) -> Booking:
        booking = Booking(
            requester_id=REQUESTER_ID,
            provider_id=PROVIDER_ID,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            meeting_location="Central Cafe",
            meeting_latitude=meeting_latitude,
            meeting_longitude=meeting_longitude,
            total_amount=total_amount,
            platform_fee_amount=platform_fee_amount,
            status=status,
            payment_status=payment_status,
            payment_authorization_ref=authorization_ref,
        )
        db_session.add(booking)
        db_session.flush()

        if with_verification:
            db_session.add(
                BookingVerification(
                    booking_id=booking.id,
                    requester_code=REQUESTER_CODE,
                    provider_code=PROVIDER_CODE,
                )
            )

        if payout_destination and db_session.query(PayoutAccount).filter_by(provider_id=PROVIDER_ID).first() is None:
            db_session.add(PayoutAccount(provider_id=PROVIDER_ID, destination_ref=payout_destination))

        db_session.commit()
        return booking

    return _make


@pytest.fixture
def settlement_service(db_session, processor, publisher, settings, clock):
    return SettlementService(db_session, processor, publisher=publisher, settings=settings, clock=clock)


@pytest.fixture
def verification_service(db_session, settlement_service, publisher, settings, clock):
    return VerificationService(
        db_session,
        settlement=settlement_service,
        publisher=publisher,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def dispute_service(db_session, processor, publisher, settings, clock):
    return DisputeService(db_session, processor, publisher=publisher, settings=settings, clock=clock)
