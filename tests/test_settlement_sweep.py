from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

import app.services.background.settlement_sweep as sweep_module
from app.core.background_tasks import (
    SETTLEMENT_SWEEP_TASK,
    celery_app,
    create_celery_app,
    settlement_sweep_task,
)
from app.models.base.enums import BookingStatus, PaymentStatus, VerificationStatus
from app.models.booking.booking import Booking
from app.models.booking.booking_verification import BookingVerification
from app.repositories.booking.booking_repository import BookingRepository
from app.services.background.settlement_sweep import run_settlement_sweep

from tests.conftest import NOW


def _mark_verified(db_session, booking):
    record = db_session.query(BookingVerification).filter_by(booking_id=booking.id).one()
    record.verification_status = VerificationStatus.VERIFIED
    record.verified_at = NOW
    db_session.commit()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


def test_sweep_flags_disputes_and_releases_verified(
    session_factory, make_booking, db_session, processor, publisher, settings, clock
):
    disputed = make_booking(booking_date=date(2026, 3, 9))
    verified = make_booking()
    _mark_verified(db_session, verified)

    report = run_settlement_sweep(
        session_factory,
        processor,
        publisher=publisher,
        settings=settings,
        clock=clock,
    )

    assert report.disputes_flagged == 1
    assert report.payments_released == 1
    assert report.errors == []
    assert "booking.disputed" in publisher.types

    db_session.expire_all()
    assert db_session.get(Booking, disputed.id).dispute_flagged_at is not None
    released = db_session.get(Booking, verified.id)
    assert released.status == BookingStatus.COMPLETED
    assert released.payment_status == PaymentStatus.TRANSFER_COMPLETED


def test_database_error_in_one_step_does_not_skip_the_other(
    session_factory, make_booking, db_session, processor, publisher, settings, clock, monkeypatch
):
    verified = make_booking()
    _mark_verified(db_session, verified)

    def _connection_reset(self, now, limit=500):
        raise OperationalError("SELECT bookings", {}, Exception("connection reset"))

    monkeypatch.setattr(BookingRepository, "find_unflagged_disputes", _connection_reset)

    report = run_settlement_sweep(
        session_factory,
        processor,
        publisher=publisher,
        settings=settings,
        clock=clock,
    )

    assert report.disputes_flagged == 0
    assert report.payments_released == 1
    assert len(report.errors) == 1
    assert report.errors[0].startswith("Dispute flagging")

    db_session.expire_all()
    assert db_session.get(Booking, verified.id).status == BookingStatus.COMPLETED


def test_beat_schedule_follows_sweep_interval(settings):
    scheduled = create_celery_app(settings.model_copy(update={"SWEEP_INTERVAL_SECONDS": 120}))

    entry = scheduled.conf.beat_schedule["settlement-sweep"]

    assert entry["task"] == SETTLEMENT_SWEEP_TASK
    assert entry["schedule"] == 120.0


def test_periodic_tasks_can_be_disabled(settings):
    unscheduled = create_celery_app(settings.model_copy(update={"ENABLE_PERIODIC_TASKS": False}))

    assert not unscheduled.conf.beat_schedule


def test_sweep_task_runs_configured_pass(
    session_factory, make_booking, db_session, processor, publisher, settings, clock, monkeypatch
):
    verified = make_booking()
    _mark_verified(db_session, verified)

    monkeypatch.setattr("app.services.base.base_service.utc_now", clock)
    monkeypatch.setattr(sweep_module, "SessionLocal", session_factory)
    monkeypatch.setattr(sweep_module, "get_settings", lambda: settings)
    monkeypatch.setattr(sweep_module, "build_event_publisher", lambda config: publisher)
    monkeypatch.setattr(
        sweep_module,
        "StripePaymentProcessor",
        SimpleNamespace(from_settings=lambda config: processor),
    )

    assert SETTLEMENT_SWEEP_TASK in celery_app.tasks
    result = settlement_sweep_task()

    assert result["payments_released"] == 1
    assert result["errors"] == []
    assert processor.operations == ["capture", "transfer"]
