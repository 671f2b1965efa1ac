import pytest

from app.core.exceptions import (
    AlreadyResolvedError,
    AlreadySubmittedError,
    AttemptsExceededError,
    ForbiddenError,
    InvalidStateError,
    ResourceNotFoundError,
    ValidationError,
)
from app.models.base.enums import (
    BookingStatus,
    PartyRole,
    PaymentStatus,
    VerificationOutcome,
    VerificationStatus,
)
from app.repositories.booking.verification_repository import VerificationRepository
from app.services.booking.verification_service import VerificationService

from tests.conftest import PROVIDER_CODE, PROVIDER_ID, REQUESTER_CODE, REQUESTER_ID


def _record(db_session, booking_id):
    db_session.expire_all()
    return VerificationRepository(db_session).get_by_booking_id(booking_id)


def test_both_parties_within_radius_verifies_and_settles(
    make_booking, verification_service, processor, publisher, db_session
):
    booking = make_booking()

    first = verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)
    assert first.outcome == VerificationOutcome.WAITING_FOR_OTHER
    assert first.waiting_for == PartyRole.PROVIDER

    second = verification_service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.0005)

    assert second.outcome == VerificationOutcome.VERIFIED
    assert second.verification_status == VerificationStatus.VERIFIED
    assert second.requester_distance_m == 0
    assert 50 <= second.provider_distance_m <= 60
    assert second.radius_m == 100.0
    assert second.settlement.captured is True
    assert second.settlement.transfer.success is True

    record = _record(db_session, booking.id)
    assert record.location_verified is True
    assert record.verified_at is not None

    db_session.refresh(booking)
    assert booking.status == BookingStatus.COMPLETED
    assert booking.payment_status == PaymentStatus.TRANSFER_COMPLETED
    assert processor.operations == ["capture", "transfer"]
    assert publisher.types[0] == "verification.verified"
    assert "booking.completed" in publisher.types
    assert "transfer.completed" in publisher.types


def test_provider_outside_radius_fails_and_refunds(
    make_booking, verification_service, processor, publisher, db_session
):
    booking = make_booking()

    verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)
    result = verification_service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.002)

    assert result.outcome == VerificationOutcome.FAILED
    assert "provider" in result.failure_reason
    assert "requester" not in result.failure_reason
    assert "222m" in result.failure_reason
    assert result.provider_distance_m > 100

    record = _record(db_session, booking.id)
    assert record.verification_status == VerificationStatus.FAILED
    assert record.location_verified is False

    db_session.refresh(booking)
    assert processor.operations == ["cancel"]
    assert booking.status == BookingStatus.CANCELLED
    assert booking.payment_status == PaymentStatus.REFUNDED
    assert booking.cancelled_by == "system"
    assert booking.cancellation_reason == "location_verification_failed"
    assert publisher.types == ["verification.failed", "booking.cancelled"]


def test_both_parties_outside_radius_names_both(make_booking, verification_service):
    booking = make_booking()

    verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.003, 0.0)
    result = verification_service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.002)

    assert "requester" in result.failure_reason
    assert "provider" in result.failure_reason


def test_failed_refund_leaves_booking_open(make_booking, verification_service, processor, db_session):
    booking = make_booking()
    processor.fail_on.add("cancel")

    verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)
    result = verification_service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.002)

    assert result.outcome == VerificationOutcome.FAILED
    db_session.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.payment_status == PaymentStatus.AUTHORIZED
    assert booking.settlement_failure_reason.startswith("REFUND_FAILED")
    assert _record(db_session, booking.id).verification_status == VerificationStatus.FAILED


def test_wrong_code_counts_down_then_blocks(make_booking, verification_service, db_session):
    booking = make_booking()

    remaining = []
    for _ in range(3):
        result = verification_service.submit_otp(booking.id, REQUESTER_ID, "999999", 0.0, 0.0)
        assert result.outcome == VerificationOutcome.WRONG_CODE
        remaining.append(result.remaining_attempts)

    assert remaining == [2, 1, 0]

    with pytest.raises(AttemptsExceededError):
        verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)

    record = _record(db_session, booking.id)
    assert record.requester_attempts == 3
    assert record.verification_status == VerificationStatus.PENDING


def test_exhausted_party_does_not_block_counterpart(make_booking, verification_service):
    booking = make_booking()
    for _ in range(3):
        verification_service.submit_otp(booking.id, REQUESTER_ID, "999999", 0.0, 0.0)

    result = verification_service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.0)

    assert result.outcome == VerificationOutcome.WAITING_FOR_OTHER


def test_resubmission_after_entering_is_rejected(make_booking, verification_service):
    booking = make_booking()
    verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)

    with pytest.raises(AlreadySubmittedError):
        verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)


def test_submission_after_resolution_is_rejected(make_booking, verification_service, settings):
    settings.AUTO_SETTLE_ON_VERIFICATION = False
    booking = make_booking()
    verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)
    verification_service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.0)

    with pytest.raises(AlreadyResolvedError):
        verification_service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.0)


def test_auto_settle_disabled_leaves_payment_authorized(
    make_booking, verification_service, settings, processor, db_session
):
    settings.AUTO_SETTLE_ON_VERIFICATION = False
    booking = make_booking()

    verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)
    result = verification_service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.0)

    assert result.outcome == VerificationOutcome.VERIFIED
    assert result.settlement is None
    assert processor.calls == []
    db_session.refresh(booking)
    assert booking.payment_status == PaymentStatus.AUTHORIZED


def test_non_party_is_forbidden(make_booking, verification_service):
    booking = make_booking()

    with pytest.raises(ForbiddenError):
        verification_service.submit_otp(booking.id, "stranger", PROVIDER_CODE, 0.0, 0.0)


def test_unknown_booking_is_not_found(verification_service):
    with pytest.raises(ResourceNotFoundError):
        verification_service.submit_otp("missing", REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)


def test_missing_verification_record_is_not_found(make_booking, verification_service):
    booking = make_booking(with_verification=False)

    with pytest.raises(ResourceNotFoundError):
        verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)


@pytest.mark.parametrize(
    "overrides",
    [
        {"status": BookingStatus.PENDING},
        {"status": BookingStatus.CANCELLED},
        {"meeting_latitude": None, "meeting_longitude": None},
    ],
)
def test_unverifiable_booking_is_invalid_state(make_booking, verification_service, overrides):
    booking = make_booking(**overrides)

    with pytest.raises(InvalidStateError):
        verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)


@pytest.mark.parametrize(
    "code, latitude, longitude",
    [
        ("12345", 0.0, 0.0),
        ("abcdef", 0.0, 0.0),
        ("1234567", 0.0, 0.0),
        ("123456", 91.0, 0.0),
        ("123456", 0.0, float("nan")),
    ],
)
def test_malformed_input_is_rejected(make_booking, verification_service, code, latitude, longitude):
    booking = make_booking()

    with pytest.raises(ValidationError):
        verification_service.submit_otp(booking.id, REQUESTER_ID, code, latitude, longitude)


def test_attempts_are_audited(make_booking, verification_service, db_session):
    booking = make_booking()
    verification_service.submit_otp(booking.id, REQUESTER_ID, "999999", 0.0, 0.0)
    verification_service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)

    attempts = VerificationRepository(db_session).list_attempts(booking.id)

    assert sorted(a.outcome for a in attempts) == sorted(
        [VerificationOutcome.WRONG_CODE, VerificationOutcome.WAITING_FOR_OTHER]
    )
    assert all(a.role == PartyRole.REQUESTER for a in attempts)


def test_rejected_submission_writes_nothing(make_booking, verification_service, db_session):
    booking = make_booking()

    with pytest.raises(ForbiddenError):
        verification_service.submit_otp(booking.id, "stranger", "999999", 0.0, 0.0)

    assert VerificationRepository(db_session).list_attempts(booking.id) == []


def test_status_view_for_each_party(make_booking, verification_service):
    booking = make_booking()
    verification_service.submit_otp(booking.id, REQUESTER_ID, "999999", 0.0, 0.0)
    verification_service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.0)

    requester_view = verification_service.get_verification_status(booking.id, REQUESTER_ID)
    provider_view = verification_service.get_verification_status(booking.id, PROVIDER_ID)

    assert requester_view.role == PartyRole.REQUESTER
    assert requester_view.has_entered is False
    assert requester_view.counterpart_entered is True
    assert requester_view.remaining_attempts == 2
    assert provider_view.has_entered is True
    assert provider_view.remaining_attempts == 3

    with pytest.raises(ForbiddenError):
        verification_service.get_verification_status(booking.id, "stranger")


def test_without_settlement_failure_keeps_booking_open(
    make_booking, db_session, publisher, settings, clock
):
    service = VerificationService(db_session, publisher=publisher, settings=settings, clock=clock)
    booking = make_booking()

    service.submit_otp(booking.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)
    result = service.submit_otp(booking.id, PROVIDER_ID, REQUESTER_CODE, 0.0, 0.002)

    assert result.outcome == VerificationOutcome.FAILED
    db_session.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED
