from datetime import date, time

import pytest

from app.core.exceptions import (
    AlreadyResolvedError,
    InvalidStateError,
    PayoutDestinationMissingError,
    ProcessorFailure,
)
from app.models.base.enums import (
    AdminResolutionType,
    BookingStatus,
    DisputeFilter,
    PaymentStatus,
)

from tests.conftest import PROVIDER_CODE, REQUESTER_ID

PAST = date(2026, 3, 9)


@pytest.fixture
def disputed(make_booking):
    return make_booking(booking_date=PAST)


def test_past_unverified_booking_is_listed(disputed, make_booking, dispute_service):
    make_booking()  # meeting still running
    make_booking(booking_date=PAST, payment_status=PaymentStatus.UNAUTHORIZED, authorization_ref=None)

    page = dispute_service.list_disputed_bookings(DisputeFilter.UNRESOLVED)

    assert [item.id for item in page.items] == [disputed.id]
    assert page.meta.total_items == 1


def test_overnight_meeting_is_not_disputed_before_it_ends(make_booking, dispute_service):
    make_booking(booking_date=date(2026, 3, 9), start_time=time(22, 0), end_time=time(13, 0))

    page = dispute_service.list_disputed_bookings(DisputeFilter.ALL)

    assert page.items == []


def test_refund_resolution(disputed, dispute_service, verification_service, processor, publisher, db_session):
    response = dispute_service.resolve_refund(disputed.id, "admin-1", "requester waited, provider absent")

    assert response.resolution_type == AdminResolutionType.REFUNDED
    assert response.booking_status == BookingStatus.CANCELLED
    assert response.payment_status == PaymentStatus.REFUNDED
    assert response.resolved_by == "admin-1"
    assert processor.operations == ["cancel"]
    assert "dispute.resolved" in publisher.types

    db_session.refresh(disputed)
    assert disputed.admin_resolved is True
    assert disputed.cancelled_by == "admin"

    with pytest.raises(InvalidStateError):
        verification_service.submit_otp(disputed.id, REQUESTER_ID, PROVIDER_CODE, 0.0, 0.0)


def test_second_resolution_is_rejected(disputed, dispute_service, processor):
    dispute_service.resolve_refund(disputed.id, "admin-1")

    with pytest.raises(AlreadyResolvedError):
        dispute_service.resolve_no_action(disputed.id, "admin-2")
    assert processor.operations == ["cancel"]


def test_resolved_filter_lists_resolution(disputed, dispute_service):
    dispute_service.resolve_no_action(disputed.id, "admin-1", "both parties confirmed by phone")

    assert dispute_service.list_disputed_bookings(DisputeFilter.UNRESOLVED).items == []
    resolved = dispute_service.list_disputed_bookings(DisputeFilter.RESOLVED)
    assert [item.admin_resolution_type for item in resolved.items] == [AdminResolutionType.NO_ACTION]


def test_no_action_completes_without_moving_money(disputed, dispute_service, processor, publisher):
    response = dispute_service.resolve_no_action(disputed.id, "admin-1")

    assert response.booking_status == BookingStatus.COMPLETED
    assert response.payment_status == PaymentStatus.AUTHORIZED
    assert processor.calls == []
    assert publisher.types == ["dispute.resolved", "booking.completed"]
    assert publisher.events[-1].data["payment_status"] == "authorized"


def test_capture_and_pay_resolution(disputed, dispute_service, processor, publisher, db_session):
    response = dispute_service.resolve_capture_and_pay(disputed.id, "admin-1")

    assert response.resolution_type == AdminResolutionType.PAID_COMPANION
    assert response.booking_status == BookingStatus.COMPLETED
    assert response.payment_status == PaymentStatus.TRANSFER_COMPLETED
    assert response.transfer.success is True
    assert processor.operations == ["capture", "transfer"]
    assert publisher.types[-1] == "transfer.completed"


def test_capture_and_pay_requires_payout_account(make_booking, dispute_service, processor, db_session):
    booking = make_booking(booking_date=PAST, payout_destination=None)

    with pytest.raises(PayoutDestinationMissingError):
        dispute_service.resolve_capture_and_pay(booking.id, "admin-1")

    assert processor.calls == []
    db_session.refresh(booking)
    assert booking.admin_resolved is False


def test_processor_failure_leaves_dispute_open(disputed, dispute_service, processor, db_session):
    processor.fail_on.add("cancel")

    with pytest.raises(ProcessorFailure):
        dispute_service.resolve_refund(disputed.id, "admin-1")

    db_session.refresh(disputed)
    assert disputed.admin_resolved is False
    assert disputed.status == BookingStatus.CONFIRMED
    assert [b.id for b in dispute_service.list_disputed_bookings(DisputeFilter.UNRESOLVED).items] == [disputed.id]


def test_resolution_requires_dispute(make_booking, dispute_service):
    booking = make_booking()

    with pytest.raises(InvalidStateError):
        dispute_service.resolve_refund(booking.id, "admin-1")


def test_flag_new_disputes_once(disputed, dispute_service, publisher, db_session):
    assert dispute_service.flag_new_disputes() == 1
    assert dispute_service.flag_new_disputes() == 0

    assert publisher.types == ["booking.disputed"]
    db_session.refresh(disputed)
    assert disputed.dispute_flagged_at is not None
