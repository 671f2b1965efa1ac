from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest

from app.models.base.enums import PartyRole
from app.models.booking.booking import Booking
from app.models.booking.booking_verification import BookingVerification
from app.utils.datetime_utils import as_utc


def _booking(**overrides):
    values = dict(
        requester_id="r",
        provider_id="p",
        booking_date=date(2026, 3, 10),
        start_time=time(11, 0),
        end_time=time(13, 0),
        total_amount=Decimal("100.00"),
        platform_fee_amount=Decimal("15.00"),
    )
    values.update(overrides)
    return Booking(**values)


def test_ends_at_same_day():
    assert _booking().compute_ends_at() == datetime(2026, 3, 10, 13, 0, tzinfo=timezone.utc)


def test_ends_at_rolls_over_midnight():
    booking = _booking(start_time=time(22, 0), end_time=time(1, 0))
    assert booking.compute_ends_at() == datetime(2026, 3, 11, 1, 0, tzinfo=timezone.utc)


def test_provider_earnings():
    assert _booking().compute_provider_earnings() == Decimal("85.00")


def test_party_role():
    booking = _booking()
    assert booking.party_role("r") == PartyRole.REQUESTER
    assert booking.party_role("p") == PartyRole.PROVIDER
    assert booking.party_role("x") is None


def test_invalid_meeting_latitude_rejected():
    with pytest.raises(ValueError):
        _booking(meeting_latitude=95.0)


def test_party_slot_expects_counterpart_code():
    record = BookingVerification(booking_id="b", requester_code="111111", provider_code="222222")

    assert record.slot(PartyRole.REQUESTER).expected_code == "222222"
    assert record.slot(PartyRole.PROVIDER).expected_code == "111111"


def test_as_utc_tags_naive_values():
    naive = datetime(2026, 3, 10, 13, 0)
    assert as_utc(naive) == datetime(2026, 3, 10, 13, 0, tzinfo=timezone.utc)
    assert as_utc(None) is None
