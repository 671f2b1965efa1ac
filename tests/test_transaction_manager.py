import pytest

from app.core.exceptions import InvalidStateError
from app.models.base.enums import BookingStatus
from app.models.booking.booking import Booking
from app.services.base.transaction_manager import TransactionManager


def test_commit_runs_after_commit_callbacks(make_booking, db_session):
    booking = make_booking()
    calls = []

    with TransactionManager(db_session).start() as ctx:
        db_session.get(Booking, booking.id).status = BookingStatus.COMPLETED
        ctx.after_commit(lambda: calls.append("sent"))
        assert calls == []

    assert ctx.committed is True
    assert calls == ["sent"]
    db_session.expire_all()
    assert db_session.get(Booking, booking.id).status == BookingStatus.COMPLETED


def test_exception_rolls_back_and_drops_callbacks(make_booking, db_session):
    booking = make_booking()
    calls = []

    with pytest.raises(InvalidStateError):
        with TransactionManager(db_session).start() as ctx:
            db_session.get(Booking, booking.id).status = BookingStatus.CANCELLED
            ctx.after_commit(lambda: calls.append("sent"))
            raise InvalidStateError("stop")

    assert ctx.rolled_back is True
    assert ctx.committed is False
    assert calls == []
    assert db_session.get(Booking, booking.id).status == BookingStatus.CONFIRMED


def test_failing_callback_does_not_raise(make_booking, db_session):
    make_booking()

    def boom():
        raise RuntimeError("publisher down")

    with TransactionManager(db_session).start() as ctx:
        ctx.after_commit(boom)

    assert ctx.committed is True
