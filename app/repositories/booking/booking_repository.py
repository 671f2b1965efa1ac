# app/repositories/booking/booking_repository.py
"""
Booking repository.

Row-locking lookups for the verification and settlement flows, and the
listing queries behind dispute detection and payout follow-up.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Query, Session

from app.models.base.enums import (
    BookingStatus,
    DisputeFilter,
    PaymentStatus,
    VerificationStatus,
)
from app.models.booking.booking import Booking
from app.models.booking.booking_verification import BookingVerification
from app.repositories.base.base_repository import BaseRepository


PENDING_TRANSFER_STATUSES = (PaymentStatus.TRANSFER_PENDING, PaymentStatus.TRANSFER_FAILED)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking lookups and settlement queries."""

    def __init__(self, db: Session):
        super().__init__(Booking, db)

    def get_for_update(self, booking_id: str) -> Booking:
        """Load a booking holding its row lock until the transaction ends."""
        return self.get_by_id(booking_id, for_update=True)

    # ==================== Dispute detection ====================

    def _with_verification(self) -> Query:
        return self.db.query(Booking).outerjoin(
            BookingVerification,
            BookingVerification.booking_id == Booking.id,
        )

    @staticmethod
    def disputed_criteria(now: datetime):
        """
        Past its meeting window with a payment hold in place and no
        completed verification.
        """
        return and_(
            Booking.status.in_(BookingStatus.verifiable()),
            Booking.payment_authorization_ref.isnot(None),
            BookingVerification.verified_at.is_(None),
            Booking.ends_at.isnot(None),
            Booking.ends_at < now,
        )

    def _disputed_query(self, status_filter: DisputeFilter, now: datetime) -> Query:
        unresolved = and_(self.disputed_criteria(now), Booking.admin_resolved.is_(False))
        resolved = and_(
            Booking.admin_resolved.is_(True),
            Booking.admin_resolution_type.isnot(None),
        )

        if status_filter == DisputeFilter.UNRESOLVED:
            condition = unresolved
        elif status_filter == DisputeFilter.RESOLVED:
            condition = resolved
        else:
            condition = or_(unresolved, resolved)

        return self._with_verification().filter(condition)

    def find_disputed(
        self,
        status_filter: DisputeFilter,
        now: datetime,
        page: int,
        page_size: int,
    ) -> Tuple[List[Booking], int]:
        """Disputed bookings, most recently ended first."""
        query = self._disputed_query(status_filter, now).order_by(
            Booking.ends_at.desc(), Booking.id
        )
        return self.paginate(query, page, page_size)

    def is_disputed(self, booking_id: str, now: datetime) -> bool:
        query = self._with_verification().filter(
            Booking.id == booking_id,
            self.disputed_criteria(now),
        )
        return query.count() > 0

    def find_unflagged_disputes(self, now: datetime, limit: int = 500) -> List[Booking]:
        """Unresolved disputes a sweep has not reported yet."""
        return (
            self._disputed_query(DisputeFilter.UNRESOLVED, now)
            .filter(Booking.dispute_flagged_at.is_(None))
            .order_by(Booking.ends_at)
            .limit(limit)
            .all()
        )

    # ==================== Settlement follow-up ====================

    def find_verified_awaiting_capture(self, limit: int = 100) -> List[str]:
        """Ids of verified bookings whose hold was never captured."""
        rows = (
            self.db.query(Booking.id)
            .join(BookingVerification, BookingVerification.booking_id == Booking.id)
            .filter(
                BookingVerification.verification_status == VerificationStatus.VERIFIED,
                Booking.status.in_(BookingStatus.verifiable()),
                Booking.payment_status == PaymentStatus.AUTHORIZED,
                Booking.admin_resolved.is_(False),
            )
            .order_by(BookingVerification.verified_at)
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]

    def _pending_transfers_query(self) -> Query:
        return self.db.query(Booking).filter(
            Booking.status == BookingStatus.COMPLETED,
            Booking.payment_status.in_(PENDING_TRANSFER_STATUSES),
        )

    def find_pending_transfers(self, page: int, page_size: int) -> Tuple[List[Booking], int]:
        query = self._pending_transfers_query().order_by(Booking.updated_at.desc(), Booking.id)
        return self.paginate(query, page, page_size)

    def pending_transfer_stats(self) -> Dict[str, object]:
        """Count and total earnings of payouts awaiting manual processing."""
        earnings = func.coalesce(
            Booking.provider_earnings,
            Booking.total_amount - Booking.platform_fee_amount,
        )
        count, total = (
            self.db.query(func.count(Booking.id), func.coalesce(func.sum(earnings), 0))
            .filter(
                Booking.status == BookingStatus.COMPLETED,
                Booking.payment_status.in_(PENDING_TRANSFER_STATUSES),
            )
            .one()
        )
        return {
            "count": int(count or 0),
            "total_pending_amount": Decimal(str(total or 0)).quantize(Decimal("0.01")),
        }
