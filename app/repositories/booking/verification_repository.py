"""
Verification record and attempt audit repository.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError
from app.models.booking.booking_verification import BookingVerification
from app.models.booking.verification_attempt import VerificationAttempt
from app.repositories.base.base_repository import BaseRepository


class VerificationRepository(BaseRepository[BookingVerification]):
    """Repository for per-booking verification records."""

    def __init__(self, db: Session):
        super().__init__(BookingVerification, db)

    def find_by_booking_id(
        self,
        booking_id: str,
        for_update: bool = False,
    ) -> Optional[BookingVerification]:
        query = self.db.query(BookingVerification).filter(
            BookingVerification.booking_id == booking_id
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_by_booking_id(self, booking_id: str, for_update: bool = False) -> BookingVerification:
        record = self.find_by_booking_id(booking_id, for_update=for_update)
        if record is None:
            raise ResourceNotFoundError(
                "Verification",
                booking_id,
                message=f"Verification record not found for booking {booking_id}",
            )
        return record

    def record_attempt(self, attempt: VerificationAttempt) -> VerificationAttempt:
        self.db.add(attempt)
        return attempt

    def list_attempts(self, booking_id: str) -> List[VerificationAttempt]:
        return (
            self.db.query(VerificationAttempt)
            .filter(VerificationAttempt.booking_id == booking_id)
            .order_by(VerificationAttempt.created_at, VerificationAttempt.id)
            .all()
        )
