"""
Booking repositories package.
"""

from app.repositories.booking.booking_repository import BookingRepository
from app.repositories.booking.verification_repository import VerificationRepository

__all__ = ["BookingRepository", "VerificationRepository"]
