"""
Booking models package.

This module exports all booking-related models for easy importing
across the application.
"""

from app.models.booking.booking import Booking
from app.models.booking.booking_verification import (
    ROLE_FIELDS,
    BookingVerification,
    PartySlot,
    RoleFields,
)
from app.models.booking.verification_attempt import VerificationAttempt

__all__ = [
    "Booking",
    "BookingVerification",
    "PartySlot",
    "ROLE_FIELDS",
    "RoleFields",
    "VerificationAttempt",
]
