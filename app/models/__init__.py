# models/__init__.py
from .base import Base, BaseModel, TimestampModel
from .booking import Booking, BookingVerification, VerificationAttempt
from .payment import PayoutAccount

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "Booking",
    "BookingVerification",
    "VerificationAttempt",
    "PayoutAccount",
]
