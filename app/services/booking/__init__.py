"""
Booking service layer.

Provides business logic for:
- Dual-party code submission
- GPS check against the meeting point
- Verification status for each party
"""

from app.services.booking.verification_service import VerificationService

__all__ = [
    "VerificationService",
]
