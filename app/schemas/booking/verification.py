"""
Verification request and response schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.models.base.enums import (
    BookingStatus,
    PartyRole,
    VerificationOutcome,
    VerificationStatus,
)
from app.schemas.common.base import BaseSchema
from app.schemas.payment.settlement import SettlementSummary

__all__ = [
    "OTPSubmissionRequest",
    "VerificationResult",
    "VerificationStatusView",
]


class OTPSubmissionRequest(BaseSchema):
    """Code typed in by one party plus the device location at that moment."""

    code: str = Field(..., description="Counterpart's one-time code")
    latitude: float = Field(..., description="Device latitude")
    longitude: float = Field(..., description="Device longitude")


class VerificationResult(BaseSchema):
    """
    Result of a single submission.

    ``wrong_code`` carries the remaining attempts, ``waiting_for_other``
    names the party that still has to submit, and the two terminal
    outcomes carry both distances and the radius they were checked against.
    """

    booking_id: str
    outcome: VerificationOutcome
    verification_status: VerificationStatus
    message: str
    remaining_attempts: Optional[int] = None
    waiting_for: Optional[PartyRole] = None
    requester_distance_m: Optional[float] = None
    provider_distance_m: Optional[float] = None
    radius_m: Optional[float] = None
    failure_reason: Optional[str] = None
    settlement: Optional[SettlementSummary] = None


class VerificationStatusView(BaseSchema):
    """Verification progress as seen by one of the parties."""

    booking_id: str
    booking_status: BookingStatus
    verification_status: VerificationStatus
    role: PartyRole
    has_entered: bool
    counterpart_entered: bool
    remaining_attempts: int
    location_verified: bool
    requester_distance_m: Optional[float] = None
    provider_distance_m: Optional[float] = None
    failure_reason: Optional[str] = None
    verified_at: Optional[datetime] = None
