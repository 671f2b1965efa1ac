"""
Dispute resolution schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.models.base.enums import AdminResolutionType, BookingStatus, PaymentStatus
from app.schemas.booking.booking_response import BookingSummary
from app.schemas.common.base import BaseSchema
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.payment.settlement import TransferResult

__all__ = [
    "DisputeResolutionRequest",
    "DisputeResolutionResponse",
    "DisputedBookingList",
]


class DisputeResolutionRequest(BaseSchema):
    notes: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Reason or notes recorded with the resolution",
    )


class DisputeResolutionResponse(BaseSchema):
    booking_id: str
    resolution_type: AdminResolutionType
    booking_status: BookingStatus
    payment_status: PaymentStatus
    resolved_by: str
    resolved_at: datetime
    notes: Optional[str] = None
    transfer: Optional[TransferResult] = None


class DisputedBookingList(PaginatedResponse[BookingSummary]):
    """Page of disputed bookings."""
