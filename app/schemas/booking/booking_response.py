"""
Booking response schemas for API responses.
"""

from datetime import date as Date, datetime, time as Time
from decimal import Decimal
from typing import Optional

from pydantic import Field

from app.models.base.enums import AdminResolutionType, BookingStatus, PaymentStatus
from app.schemas.common.base import BaseSchema

__all__ = [
    "BookingSummary",
]


class BookingSummary(BaseSchema):
    """
    Booking information shown in admin listings and resolution responses.
    """

    id: str = Field(..., description="Booking identifier")
    requester_id: str
    provider_id: str

    booking_date: Date
    start_time: Time
    end_time: Time
    ends_at: Optional[datetime] = Field(default=None, description="Meeting end (UTC)")
    meeting_location: Optional[str] = None

    total_amount: Decimal
    platform_fee_amount: Decimal
    provider_earnings: Optional[Decimal] = None

    status: BookingStatus
    payment_status: PaymentStatus
    payment_authorization_ref: Optional[str] = None
    transfer_ref: Optional[str] = None
    settlement_failure_reason: Optional[str] = None

    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None

    dispute_flagged_at: Optional[datetime] = None
    admin_resolved: bool = False
    admin_resolution_type: Optional[AdminResolutionType] = None
    admin_resolved_by: Optional[str] = None
    admin_resolution_notes: Optional[str] = None
    admin_resolved_at: Optional[datetime] = None
