"""
Settlement schemas: processor operation results, payout outcomes and
the admin transfer follow-up surface.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from app.models.base.enums import PaymentStatus
from app.schemas.booking.booking_response import BookingSummary
from app.schemas.common.base import BaseSchema
from app.schemas.common.pagination import PaginatedResponse

__all__ = [
    "PaymentOperationResult",
    "TransferResult",
    "SettlementSummary",
    "TransferAction",
    "TransferActionRequest",
    "PendingTransferList",
]


class PaymentOperationResult(BaseSchema):
    """Outcome of an authorize, capture or cancel call."""

    booking_id: str
    payment_status: PaymentStatus
    reference: Optional[str] = Field(default=None, description="Processor reference")
    changed: bool = Field(
        default=True,
        description="False when the booking was already in the target state",
    )


class TransferResult(BaseSchema):
    """
    Outcome of a provider payout.

    A failed payout is reported, never raised: ``requires_manual_processing``
    tells the caller an administrator has to follow up.
    """

    booking_id: str
    success: bool
    payment_status: PaymentStatus
    transfer_ref: Optional[str] = None
    provider_earnings: Optional[Decimal] = None
    platform_fee: Optional[Decimal] = None
    requires_manual_processing: bool = False
    reason: Optional[str] = None
    message: Optional[str] = None


class SettlementSummary(BaseSchema):
    """Capture and payout performed right after a successful verification."""

    captured: bool
    completed: bool = False
    transfer: Optional[TransferResult] = None
    error: Optional[str] = None


class TransferAction(str, Enum):
    RETRY = "retry"
    MARK_PROCESSED = "mark_processed"
    MARK_FAILED = "mark_failed"


class TransferActionRequest(BaseSchema):
    action: TransferAction
    notes: Optional[str] = Field(default=None, max_length=2000)


class PendingTransferList(PaginatedResponse[BookingSummary]):
    """Completed bookings whose payout needs an administrator."""

    pending_count: int = 0
    total_pending_amount: Decimal = Decimal("0.00")
