"""
Base models package.

Provides base classes and enums for all database models.
"""

from app.models.base.base_model import (
    Base,
    BaseModel,
    TimestampModel,
)

from app.models.base.enums import (
    AdminResolutionType,
    BookingStatus,
    DisputeFilter,
    ManualTransferOutcome,
    PartyRole,
    PaymentStatus,
    VerificationOutcome,
    VerificationStatus,
)

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "AdminResolutionType",
    "BookingStatus",
    "DisputeFilter",
    "ManualTransferOutcome",
    "PartyRole",
    "PaymentStatus",
    "VerificationOutcome",
    "VerificationStatus",
]
