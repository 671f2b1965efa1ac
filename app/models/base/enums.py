"""
Database enums mirroring schema enums.

Provides SQLAlchemy-compatible enum definitions that match
the Pydantic schema enums for consistency.
"""

import enum


class BookingStatus(str, enum.Enum):
    """Booking lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PAYMENT_HELD = "payment_held"
    MEETING_STARTED = "meeting_started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @classmethod
    def verifiable(cls) -> tuple:
        """Statuses from which a booking may enter code verification."""
        return (cls.CONFIRMED, cls.PAYMENT_HELD)

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW)


class PaymentStatus(str, enum.Enum):
    """Financial state of a booking's payment and payout."""
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    REFUNDED = "refunded"
    TRANSFER_PENDING = "transfer_pending"
    TRANSFER_COMPLETED = "transfer_completed"
    TRANSFER_FAILED = "transfer_failed"

    @property
    def is_captured(self) -> bool:
        """True once funds were captured, including every payout state."""
        return self in (
            PaymentStatus.CAPTURED,
            PaymentStatus.TRANSFER_PENDING,
            PaymentStatus.TRANSFER_COMPLETED,
            PaymentStatus.TRANSFER_FAILED,
        )


class VerificationStatus(str, enum.Enum):
    """Dual-party code verification status."""
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self != VerificationStatus.PENDING


class PartyRole(str, enum.Enum):
    """Side of the booking a participant is on."""
    REQUESTER = "requester"
    PROVIDER = "provider"

    @property
    def counterpart(self) -> "PartyRole":
        if self == PartyRole.REQUESTER:
            return PartyRole.PROVIDER
        return PartyRole.REQUESTER


class VerificationOutcome(str, enum.Enum):
    """Result of a single code submission."""
    WRONG_CODE = "wrong_code"
    WAITING_FOR_OTHER = "waiting_for_other"
    VERIFIED = "verified"
    FAILED = "failed"


class AdminResolutionType(str, enum.Enum):
    """How an administrator closed a disputed booking."""
    REFUNDED = "refunded"
    PAID_COMPANION = "paid_companion"
    NO_ACTION = "no_action"


class DisputeFilter(str, enum.Enum):
    """Filter for the disputed bookings listing."""
    ALL = "all"
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"


class ManualTransferOutcome(str, enum.Enum):
    """Outcome recorded when an administrator settles a payout by hand."""
    COMPLETED = "completed"
    FAILED = "failed"
