"""
Booking model for paid, location-bound meetings.

A booking joins a requester and a provider at an agreed place and time.
Its financial fields track the payment hold from authorization through
capture or release, and the provider payout that follows a capture.
"""

from datetime import date as Date, datetime, time as Time, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date as SQLDate,
    DateTime,
    Enum,
    Float,
    Index,
    Numeric,
    String,
    Text,
    Time as SQLTime,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.models.base.base_model import TimestampModel
from app.models.base.enums import (
    AdminResolutionType,
    BookingStatus,
    PartyRole,
    PaymentStatus,
)

__all__ = [
    "Booking",
]


class Booking(TimestampModel):
    """
    Meeting booking between a requester and a provider.

    Lifecycle:
        pending -> confirmed/payment_held -> (meeting_started) ->
        completed | cancelled | no_show

    Only confirmed or payment_held bookings with meeting coordinates
    can enter code verification.
    """

    __tablename__ = "bookings"

    # Parties
    requester_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="User who booked and pays for the meeting",
    )
    provider_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="User who provides the meeting and receives the payout",
    )

    # Schedule
    booking_date: Mapped[Date] = mapped_column(
        SQLDate,
        nullable=False,
        comment="Scheduled meeting date",
    )
    start_time: Mapped[Time] = mapped_column(
        SQLTime,
        nullable=False,
        comment="Scheduled start time (UTC)",
    )
    end_time: Mapped[Time] = mapped_column(
        SQLTime,
        nullable=False,
        comment="Scheduled end time (UTC)",
    )
    ends_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
        comment="Meeting end as a UTC timestamp, derived from date and end time",
    )

    # Meeting place
    meeting_location: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Meeting address as agreed by both parties",
    )
    meeting_latitude: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Meeting point latitude",
    )
    meeting_longitude: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Meeting point longitude",
    )

    # Amounts
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Amount charged to the requester",
    )
    platform_fee_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Platform share of the total amount",
    )
    provider_earnings: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Payout amount recorded when a transfer is attempted",
    )

    # Status
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
        comment="Current booking status",
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.UNAUTHORIZED,
        index=True,
        comment="Current payment and payout status",
    )

    # Processor references
    payment_authorization_ref: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Processor reference of the payment hold",
    )
    transfer_ref: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Processor reference of the provider payout",
    )
    captured_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the hold was captured",
    )
    transfer_completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the payout completed",
    )
    settlement_failure_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Last capture/transfer failure and manual processing notes",
    )

    # Cancellation
    cancelled_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Actor that cancelled the booking (user id, system or admin)",
    )
    cancellation_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Reason for cancellation",
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Cancellation timestamp",
    )

    # Dispute handling
    dispute_flagged_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="First time a sweep detected the booking as disputed",
    )
    admin_resolved: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="One-way latch set when an administrator resolves a dispute",
    )
    admin_resolution_type: Mapped[Optional[AdminResolutionType]] = mapped_column(
        Enum(AdminResolutionType),
        nullable=True,
        comment="Administrative resolution outcome",
    )
    admin_resolved_by: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Administrator who resolved the dispute",
    )
    admin_resolution_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Resolution notes",
    )
    admin_resolved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Resolution timestamp",
    )

    __table_args__ = (
        Index("ix_booking_status_payment", "status", "payment_status"),
        Index("ix_booking_status_ends_at", "status", "ends_at"),
        CheckConstraint("total_amount >= 0", name="ck_booking_total_positive"),
        CheckConstraint("platform_fee_amount >= 0", name="ck_booking_fee_positive"),
        {"comment": "Paid meetings between a requester and a provider"},
    )

    @validates("total_amount", "platform_fee_amount")
    def validate_amounts(self, key: str, value: Decimal) -> Decimal:
        """Validate monetary amounts are non-negative."""
        if value is not None and Decimal(value) < 0:
            raise ValueError(f"{key} cannot be negative")
        return value

    @validates("meeting_latitude")
    def validate_latitude(self, key: str, value: Optional[float]) -> Optional[float]:
        if value is not None and not (-90 <= value <= 90):
            raise ValueError("Latitude must be between -90 and 90")
        return value

    @validates("meeting_longitude")
    def validate_longitude(self, key: str, value: Optional[float]) -> Optional[float]:
        if value is not None and not (-180 <= value <= 180):
            raise ValueError("Longitude must be between -180 and 180")
        return value

    # Business logic

    @property
    def has_meeting_coordinates(self) -> bool:
        return self.meeting_latitude is not None and self.meeting_longitude is not None

    @property
    def has_authorization(self) -> bool:
        return bool(self.payment_authorization_ref)

    @property
    def is_verifiable(self) -> bool:
        """Whether the booking may accept code submissions."""
        return self.status in BookingStatus.verifiable() and self.has_meeting_coordinates

    def party_role(self, user_id: str) -> Optional[PartyRole]:
        """Return the PartyRole of a user, or None when not a party."""
        if user_id == self.requester_id:
            return PartyRole.REQUESTER
        if user_id == self.provider_id:
            return PartyRole.PROVIDER
        return None

    def compute_provider_earnings(self) -> Decimal:
        """Total amount minus the stored platform fee."""
        fee = self.platform_fee_amount or Decimal("0.00")
        return (Decimal(self.total_amount) - Decimal(fee)).quantize(Decimal("0.01"))

    def compute_ends_at(self) -> Optional[datetime]:
        """Meeting end as an aware UTC datetime; overnight meetings end the next day."""
        if self.booking_date is None or self.end_time is None:
            return None
        end_date = self.booking_date
        if self.start_time is not None and self.end_time <= self.start_time:
            end_date = end_date + timedelta(days=1)
        return datetime.combine(end_date, self.end_time, tzinfo=timezone.utc)

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, status={self.status}, "
            f"payment_status={self.payment_status})>"
        )


@event.listens_for(Booking, "before_insert")
@event.listens_for(Booking, "before_update")
def set_meeting_end(mapper, connection, target):
    """Keep ends_at in step with the scheduled date and times."""
    target.ends_at = target.compute_ends_at()
