"""
Dual-party verification record.

Each booking has exactly one verification record holding both parties'
one-time codes, their attempt counters, whether each party has entered
the counterpart's code, and the GPS readings taken at submission time.
Records are never deleted; a terminal status is written once.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base.base_model import TimestampModel
from app.models.base.enums import PartyRole, VerificationStatus

__all__ = [
    "BookingVerification",
    "RoleFields",
    "PartySlot",
    "ROLE_FIELDS",
]


@dataclass(frozen=True)
class RoleFields:
    """Column names owned by one side of the verification."""

    code: str
    attempts: str
    entered: str
    entered_at: str
    latitude: str
    longitude: str
    distance: str


ROLE_FIELDS: Dict[PartyRole, RoleFields] = {
    PartyRole.REQUESTER: RoleFields(
        code="requester_code",
        attempts="requester_attempts",
        entered="requester_entered",
        entered_at="requester_entered_at",
        latitude="requester_latitude",
        longitude="requester_longitude",
        distance="requester_distance_m",
    ),
    PartyRole.PROVIDER: RoleFields(
        code="provider_code",
        attempts="provider_attempts",
        entered="provider_entered",
        entered_at="provider_entered_at",
        latitude="provider_latitude",
        longitude="provider_longitude",
        distance="provider_distance_m",
    ),
}


class BookingVerification(TimestampModel):
    """
    Verification state for a single booking.

    A party proves presence by entering the code issued to the other
    party. Codes are issued outside this service and stored verbatim.
    """

    __tablename__ = "booking_verifications"

    booking_id: Mapped[str] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
        comment="Booking being verified",
    )

    # Codes
    requester_code: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
        comment="Code shown to the requester, entered by the provider",
    )
    provider_code: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
        comment="Code shown to the provider, entered by the requester",
    )

    # Requester side
    requester_entered: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
        comment="Requester entered the provider's code",
    )
    requester_entered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    requester_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Wrong codes submitted by the requester",
    )
    requester_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    requester_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    requester_distance_m: Mapped[Optional[float]] = mapped_column(
        Float, nullable=True,
        comment="Requester distance from the meeting point in meters",
    )

    # Provider side
    provider_entered: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
        comment="Provider entered the requester's code",
    )
    provider_entered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    provider_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Wrong codes submitted by the provider",
    )
    provider_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    provider_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    provider_distance_m: Mapped[Optional[float]] = mapped_column(
        Float, nullable=True,
        comment="Provider distance from the meeting point in meters",
    )

    # Outcome
    verification_status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus),
        nullable=False,
        default=VerificationStatus.PENDING,
        index=True,
    )
    location_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True,
        comment="When the record reached verified or failed",
    )

    __table_args__ = (
        CheckConstraint("requester_attempts >= 0", name="ck_verification_requester_attempts"),
        CheckConstraint("provider_attempts >= 0", name="ck_verification_provider_attempts"),
        {"comment": "Dual-party code and location verification per booking"},
    )

    def slot(self, role: PartyRole) -> "PartySlot":
        """Accessor for the fields belonging to one party."""
        return PartySlot(self, role)

    @property
    def is_resolved(self) -> bool:
        return self.verification_status.is_terminal

    def __repr__(self) -> str:
        return (
            f"<BookingVerification(booking_id={self.booking_id}, "
            f"status={self.verification_status})>"
        )


class PartySlot:
    """
    One party's view of a verification record.

    ``expected_code`` is the counterpart's code, since each party must
    type in the code issued to the other.
    """

    def __init__(self, record: BookingVerification, role: PartyRole):
        self.record = record
        self.role = role
        self.fields = ROLE_FIELDS[role]

    @property
    def expected_code(self) -> str:
        return getattr(self.record, ROLE_FIELDS[self.role.counterpart].code)

    @property
    def attempts(self) -> int:
        return getattr(self.record, self.fields.attempts) or 0

    @attempts.setter
    def attempts(self, value: int) -> None:
        setattr(self.record, self.fields.attempts, value)

    @property
    def entered(self) -> bool:
        return bool(getattr(self.record, self.fields.entered))

    @property
    def entered_at(self) -> Optional[datetime]:
        return getattr(self.record, self.fields.entered_at)

    @property
    def latitude(self) -> Optional[float]:
        return getattr(self.record, self.fields.latitude)

    @property
    def longitude(self) -> Optional[float]:
        return getattr(self.record, self.fields.longitude)

    @property
    def distance_m(self) -> Optional[float]:
        return getattr(self.record, self.fields.distance)

    @distance_m.setter
    def distance_m(self, value: float) -> None:
        setattr(self.record, self.fields.distance, value)

    def mark_entered(self, latitude: float, longitude: float, at: datetime) -> None:
        setattr(self.record, self.fields.entered, True)
        setattr(self.record, self.fields.entered_at, at)
        setattr(self.record, self.fields.latitude, latitude)
        setattr(self.record, self.fields.longitude, longitude)

    def remaining_attempts(self, max_attempts: int) -> int:
        return max(0, max_attempts - self.attempts)
