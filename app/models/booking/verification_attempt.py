"""
Audit trail of code submissions.

One row per committed submission outcome, written in the same
transaction as the state change it describes.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.models.base.base_model import BaseModel
from app.models.base.enums import PartyRole, VerificationOutcome

__all__ = ["VerificationAttempt"]


class VerificationAttempt(BaseModel):
    """Append-only record of a single code submission."""

    __tablename__ = "verification_attempts"

    booking_id: Mapped[str] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        comment="Booking the submission was made for",
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        comment="Submitting party",
    )
    role: Mapped[PartyRole] = mapped_column(Enum(PartyRole), nullable=False)
    outcome: Mapped[VerificationOutcome] = mapped_column(
        Enum(VerificationOutcome),
        nullable=False,
    )
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    distance_m: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Submitter distance from the meeting point, once computed",
    )
    detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_verification_attempt_booking_created", "booking_id", "created_at"),
        {"comment": "Code submission audit trail"},
    )

    def __repr__(self) -> str:
        return (
            f"<VerificationAttempt(booking_id={self.booking_id}, "
            f"role={self.role}, outcome={self.outcome})>"
        )
