"""
Provider payout destinations.

Rows are created by the onboarding flow; this service only reads them
to decide where a provider's earnings are transferred.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base.base_model import TimestampModel

__all__ = ["PayoutAccount"]


class PayoutAccount(TimestampModel):
    """Processor account that receives a provider's payouts."""

    __tablename__ = "payout_accounts"

    provider_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        unique=True,
        index=True,
        comment="Provider owning the account",
    )
    destination_ref: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Processor account identifier",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Only active accounts receive transfers",
    )

    def __repr__(self) -> str:
        return f"<PayoutAccount(provider_id={self.provider_id}, active={self.is_active})>"
