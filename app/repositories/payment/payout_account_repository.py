"""
Payout account lookups.
"""

from typing import Optional

from sqlalchemy.orm import Session

from app.models.payment.payout_account import PayoutAccount
from app.repositories.base.base_repository import BaseRepository


class PayoutAccountRepository(BaseRepository[PayoutAccount]):
    """Read access to provider payout destinations."""

    def __init__(self, db: Session):
        super().__init__(PayoutAccount, db)

    def find_active_destination(self, provider_id: str) -> Optional[str]:
        """Processor account reference for a provider, if one is active."""
        account = (
            self.db.query(PayoutAccount)
            .filter(
                PayoutAccount.provider_id == provider_id,
                PayoutAccount.is_active.is_(True),
            )
            .first()
        )
        return account.destination_ref if account else None
