"""
Payment repositories package.
"""

from app.repositories.payment.payout_account_repository import PayoutAccountRepository

__all__ = ["PayoutAccountRepository"]
