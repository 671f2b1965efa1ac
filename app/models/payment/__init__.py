"""
Payment models package.
"""

from app.models.payment.payout_account import PayoutAccount

__all__ = ["PayoutAccount"]
