"""
Payment service layer.

Authorization, capture, release and provider payout for bookings.
"""

from app.services.payment.settlement_service import SettlementService

__all__ = [
    "SettlementService",
]
