"""
Admin service layer.

Dispute listing and resolution for administrators. Payout follow-up
lives with the settlement service in ``app.services.payment``.
"""

from app.services.admin.dispute_service import DisputeService

__all__ = [
    "DisputeService",
]
