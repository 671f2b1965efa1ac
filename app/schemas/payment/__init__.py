"""
Payment schemas package.
"""

from app.schemas.payment.settlement import (
    PaymentOperationResult,
    PendingTransferList,
    SettlementSummary,
    TransferAction,
    TransferActionRequest,
    TransferResult,
)

__all__ = [
    "PaymentOperationResult",
    "PendingTransferList",
    "SettlementSummary",
    "TransferAction",
    "TransferActionRequest",
    "TransferResult",
]
