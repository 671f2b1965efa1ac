"""
Base services module.

Provides the shared service base class and the scoped unit of work
used by every service that changes booking state.
"""

from app.services.base.base_service import BaseService, utc_now
from app.services.base.transaction_manager import TransactionContext, TransactionManager

__all__ = [
    "BaseService",
    "TransactionContext",
    "TransactionManager",
    "utc_now",
]
