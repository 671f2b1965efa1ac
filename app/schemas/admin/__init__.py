"""
Admin schemas package.
"""

from app.schemas.admin.dispute import (
    DisputedBookingList,
    DisputeResolutionRequest,
    DisputeResolutionResponse,
)

__all__ = [
    "DisputedBookingList",
    "DisputeResolutionRequest",
    "DisputeResolutionResponse",
]
