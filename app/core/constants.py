# app/core/constants.py
from __future__ import annotations

"""
Core application constants.

These values centralize literals shared by the API, services and
background sweeps:
- Pagination defaults.
- API prefixes and header names.
- Event types emitted after booking state transitions.
- Transfer failure reason codes.
"""

# Pagination defaults
DEFAULT_PAGE: int = 1
DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100

# API prefixes
API_PREFIX: str = "/api"
API_V1_PREFIX: str = "/api/v1"

# Common HTTP header names
HEADER_REQUEST_ID: str = "X-Request-ID"
HEADER_USER_ID: str = "X-User-ID"
HEADER_USER_ROLE: str = "X-User-Role"

ADMIN_ROLE: str = "admin"

# Actors recorded in cancellation metadata
CANCELLED_BY_SYSTEM: str = "system"
CANCELLED_BY_ADMIN: str = "admin"

# Cancellation reason after a failed location check
LOCATION_VERIFICATION_FAILED: str = "location_verification_failed"

# Event types
EVENT_VERIFICATION_VERIFIED: str = "verification.verified"
EVENT_VERIFICATION_FAILED: str = "verification.failed"
EVENT_BOOKING_COMPLETED: str = "booking.completed"
EVENT_BOOKING_CANCELLED: str = "booking.cancelled"
EVENT_BOOKING_DISPUTED: str = "booking.disputed"
EVENT_TRANSFER_COMPLETED: str = "transfer.completed"
EVENT_TRANSFER_PENDING: str = "transfer.pending"
EVENT_TRANSFER_FAILED: str = "transfer.failed"
EVENT_DISPUTE_RESOLVED: str = "dispute.resolved"

# Transfer failure reasons
REASON_PAYOUT_DESTINATION_MISSING: str = "PAYOUT_DESTINATION_MISSING"
REASON_PROCESSOR_ERROR: str = "PROCESSOR_ERROR"
