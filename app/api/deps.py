# app/api/deps.py
"""
FastAPI dependencies.

Caller identity comes from gateway headers: ``X-User-ID`` names the
authenticated user and ``X-User-Role: admin`` marks an administrator.

Example usage in a router:

    from fastapi import APIRouter, Depends
    from app.api import deps

    router = APIRouter()

    @router.get("/bookings/{booking_id}/verification")
    def read_status(
        booking_id: str,
        user_id: str = Depends(deps.get_current_user_id),
        service: VerificationService = Depends(deps.get_verification_service),
    ):
        ...
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, Query
from sqlalchemy.orm import Session

from app.config.settings import Settings, get_settings
from app.core.constants import (
    ADMIN_ROLE,
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    HEADER_USER_ID,
    HEADER_USER_ROLE,
    MAX_PAGE_SIZE,
)
from app.core.events.publisher import EventPublisher, build_event_publisher
from app.core.exceptions import ForbiddenError
from app.db.session import get_db
from app.schemas.common.pagination import PaginationParams
from app.services.admin.dispute_service import DisputeService
from app.services.booking.verification_service import VerificationService
from app.services.integrations.payment_processor import (
    PaymentProcessor,
    StripePaymentProcessor,
)
from app.services.payment.settlement_service import SettlementService


# --- Identity ------------------------------------------------------------------

def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=HEADER_USER_ID),
) -> str:
    if not x_user_id or not x_user_id.strip():
        raise ForbiddenError("Authentication required")
    return x_user_id.strip()


def require_admin(
    user_id: str = Depends(get_current_user_id),
    x_user_role: Optional[str] = Header(default=None, alias=HEADER_USER_ROLE),
) -> str:
    """Return the administrator's id, rejecting any other caller."""
    if (x_user_role or "").strip().lower() != ADMIN_ROLE:
        raise ForbiddenError("Administrator access required")
    return user_id


# --- Pagination ----------------------------------------------------------------

def get_pagination_params(
    page: int = Query(DEFAULT_PAGE, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size)


# --- Infrastructure ------------------------------------------------------------

@lru_cache()
def get_payment_processor() -> PaymentProcessor:
    return StripePaymentProcessor.from_settings(get_settings())


@lru_cache()
def get_event_publisher() -> EventPublisher:
    return build_event_publisher(get_settings())


# --- Services ------------------------------------------------------------------

def get_settlement_service(
    db: Session = Depends(get_db),
    processor: PaymentProcessor = Depends(get_payment_processor),
    publisher: EventPublisher = Depends(get_event_publisher),
    settings: Settings = Depends(get_settings),
) -> SettlementService:
    return SettlementService(db, processor, publisher=publisher, settings=settings)


def get_verification_service(
    db: Session = Depends(get_db),
    settlement: SettlementService = Depends(get_settlement_service),
    publisher: EventPublisher = Depends(get_event_publisher),
    settings: Settings = Depends(get_settings),
) -> VerificationService:
    return VerificationService(db, settlement=settlement, publisher=publisher, settings=settings)


def get_dispute_service(
    db: Session = Depends(get_db),
    processor: PaymentProcessor = Depends(get_payment_processor),
    publisher: EventPublisher = Depends(get_event_publisher),
    settings: Settings = Depends(get_settings),
) -> DisputeService:
    return DisputeService(db, processor, publisher=publisher, settings=settings)


__all__ = [
    "get_db",
    "get_current_user_id",
    "require_admin",
    "get_pagination_params",
    "get_payment_processor",
    "get_event_publisher",
    "get_settlement_service",
    "get_verification_service",
    "get_dispute_service",
]
