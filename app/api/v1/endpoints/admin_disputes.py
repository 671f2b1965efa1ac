"""
Admin dispute endpoints.

A dispute is resolved once; every resolution records the acting
administrator and optional notes.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query

from app.api import deps
from app.models.base.enums import DisputeFilter
from app.schemas.admin.dispute import (
    DisputedBookingList,
    DisputeResolutionRequest,
    DisputeResolutionResponse,
)
from app.schemas.common.pagination import PaginationParams
from app.services.admin.dispute_service import DisputeService

router = APIRouter(prefix="/admin/disputes", tags=["Admin - Disputes"])


def _notes(payload: Optional[DisputeResolutionRequest]) -> Optional[str]:
    return payload.notes if payload else None


@router.get(
    "",
    response_model=DisputedBookingList,
    summary="List disputed bookings",
)
def list_disputed_bookings(
    status_filter: DisputeFilter = Query(DisputeFilter.ALL, alias="status"),
    pagination: PaginationParams = Depends(deps.get_pagination_params),
    admin_id: str = Depends(deps.require_admin),
    service: DisputeService = Depends(deps.get_dispute_service),
) -> DisputedBookingList:
    return service.list_disputed_bookings(
        status_filter=status_filter,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post(
    "/{booking_id}/refund",
    response_model=DisputeResolutionResponse,
    summary="Refund the requester and cancel the booking",
)
def resolve_refund(
    booking_id: str = Path(..., description="Booking ID"),
    payload: Optional[DisputeResolutionRequest] = Body(default=None),
    admin_id: str = Depends(deps.require_admin),
    service: DisputeService = Depends(deps.get_dispute_service),
) -> DisputeResolutionResponse:
    return service.resolve_refund(booking_id, admin_id, _notes(payload))


@router.post(
    "/{booking_id}/capture",
    response_model=DisputeResolutionResponse,
    summary="Capture the payment and pay the provider",
)
def resolve_capture_and_pay(
    booking_id: str = Path(..., description="Booking ID"),
    payload: Optional[DisputeResolutionRequest] = Body(default=None),
    admin_id: str = Depends(deps.require_admin),
    service: DisputeService = Depends(deps.get_dispute_service),
) -> DisputeResolutionResponse:
    return service.resolve_capture_and_pay(booking_id, admin_id, _notes(payload))


@router.post(
    "/{booking_id}/resolve",
    response_model=DisputeResolutionResponse,
    summary="Close the dispute without moving money",
)
def resolve_no_action(
    booking_id: str = Path(..., description="Booking ID"),
    payload: Optional[DisputeResolutionRequest] = Body(default=None),
    admin_id: str = Depends(deps.require_admin),
    service: DisputeService = Depends(deps.get_dispute_service),
) -> DisputeResolutionResponse:
    return service.resolve_no_action(booking_id, admin_id, _notes(payload))
