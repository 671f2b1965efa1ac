"""
Admin endpoints for payouts that need manual processing.
"""

from fastapi import APIRouter, Depends, Path

from app.api import deps
from app.schemas.common.pagination import PaginationParams
from app.schemas.payment.settlement import (
    PendingTransferList,
    TransferActionRequest,
    TransferResult,
)
from app.services.payment.settlement_service import SettlementService

router = APIRouter(prefix="/admin/transfers", tags=["Admin - Transfers"])


@router.get(
    "/pending",
    response_model=PendingTransferList,
    summary="Completed bookings whose payout is pending or failed",
)
def list_pending_transfers(
    pagination: PaginationParams = Depends(deps.get_pagination_params),
    admin_id: str = Depends(deps.require_admin),
    service: SettlementService = Depends(deps.get_settlement_service),
) -> PendingTransferList:
    return service.list_pending_transfers(pagination.page, pagination.page_size)


@router.post(
    "/{booking_id}",
    response_model=TransferResult,
    summary="Retry a payout or record its manual outcome",
)
def process_transfer_action(
    payload: TransferActionRequest,
    booking_id: str = Path(..., description="Booking ID"),
    admin_id: str = Depends(deps.require_admin),
    service: SettlementService = Depends(deps.get_settlement_service),
) -> TransferResult:
    return service.process_transfer_action(
        booking_id,
        payload.action,
        admin_id,
        notes=payload.notes,
    )
