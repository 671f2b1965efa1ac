"""
Verification endpoints for booking parties.
"""

from fastapi import APIRouter, Depends, Path, status

from app.api import deps
from app.schemas.booking.verification import (
    OTPSubmissionRequest,
    VerificationResult,
    VerificationStatusView,
)
from app.services.booking.verification_service import VerificationService

router = APIRouter(prefix="/bookings", tags=["Booking Verification"])


@router.post(
    "/{booking_id}/verification/otp",
    response_model=VerificationResult,
    status_code=status.HTTP_200_OK,
    summary="Submit the counterpart's code with the current location",
)
def submit_otp(
    payload: OTPSubmissionRequest,
    booking_id: str = Path(..., description="Booking ID"),
    user_id: str = Depends(deps.get_current_user_id),
    service: VerificationService = Depends(deps.get_verification_service),
) -> VerificationResult:
    return service.submit_otp(
        booking_id,
        user_id,
        payload.code,
        payload.latitude,
        payload.longitude,
    )


@router.get(
    "/{booking_id}/verification",
    response_model=VerificationStatusView,
    summary="Verification progress for the calling party",
)
def get_verification_status(
    booking_id: str = Path(..., description="Booking ID"),
    user_id: str = Depends(deps.get_current_user_id),
    service: VerificationService = Depends(deps.get_verification_service),
) -> VerificationStatusView:
    return service.get_verification_status(booking_id, user_id)
