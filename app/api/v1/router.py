"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the meeting settlement service
"""
from fastapi import APIRouter

from app.api.v1.endpoints import admin_disputes, admin_transfers, verification

router = APIRouter(
    responses={
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"},
        502: {"description": "Payment Processor Error"},
    }
)

router.include_router(verification.router)
router.include_router(admin_disputes.router)
router.include_router(admin_transfers.router)


@router.get("/health", tags=["Health"], summary="Liveness check")
def health() -> dict:
    return {"status": "ok"}
