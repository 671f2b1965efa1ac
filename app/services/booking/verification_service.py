"""
Dual-party code and location verification.

Each party enters the code issued to the other party while standing at
the meeting point. Once both have entered a correct code the two GPS
readings are checked against the meeting coordinates and the record is
resolved exactly once, as verified or failed.

Settlement follows the resolution after it has committed: a failure
releases the payment hold, a success captures it and pays the provider.
"""

import hmac
import re
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.constants import (
    EVENT_VERIFICATION_FAILED,
    EVENT_VERIFICATION_VERIFIED,
    LOCATION_VERIFICATION_FAILED,
)
from app.core.events.publisher import EventPublisher
from app.core.exceptions import (
    AlreadyResolvedError,
    AlreadySubmittedError,
    AttemptsExceededError,
    BaseAppException,
    ForbiddenError,
    InvalidStateError,
    ValidationError,
)
from app.models.base.enums import PartyRole, VerificationOutcome, VerificationStatus
from app.models.booking.booking import Booking
from app.models.booking.booking_verification import BookingVerification
from app.models.booking.verification_attempt import VerificationAttempt
from app.repositories.booking.booking_repository import BookingRepository
from app.repositories.booking.verification_repository import VerificationRepository
from app.schemas.booking.verification import VerificationResult, VerificationStatusView
from app.schemas.payment.settlement import SettlementSummary
from app.services.base.base_service import BaseService, Clock
from app.services.base.transaction_manager import TransactionContext
from app.services.payment.settlement_service import SettlementService
from app.utils.geo_utils import (
    GeoPoint,
    format_distance,
    haversine_distance_m,
    validate_coordinates,
)


class VerificationService(BaseService):
    """
    Code submission and verification status for booking parties.

    ``settlement`` is optional; without it a resolved verification is
    left for the release sweep or an administrator.
    """

    def __init__(
        self,
        db_session: Session,
        settlement: Optional[SettlementService] = None,
        publisher: Optional[EventPublisher] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db_session, publisher=publisher, settings=settings, clock=clock)
        self.settlement = settlement
        self.bookings = BookingRepository(db_session)
        self.verifications = VerificationRepository(db_session)

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def submit_otp(
        self,
        booking_id: str,
        actor_id: str,
        code: str,
        latitude: float,
        longitude: float,
    ) -> VerificationResult:
        """
        Record one party's code entry and resolve the verification once
        both parties have entered a correct code.

        Raises:
            ValidationError: malformed code or coordinates
            ResourceNotFoundError: unknown booking or missing verification record
            ForbiddenError: actor is not a party to the booking
            InvalidStateError: booking cannot be verified
            AlreadyResolvedError: verification already verified or failed
            AttemptsExceededError: actor has no attempts left
            AlreadySubmittedError: actor already entered a correct code
        """
        self._validate_submission(code, latitude, longitude)

        with self.transaction() as ctx:
            booking = self.bookings.get_for_update(booking_id)

            role = booking.party_role(actor_id)
            if role is None:
                raise ForbiddenError("You are not a party to this booking")

            if not booking.is_verifiable:
                raise InvalidStateError(
                    "Booking is not open for verification",
                    current_state=booking.status.value,
                    details={"has_meeting_coordinates": booking.has_meeting_coordinates},
                )

            record = self.verifications.get_by_booking_id(booking_id, for_update=True)
            if record.is_resolved:
                raise AlreadyResolvedError(
                    f"Verification already {record.verification_status.value}",
                    resolution=record.verification_status.value,
                )

            max_attempts = self.settings.MAX_OTP_ATTEMPTS
            slot = record.slot(role)

            if slot.attempts >= max_attempts:
                raise AttemptsExceededError(
                    "Maximum verification attempts exceeded",
                    max_attempts=max_attempts,
                )
            if slot.entered:
                raise AlreadySubmittedError(
                    "You have already entered the code for this booking",
                    role=role.value,
                )

            now = self.clock()

            if not hmac.compare_digest(code.encode(), (slot.expected_code or "").encode()):
                slot.attempts = slot.attempts + 1
                remaining = slot.remaining_attempts(max_attempts)
                self._record_attempt(
                    booking_id, actor_id, role, VerificationOutcome.WRONG_CODE,
                    latitude, longitude, detail=f"{remaining} attempts remaining",
                )
                self._logger.info(
                    f"Wrong code for booking {booking_id}",
                    extra={"booking_id": booking_id, "role": role.value, "remaining_attempts": remaining},
                )
                return VerificationResult(
                    booking_id=booking_id,
                    outcome=VerificationOutcome.WRONG_CODE,
                    verification_status=record.verification_status,
                    message=f"Invalid code. {remaining} attempts remaining.",
                    remaining_attempts=remaining,
                )

            slot.mark_entered(latitude, longitude, now)

            if not record.slot(role.counterpart).entered:
                self._record_attempt(
                    booking_id, actor_id, role, VerificationOutcome.WAITING_FOR_OTHER,
                    latitude, longitude,
                )
                return VerificationResult(
                    booking_id=booking_id,
                    outcome=VerificationOutcome.WAITING_FOR_OTHER,
                    verification_status=record.verification_status,
                    message=f"Code accepted. Waiting for the {role.counterpart.value} to enter their code.",
                    remaining_attempts=slot.remaining_attempts(max_attempts),
                    waiting_for=role.counterpart,
                )

            result = self._resolve_location(ctx, booking, record, actor_id, role, now)

        if result.outcome == VerificationOutcome.FAILED:
            self._release_after_failure(booking_id)
        elif self.settings.AUTO_SETTLE_ON_VERIFICATION:
            result.settlement = self._settle_after_success(booking_id)

        return result

    def _resolve_location(
        self,
        ctx: TransactionContext,
        booking: Booking,
        record: BookingVerification,
        actor_id: str,
        actor_role: PartyRole,
        now: datetime,
    ) -> VerificationResult:
        """Compare both readings with the meeting point and write the terminal status."""
        meeting = GeoPoint(booking.meeting_latitude, booking.meeting_longitude)
        radius = self.settings.VERIFICATION_RADIUS_METERS

        distances: Dict[PartyRole, float] = {}
        for role in PartyRole:
            slot = record.slot(role)
            distance = haversine_distance_m(meeting, GeoPoint(slot.latitude, slot.longitude))
            distances[role] = distance
            slot.distance_m = round(distance, 2)

        offenders = [role for role in PartyRole if distances[role] > radius]
        record.resolved_at = now

        if offenders:
            record.verification_status = VerificationStatus.FAILED
            record.location_verified = False
            record.failure_reason = self._failure_reason(offenders, distances, radius)
            outcome = VerificationOutcome.FAILED
            event_type = EVENT_VERIFICATION_FAILED
            message = record.failure_reason
        else:
            record.verification_status = VerificationStatus.VERIFIED
            record.location_verified = True
            record.verified_at = now
            outcome = VerificationOutcome.VERIFIED
            event_type = EVENT_VERIFICATION_VERIFIED
            message = "Both parties verified at the meeting location"

        self._record_attempt(
            booking.id, actor_id, actor_role, outcome,
            record.slot(actor_role).latitude, record.slot(actor_role).longitude,
            distance_m=round(distances[actor_role], 2),
            detail=record.failure_reason,
        )

        requester_distance = round(distances[PartyRole.REQUESTER])
        provider_distance = round(distances[PartyRole.PROVIDER])

        self.publish_after_commit(
            ctx,
            event_type,
            booking.id,
            record.verification_status.value,
            {
                "requester_distance_m": requester_distance,
                "provider_distance_m": provider_distance,
                "radius_m": radius,
                "failure_reason": record.failure_reason,
            },
        )

        self._logger.info(
            f"Verification {record.verification_status.value} for booking {booking.id}",
            extra={
                "booking_id": booking.id,
                "requester_distance_m": requester_distance,
                "provider_distance_m": provider_distance,
            },
        )

        return VerificationResult(
            booking_id=booking.id,
            outcome=outcome,
            verification_status=record.verification_status,
            message=message,
            requester_distance_m=requester_distance,
            provider_distance_m=provider_distance,
            radius_m=radius,
            failure_reason=record.failure_reason,
        )

    @staticmethod
    def _failure_reason(
        offenders: List[PartyRole],
        distances: Dict[PartyRole, float],
        radius: float,
    ) -> str:
        parts = [
            f"{role.value} was {format_distance(distances[role])} away from the meeting "
            f"location (allowed radius {format_distance(radius)})"
            for role in offenders
        ]
        return "Location verification failed: " + "; ".join(parts)

    # -------------------------------------------------------------------------
    # Post-commit settlement
    # -------------------------------------------------------------------------

    def _release_after_failure(self, booking_id: str) -> None:
        if self.settlement is None:
            self._logger.warning(
                f"No settlement service configured; hold for booking {booking_id} not released",
                extra={"booking_id": booking_id},
            )
            return
        try:
            self.settlement.auto_cancel_and_refund(booking_id, LOCATION_VERIFICATION_FAILED)
        except BaseAppException as exc:
            self._logger.error(
                f"Automatic cancellation failed for booking {booking_id}: {exc.message}",
                extra={"booking_id": booking_id, "error_code": exc.error_code},
            )

    def _settle_after_success(self, booking_id: str) -> Optional[SettlementSummary]:
        if self.settlement is None:
            return None
        try:
            return self.settlement.complete_verified_booking(booking_id)
        except BaseAppException as exc:
            self._logger.error(
                f"Settlement after verification failed for booking {booking_id}: {exc.message}",
                extra={"booking_id": booking_id, "error_code": exc.error_code},
            )
            return SettlementSummary(captured=False, error=exc.message)

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def get_verification_status(self, booking_id: str, actor_id: str) -> VerificationStatusView:
        """Verification progress for one of the booking's parties."""
        booking = self.bookings.get_by_id(booking_id)
        role = booking.party_role(actor_id)
        if role is None:
            raise ForbiddenError("You are not a party to this booking")

        record = self.verifications.get_by_booking_id(booking_id)
        slot = record.slot(role)

        return VerificationStatusView(
            booking_id=booking_id,
            booking_status=booking.status,
            verification_status=record.verification_status,
            role=role,
            has_entered=slot.entered,
            counterpart_entered=record.slot(role.counterpart).entered,
            remaining_attempts=slot.remaining_attempts(self.settings.MAX_OTP_ATTEMPTS),
            location_verified=record.location_verified,
            requester_distance_m=record.requester_distance_m,
            provider_distance_m=record.provider_distance_m,
            failure_reason=record.failure_reason,
            verified_at=record.verified_at,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _validate_submission(self, code: str, latitude: float, longitude: float) -> None:
        length = self.settings.OTP_LENGTH
        if not isinstance(code, str) or not re.fullmatch(rf"[0-9]{{{length}}}", code):
            raise ValidationError(
                f"Code must be exactly {length} digits",
                field_errors={"code": [f"Expected {length} digits"]},
            )
        try:
            validate_coordinates(latitude, longitude)
        except ValueError as exc:
            raise ValidationError(
                str(exc),
                field_errors={"location": [str(exc)]},
            ) from exc

    def _record_attempt(
        self,
        booking_id: str,
        user_id: str,
        role: PartyRole,
        outcome: VerificationOutcome,
        latitude: Optional[float],
        longitude: Optional[float],
        distance_m: Optional[float] = None,
        detail: Optional[str] = None,
    ) -> None:
        self.verifications.record_attempt(
            VerificationAttempt(
                booking_id=booking_id,
                user_id=user_id,
                role=role,
                outcome=outcome,
                latitude=latitude,
                longitude=longitude,
                distance_m=distance_m,
                detail=detail,
            )
        )
