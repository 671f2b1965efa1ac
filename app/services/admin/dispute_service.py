"""
Administrative dispute handling.

A booking is disputed when its meeting window has passed, a payment hold
is still in place and verification never completed. Administrators close
a dispute once, by refunding the requester, paying the provider, or
closing it without moving money. ``admin_resolved`` is a one-way latch
checked under the booking lock.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.constants import (
    CANCELLED_BY_ADMIN,
    EVENT_BOOKING_CANCELLED,
    EVENT_BOOKING_COMPLETED,
    EVENT_BOOKING_DISPUTED,
    EVENT_DISPUTE_RESOLVED,
)
from app.core.events.publisher import EventPublisher
from app.core.exceptions import (
    AlreadyResolvedError,
    InvalidStateError,
    PayoutDestinationMissingError,
)
from app.models.base.enums import AdminResolutionType, BookingStatus, DisputeFilter
from app.models.booking.booking import Booking
from app.repositories.booking.booking_repository import BookingRepository
from app.repositories.payment.payout_account_repository import PayoutAccountRepository
from app.schemas.admin.dispute import DisputedBookingList, DisputeResolutionResponse
from app.schemas.booking.booking_response import BookingSummary
from app.schemas.payment.settlement import TransferResult
from app.services.base.base_service import BaseService, Clock
from app.services.base.transaction_manager import TransactionContext
from app.services.integrations.payment_processor import PaymentProcessor
from app.services.payment.settlement_service import SettlementService
from app.utils.datetime_utils import as_utc


class DisputeService(BaseService):
    """Listing and resolution of disputed bookings."""

    def __init__(
        self,
        db_session: Session,
        processor: PaymentProcessor,
        publisher: Optional[EventPublisher] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db_session, publisher=publisher, settings=settings, clock=clock)
        self.bookings = BookingRepository(db_session)
        self.payout_accounts = PayoutAccountRepository(db_session)
        self.settlement = SettlementService(
            db_session,
            processor,
            publisher=self.publisher,
            settings=self.settings,
            clock=self.clock,
        )

    def list_disputed_bookings(
        self,
        status_filter: DisputeFilter = DisputeFilter.ALL,
        page: int = 1,
        page_size: int = 20,
    ) -> DisputedBookingList:
        """Disputed bookings, most recently ended first."""
        items, total = self.bookings.find_disputed(status_filter, self.clock(), page, page_size)
        return DisputedBookingList.create(
            [BookingSummary.model_validate(item) for item in items],
            total_items=total,
            page=page,
            page_size=page_size,
        )

    def resolve_refund(
        self,
        booking_id: str,
        admin_id: str,
        notes: Optional[str] = None,
    ) -> DisputeResolutionResponse:
        """Release the hold and cancel the booking."""
        with self.transaction() as ctx:
            booking = self._lock_disputed(booking_id)
            now = self.clock()

            self.settlement.cancel_locked(booking)

            booking.status = BookingStatus.CANCELLED
            booking.cancelled_by = CANCELLED_BY_ADMIN
            booking.cancellation_reason = notes or "Refunded after dispute review"
            booking.cancelled_at = now

            self._record_resolution(ctx, booking, AdminResolutionType.REFUNDED, admin_id, notes, now)
            self.publish_after_commit(
                ctx,
                EVENT_BOOKING_CANCELLED,
                booking.id,
                BookingStatus.CANCELLED.value,
                {"cancelled_by": CANCELLED_BY_ADMIN},
            )
            return self._response(booking)

    def resolve_capture_and_pay(
        self,
        booking_id: str,
        admin_id: str,
        notes: Optional[str] = None,
    ) -> DisputeResolutionResponse:
        """
        Capture the hold without verification, complete the booking and
        pay the provider.

        The provider must have an active payout account before anything
        is captured. The payout runs after the capture has committed and
        reports its own outcome in ``transfer``.
        """
        with self.transaction() as ctx:
            booking = self._lock_disputed(booking_id)
            now = self.clock()

            if self.payout_accounts.find_active_destination(booking.provider_id) is None:
                raise PayoutDestinationMissingError(provider_id=booking.provider_id)

            self.settlement.capture_locked(booking, admin_override=True)
            booking.status = BookingStatus.COMPLETED

            self._record_resolution(ctx, booking, AdminResolutionType.PAID_COMPANION, admin_id, notes, now)
            self.publish_after_commit(
                ctx,
                EVENT_BOOKING_COMPLETED,
                booking.id,
                BookingStatus.COMPLETED.value,
                {"admin_override": True},
            )

        transfer = self.settlement.transfer_to_companion(booking_id)
        return self._response(self.bookings.get_by_id(booking_id), transfer=transfer)

    def resolve_no_action(
        self,
        booking_id: str,
        admin_id: str,
        notes: Optional[str] = None,
    ) -> DisputeResolutionResponse:
        """Close the dispute and complete the booking without moving money."""
        with self.transaction() as ctx:
            booking = self._lock_disputed(booking_id)
            now = self.clock()

            booking.status = BookingStatus.COMPLETED
            self._record_resolution(ctx, booking, AdminResolutionType.NO_ACTION, admin_id, notes, now)
            self.publish_after_commit(
                ctx,
                EVENT_BOOKING_COMPLETED,
                booking.id,
                BookingStatus.COMPLETED.value,
                {"payment_status": booking.payment_status.value},
            )
            return self._response(booking)

    def flag_new_disputes(self, limit: int = 500) -> int:
        """Stamp and announce disputes no sweep has reported yet."""
        now = self.clock()
        with self.transaction() as ctx:
            bookings = self.bookings.find_unflagged_disputes(now, limit=limit)
            for booking in bookings:
                booking.dispute_flagged_at = now
                self.publish_after_commit(
                    ctx,
                    EVENT_BOOKING_DISPUTED,
                    booking.id,
                    booking.status.value,
                    {
                        "payment_status": booking.payment_status.value,
                        "ends_at": as_utc(booking.ends_at).isoformat() if booking.ends_at else None,
                    },
                )

        if bookings:
            self._logger.warning(
                f"Flagged {len(bookings)} new disputed bookings",
                extra={"count": len(bookings)},
            )
        return len(bookings)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _lock_disputed(self, booking_id: str) -> Booking:
        booking = self.bookings.get_for_update(booking_id)

        if booking.admin_resolved:
            raise AlreadyResolvedError(
                "Dispute has already been resolved",
                resolution=booking.admin_resolution_type.value if booking.admin_resolution_type else None,
            )
        if not self.bookings.is_disputed(booking_id, self.clock()):
            raise InvalidStateError(
                "Booking is not disputed",
                current_state=booking.status.value,
            )
        return booking

    def _record_resolution(
        self,
        ctx: TransactionContext,
        booking: Booking,
        resolution: AdminResolutionType,
        admin_id: str,
        notes: Optional[str],
        now: datetime,
    ) -> None:
        booking.admin_resolved = True
        booking.admin_resolution_type = resolution
        booking.admin_resolved_by = admin_id
        booking.admin_resolution_notes = notes
        booking.admin_resolved_at = now

        self._logger.info(
            f"Dispute for booking {booking.id} resolved: {resolution.value}",
            extra={"booking_id": booking.id, "admin_id": admin_id},
        )
        self.publish_after_commit(
            ctx,
            EVENT_DISPUTE_RESOLVED,
            booking.id,
            booking.status.value,
            {"resolution": resolution.value, "resolved_by": admin_id},
        )

    @staticmethod
    def _response(
        booking: Booking,
        transfer: Optional[TransferResult] = None,
    ) -> DisputeResolutionResponse:
        return DisputeResolutionResponse(
            booking_id=booking.id,
            resolution_type=booking.admin_resolution_type,
            booking_status=booking.status,
            payment_status=booking.payment_status,
            resolved_by=booking.admin_resolved_by,
            resolved_at=booking.admin_resolved_at,
            notes=booking.admin_resolution_notes,
            transfer=transfer,
        )
