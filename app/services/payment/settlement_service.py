"""
Settlement orchestration.

Moves a booking's money through authorize -> capture | cancel -> payout.
Every operation locks the booking row, checks the payment state it is
allowed to start from, calls the processor and writes the new state in
one unit of work. The state check under the lock is what keeps a hold
from being captured or paid out twice.

The ``*_locked`` helpers expect the caller to already hold the booking
lock inside its own transaction; the dispute layer uses them to combine
a payment action with its resolution record.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.constants import (
    CANCELLED_BY_SYSTEM,
    EVENT_BOOKING_CANCELLED,
    EVENT_BOOKING_COMPLETED,
    EVENT_TRANSFER_COMPLETED,
    EVENT_TRANSFER_FAILED,
    EVENT_TRANSFER_PENDING,
    REASON_PAYOUT_DESTINATION_MISSING,
    REASON_PROCESSOR_ERROR,
)
from app.core.events.publisher import EventPublisher
from app.core.exceptions import BaseAppException, InvalidStateError, ProcessorFailure
from app.models.base.enums import (
    BookingStatus,
    ManualTransferOutcome,
    PaymentStatus,
    VerificationStatus,
)
from app.models.booking.booking import Booking
from app.repositories.booking.booking_repository import (
    PENDING_TRANSFER_STATUSES,
    BookingRepository,
)
from app.repositories.booking.verification_repository import VerificationRepository
from app.repositories.payment.payout_account_repository import PayoutAccountRepository
from app.schemas.booking.booking_response import BookingSummary
from app.schemas.payment.settlement import (
    PaymentOperationResult,
    PendingTransferList,
    SettlementSummary,
    TransferAction,
    TransferResult,
)
from app.services.base.base_service import BaseService, Clock
from app.services.base.transaction_manager import TransactionContext
from app.services.integrations.payment_processor import PaymentProcessor


class SettlementService(BaseService):
    """Payment hold, capture, release and provider payout."""

    def __init__(
        self,
        db_session: Session,
        processor: PaymentProcessor,
        publisher: Optional[EventPublisher] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db_session, publisher=publisher, settings=settings, clock=clock)
        self.processor = processor
        self.bookings = BookingRepository(db_session)
        self.verifications = VerificationRepository(db_session)
        self.payout_accounts = PayoutAccountRepository(db_session)

    # -------------------------------------------------------------------------
    # Authorization
    # -------------------------------------------------------------------------

    def authorize_payment(self, booking_id: str, payer_ref: str) -> PaymentOperationResult:
        """Place the payment hold for a booking that has none yet."""
        with self.transaction():
            booking = self.bookings.get_for_update(booking_id)

            if booking.payment_status == PaymentStatus.AUTHORIZED and booking.has_authorization:
                return self._operation_result(booking, booking.payment_authorization_ref, changed=False)
            if booking.payment_status != PaymentStatus.UNAUTHORIZED or booking.status.is_terminal:
                raise InvalidStateError(
                    "Payment can only be authorized for an open, unauthorized booking",
                    current_state=booking.payment_status.value,
                )

            reference = self.processor.authorize(Decimal(booking.total_amount), payer_ref)
            booking.payment_authorization_ref = reference
            booking.payment_status = PaymentStatus.AUTHORIZED

            self._logger.info(
                f"Payment authorized for booking {booking_id}",
                extra={"booking_id": booking_id, "authorization_ref": reference},
            )
            return self._operation_result(booking, reference)

    def cancel_locked(self, booking: Booking) -> bool:
        """
        Release the hold on a locked booking.

        Returns False when the hold was already released.
        """
        self._require_authorization(booking)

        if booking.payment_status == PaymentStatus.REFUNDED:
            return False
        if booking.payment_status != PaymentStatus.AUTHORIZED:
            raise InvalidStateError(
                "Only an authorized payment can be released",
                current_state=booking.payment_status.value,
            )

        self.processor.cancel(booking.payment_authorization_ref)
        booking.payment_status = PaymentStatus.REFUNDED

        self._logger.info(
            f"Payment authorization released for booking {booking.id}",
            extra={"booking_id": booking.id},
        )
        return True

    def cancel_authorization(self, booking_id: str) -> PaymentOperationResult:
        """Release the payment hold without charging."""
        with self.transaction():
            booking = self.bookings.get_for_update(booking_id)
            changed = self.cancel_locked(booking)
            return self._operation_result(booking, booking.payment_authorization_ref, changed=changed)

    # -------------------------------------------------------------------------
    # Capture
    # -------------------------------------------------------------------------

    def capture_locked(self, booking: Booking, admin_override: bool = False) -> bool:
        """
        Capture the hold on a locked booking.

        Without ``admin_override`` the booking's verification must be
        ``verified``. Returns False when the payment was already captured.
        """
        self._require_authorization(booking)

        if booking.payment_status.is_captured:
            return False
        if booking.payment_status != PaymentStatus.AUTHORIZED:
            raise InvalidStateError(
                "Only an authorized payment can be captured",
                current_state=booking.payment_status.value,
            )

        if not admin_override:
            record = self.verifications.find_by_booking_id(booking.id)
            if record is None or record.verification_status != VerificationStatus.VERIFIED:
                raise InvalidStateError(
                    "Payment cannot be captured before both parties are verified",
                    current_state=record.verification_status.value if record else None,
                )

        self.processor.capture(booking.payment_authorization_ref)
        booking.payment_status = PaymentStatus.CAPTURED
        booking.captured_at = self.clock()
        booking.settlement_failure_reason = None

        self._logger.info(
            f"Payment captured for booking {booking.id}",
            extra={"booking_id": booking.id, "admin_override": admin_override},
        )
        return True

    def capture_payment(self, booking_id: str, admin_override: bool = False) -> PaymentOperationResult:
        """Capture the payment hold."""
        with self.transaction():
            booking = self.bookings.get_for_update(booking_id)
            changed = self.capture_locked(booking, admin_override=admin_override)
            return self._operation_result(booking, booking.payment_authorization_ref, changed=changed)

    # -------------------------------------------------------------------------
    # Payout
    # -------------------------------------------------------------------------

    def transfer_locked(self, booking: Booking) -> TransferResult:
        """
        Pay the provider's earnings out for a locked, captured booking.

        Processor errors and a missing payout account are recorded on the
        booking and reported in the result; they are never raised.
        """
        if booking.payment_status == PaymentStatus.TRANSFER_COMPLETED:
            return self._transfer_result(booking, success=True)

        if booking.payment_status not in (PaymentStatus.CAPTURED,) + PENDING_TRANSFER_STATUSES:
            raise InvalidStateError(
                "Payment must be captured before the provider can be paid",
                current_state=booking.payment_status.value,
            )

        earnings = booking.compute_provider_earnings()
        booking.provider_earnings = earnings

        destination = self.payout_accounts.find_active_destination(booking.provider_id)
        if destination is None:
            booking.payment_status = PaymentStatus.TRANSFER_PENDING
            booking.settlement_failure_reason = (
                f"{REASON_PAYOUT_DESTINATION_MISSING}: provider has no active payout account"
            )
            self._logger.warning(
                f"Transfer for booking {booking.id} needs manual processing: no payout account",
                extra={"booking_id": booking.id, "provider_id": booking.provider_id},
            )
            return self._transfer_result(
                booking,
                success=False,
                reason=REASON_PAYOUT_DESTINATION_MISSING,
                message="Provider has no active payout account; transfer requires manual processing",
            )

        try:
            transfer_ref = self.processor.transfer(
                destination,
                earnings,
                metadata={"booking_id": booking.id, "provider_id": booking.provider_id},
            )
        except ProcessorFailure as exc:
            detail = exc.details.get("processor_error") or exc.message
            booking.payment_status = PaymentStatus.TRANSFER_FAILED
            booking.settlement_failure_reason = f"{REASON_PROCESSOR_ERROR}: {detail}"
            self._logger.error(
                f"Transfer for booking {booking.id} failed: {detail}",
                extra={"booking_id": booking.id},
            )
            return self._transfer_result(
                booking,
                success=False,
                reason=REASON_PROCESSOR_ERROR,
                message=f"Transfer failed and requires manual processing: {detail}",
            )

        booking.payment_status = PaymentStatus.TRANSFER_COMPLETED
        booking.transfer_ref = transfer_ref
        booking.transfer_completed_at = self.clock()
        booking.settlement_failure_reason = None

        self._logger.info(
            f"Transferred {earnings} to provider for booking {booking.id}",
            extra={"booking_id": booking.id, "transfer_ref": transfer_ref},
        )
        return self._transfer_result(booking, success=True)

    def transfer_to_companion(self, booking_id: str) -> TransferResult:
        """Pay out a captured booking to its provider."""
        with self.transaction() as ctx:
            booking = self.bookings.get_for_update(booking_id)
            already_paid = booking.payment_status == PaymentStatus.TRANSFER_COMPLETED
            result = self.transfer_locked(booking)
            if not already_paid:
                self._publish_transfer(ctx, result)
            return result

    def retry_transfer(
        self,
        booking_id: str,
        admin_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> TransferResult:
        """Re-attempt a payout that is pending or failed."""
        with self.transaction() as ctx:
            booking = self.bookings.get_for_update(booking_id)
            self._require_pending_transfer(booking)

            result = self.transfer_locked(booking)
            if admin_id:
                self._append_admin_note(booking, "retried", admin_id, note)
            self._publish_transfer(ctx, result)
            return result

    def mark_manual_transfer(
        self,
        booking_id: str,
        outcome: ManualTransferOutcome,
        note: Optional[str],
        admin_id: str,
    ) -> TransferResult:
        """Record a payout an administrator settled outside the processor."""
        with self.transaction() as ctx:
            booking = self.bookings.get_for_update(booking_id)
            self._require_pending_transfer(booking)

            if booking.provider_earnings is None:
                booking.provider_earnings = booking.compute_provider_earnings()

            if outcome == ManualTransferOutcome.COMPLETED:
                booking.payment_status = PaymentStatus.TRANSFER_COMPLETED
                booking.transfer_completed_at = self.clock()
            else:
                booking.payment_status = PaymentStatus.TRANSFER_FAILED

            self._append_admin_note(booking, outcome.value, admin_id, note)

            self._logger.info(
                f"Transfer for booking {booking_id} manually marked {outcome.value}",
                extra={"booking_id": booking_id, "admin_id": admin_id},
            )

            result = self._transfer_result(
                booking,
                success=outcome == ManualTransferOutcome.COMPLETED,
                message=f"Transfer manually marked {outcome.value}",
            )
            self._publish_transfer(ctx, result)
            return result

    def process_transfer_action(
        self,
        booking_id: str,
        action: TransferAction,
        admin_id: str,
        notes: Optional[str] = None,
    ) -> TransferResult:
        """Dispatch an administrator's follow-up on a pending payout."""
        if action == TransferAction.RETRY:
            return self.retry_transfer(booking_id, admin_id=admin_id, note=notes)
        if action == TransferAction.MARK_PROCESSED:
            return self.mark_manual_transfer(booking_id, ManualTransferOutcome.COMPLETED, notes, admin_id)
        return self.mark_manual_transfer(booking_id, ManualTransferOutcome.FAILED, notes, admin_id)

    def list_pending_transfers(self, page: int, page_size: int) -> PendingTransferList:
        items, total = self.bookings.find_pending_transfers(page, page_size)
        stats = self.bookings.pending_transfer_stats()
        return PendingTransferList.create(
            [BookingSummary.model_validate(item) for item in items],
            total_items=total,
            page=page,
            page_size=page_size,
            pending_count=stats["count"],
            total_pending_amount=stats["total_pending_amount"],
        )

    # -------------------------------------------------------------------------
    # Flows triggered by verification
    # -------------------------------------------------------------------------

    def complete_verified_booking(self, booking_id: str) -> SettlementSummary:
        """
        Capture a verified booking, mark it completed, then pay the provider.

        Capture and completion commit before the payout is attempted. A
        capture failure is recorded on the booking and left for the
        release sweep.
        """
        try:
            with self.transaction() as ctx:
                booking = self.bookings.get_for_update(booking_id)
                if booking.status not in BookingStatus.verifiable():
                    raise InvalidStateError(
                        "Only an open booking can be completed",
                        current_state=booking.status.value,
                    )

                self.capture_locked(booking, admin_override=False)
                booking.status = BookingStatus.COMPLETED
                self.publish_after_commit(
                    ctx,
                    EVENT_BOOKING_COMPLETED,
                    booking.id,
                    BookingStatus.COMPLETED.value,
                    {"payment_status": booking.payment_status.value},
                )
        except ProcessorFailure as exc:
            self._record_settlement_failure(booking_id, f"CAPTURE_FAILED: {exc.message}")
            return SettlementSummary(captured=False, error=exc.message)

        transfer = self.transfer_to_companion(booking_id)
        return SettlementSummary(captured=True, completed=True, transfer=transfer)

    def auto_cancel_and_refund(self, booking_id: str, reason: str) -> bool:
        """
        Cancel a booking and release its hold after a failed verification.

        A processor failure is logged and leaves the booking open so it
        surfaces as a dispute. Returns True when the booking was cancelled.
        """
        try:
            with self.transaction() as ctx:
                booking = self.bookings.get_for_update(booking_id)

                if booking.status.is_terminal:
                    self._logger.info(
                        f"Booking {booking_id} already {booking.status.value}; nothing to cancel",
                        extra={"booking_id": booking_id},
                    )
                    return False
                if booking.payment_status.is_captured:
                    self._logger.warning(
                        f"Booking {booking_id} was captured; automatic refund skipped",
                        extra={"booking_id": booking_id},
                    )
                    return False

                if booking.has_authorization and booking.payment_status == PaymentStatus.AUTHORIZED:
                    self.cancel_locked(booking)

                booking.status = BookingStatus.CANCELLED
                booking.cancelled_by = CANCELLED_BY_SYSTEM
                booking.cancellation_reason = reason
                booking.cancelled_at = self.clock()

                self.publish_after_commit(
                    ctx,
                    EVENT_BOOKING_CANCELLED,
                    booking.id,
                    BookingStatus.CANCELLED.value,
                    {"reason": reason, "payment_status": booking.payment_status.value},
                )
        except ProcessorFailure as exc:
            self._logger.error(
                f"Automatic refund failed for booking {booking_id}: {exc.message}",
                extra={"booking_id": booking_id},
            )
            self._record_settlement_failure(booking_id, f"REFUND_FAILED: {exc.message}")
            return False

        self._logger.info(
            f"Booking {booking_id} cancelled and refunded: {reason}",
            extra={"booking_id": booking_id},
        )
        return True

    def release_verified_payments(self, limit: int = 100) -> List[SettlementSummary]:
        """Complete verified bookings whose capture never happened."""
        summaries = []
        for booking_id in self.bookings.find_verified_awaiting_capture(limit=limit):
            try:
                summaries.append(self.complete_verified_booking(booking_id))
            except BaseAppException as exc:
                self._logger.warning(
                    f"Could not release payment for booking {booking_id}: {exc.message}",
                    extra={"booking_id": booking_id},
                )
        return summaries

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_authorization(self, booking: Booking) -> None:
        if not booking.has_authorization:
            raise InvalidStateError(
                "Booking has no payment authorization",
                current_state=booking.payment_status.value,
            )

    def _require_pending_transfer(self, booking: Booking) -> None:
        if booking.payment_status not in PENDING_TRANSFER_STATUSES:
            raise InvalidStateError(
                "Transfer is not awaiting manual processing",
                current_state=booking.payment_status.value,
            )

    def _append_admin_note(
        self,
        booking: Booking,
        verb: str,
        admin_id: str,
        note: Optional[str],
    ) -> None:
        entry = f" | Manually {verb} by admin {admin_id}: {note or 'no notes'}"
        booking.settlement_failure_reason = (booking.settlement_failure_reason or "") + entry

    def _record_settlement_failure(self, booking_id: str, reason: str) -> None:
        with self.transaction():
            booking = self.bookings.get_for_update(booking_id)
            booking.settlement_failure_reason = reason

    def _publish_transfer(self, ctx: TransactionContext, result: TransferResult) -> None:
        if result.payment_status == PaymentStatus.TRANSFER_COMPLETED:
            event_type = EVENT_TRANSFER_COMPLETED
        elif result.payment_status == PaymentStatus.TRANSFER_PENDING:
            event_type = EVENT_TRANSFER_PENDING
        else:
            event_type = EVENT_TRANSFER_FAILED

        self.publish_after_commit(
            ctx,
            event_type,
            result.booking_id,
            result.payment_status.value,
            {
                "transfer_ref": result.transfer_ref,
                "provider_earnings": str(result.provider_earnings) if result.provider_earnings is not None else None,
                "requires_manual_processing": result.requires_manual_processing,
                "reason": result.reason,
            },
        )

    @staticmethod
    def _operation_result(
        booking: Booking,
        reference: Optional[str],
        changed: bool = True,
    ) -> PaymentOperationResult:
        return PaymentOperationResult(
            booking_id=booking.id,
            payment_status=booking.payment_status,
            reference=reference,
            changed=changed,
        )

    @staticmethod
    def _transfer_result(
        booking: Booking,
        success: bool,
        reason: Optional[str] = None,
        message: Optional[str] = None,
    ) -> TransferResult:
        return TransferResult(
            booking_id=booking.id,
            success=success,
            payment_status=booking.payment_status,
            transfer_ref=booking.transfer_ref,
            provider_earnings=booking.provider_earnings,
            platform_fee=booking.platform_fee_amount,
            requires_manual_processing=not success,
            reason=reason,
            message=message,
        )
