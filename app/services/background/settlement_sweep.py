"""
Periodic settlement sweep.

One pass flags newly disputed bookings and completes verified bookings
whose capture did not go through. Each pass uses its own session; a
failing step is logged, rolled back and does not stop the other step.

Celery beat schedules the pass (see ``app.core.background_tasks``). The
console entry runs a single pass by hand:

    settlement-sweep
    settlement-sweep --release-limit 50
"""

import argparse
from dataclasses import dataclass, field
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config.settings import Settings, get_settings
from app.core.events.publisher import EventPublisher, build_event_publisher
from app.core.exceptions import BaseAppException
from app.core.logging import get_logger, log_execution_time, setup_logging
from app.db.session import SessionLocal
from app.services.admin.dispute_service import DisputeService
from app.services.base.base_service import Clock
from app.services.integrations.payment_processor import (
    PaymentProcessor,
    StripePaymentProcessor,
)
from app.services.payment.settlement_service import SettlementService

logger = get_logger(__name__)

T = TypeVar("T")

STEP_ERRORS = (BaseAppException, SQLAlchemyError)


@dataclass
class SweepReport:
    """Counts from one sweep pass."""

    disputes_flagged: int = 0
    payments_released: int = 0
    release_failures: int = 0
    errors: List[str] = field(default_factory=list)


def _run_step(db: Session, report: SweepReport, label: str, step: Callable[[], T]) -> Optional[T]:
    try:
        return step()
    except STEP_ERRORS as exc:
        message = exc.message if isinstance(exc, BaseAppException) else str(exc)
        logger.error(f"{label} failed: {message}", exc_info=True)
        report.errors.append(f"{label}: {message}")
        db.rollback()
        return None


@log_execution_time()
def run_settlement_sweep(
    session_factory: Callable[[], Session],
    processor: PaymentProcessor,
    publisher: Optional[EventPublisher] = None,
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    dispute_limit: int = 500,
    release_limit: int = 100,
) -> SweepReport:
    """Run one sweep pass and report what it did."""
    report = SweepReport()
    db = session_factory()
    try:
        disputes = DisputeService(db, processor, publisher=publisher, settings=settings, clock=clock)
        flagged = _run_step(
            db, report, "Dispute flagging",
            lambda: disputes.flag_new_disputes(limit=dispute_limit),
        )
        if flagged is not None:
            report.disputes_flagged = flagged

        settlement = SettlementService(db, processor, publisher=publisher, settings=settings, clock=clock)
        summaries = _run_step(
            db, report, "Payment release",
            lambda: settlement.release_verified_payments(limit=release_limit),
        )
        if summaries is not None:
            report.payments_released = sum(1 for s in summaries if s.captured)
            report.release_failures = sum(1 for s in summaries if not s.captured)
    finally:
        db.close()

    logger.info(
        "Settlement sweep finished",
        extra={
            "disputes_flagged": report.disputes_flagged,
            "payments_released": report.payments_released,
            "release_failures": report.release_failures,
        },
    )
    return report


def run_configured_sweep(
    settings: Optional[Settings] = None,
    dispute_limit: int = 500,
    release_limit: int = 100,
) -> SweepReport:
    """Run one pass with the processor and publisher named by the settings."""
    settings = settings or get_settings()
    return run_settlement_sweep(
        SessionLocal,
        StripePaymentProcessor.from_settings(settings),
        publisher=build_event_publisher(settings),
        settings=settings,
        dispute_limit=dispute_limit,
        release_limit=release_limit,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Flag disputed bookings and release verified payments once."
    )
    parser.add_argument("--dispute-limit", type=int, default=500, help="Most disputes flagged per pass.")
    parser.add_argument("--release-limit", type=int, default=100, help="Most payments released per pass.")
    args = parser.parse_args(argv)

    setup_logging()
    report = run_configured_sweep(
        dispute_limit=args.dispute_limit,
        release_limit=args.release_limit,
    )
    return 1 if report.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
