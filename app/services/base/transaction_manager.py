"""
Transaction manager utilities for service layer operations.

A transaction is a scoped unit of work: it commits when the block exits
normally and rolls back exactly once on any exception, after which the
original exception propagates unchanged.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.core.logging import get_logger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TransactionContext:
    """Context information for a transaction."""

    transaction_id: str = field(default_factory=lambda: str(uuid4()))
    started_at: datetime = field(default_factory=_utcnow)
    committed: bool = False
    rolled_back: bool = False
    completed_at: Optional[datetime] = None
    error: Optional[Exception] = None
    _after_commit: List[Callable[[], None]] = field(default_factory=list, repr=False)

    @property
    def duration_ms(self) -> Optional[float]:
        """Get transaction duration in milliseconds."""
        if self.completed_at:
            delta = self.completed_at - self.started_at
            return delta.total_seconds() * 1000
        return None

    @property
    def is_completed(self) -> bool:
        """Check if transaction is completed."""
        return self.committed or self.rolled_back

    def after_commit(self, callback: Callable[[], None]) -> None:
        """Run callback once this transaction has committed; dropped on rollback."""
        self._after_commit.append(callback)


class TransactionManager:
    """
    Transaction management for the service layer with:
    - Commit on success, single rollback on failure
    - Per-transaction after-commit callbacks
    - Transaction logging
    """

    def __init__(self, db_session: Session):
        """
        Initialize transaction manager.

        Args:
            db_session: SQLAlchemy database session
        """
        self.db = db_session
        self._logger = get_logger(self.__class__.__name__)

    @contextmanager
    def start(
        self,
        auto_commit: bool = True,
        isolation_level: Optional[str] = None,
    ) -> Iterator[TransactionContext]:
        """
        Start a new transaction.

        Args:
            auto_commit: Automatically commit on success
            isolation_level: Transaction isolation level

        Yields:
            TransactionContext instance

        Example:
            with transaction_manager.start() as ctx:
                # perform operations
                # automatic commit on success, rollback on exception
        """
        ctx = TransactionContext()

        if isolation_level:
            self.db.connection(execution_options={"isolation_level": isolation_level})

        self._logger.debug(
            f"Transaction started: {ctx.transaction_id}",
            extra={
                "transaction_id": ctx.transaction_id,
                "auto_commit": auto_commit,
                "isolation_level": isolation_level,
            }
        )

        try:
            yield ctx

            if auto_commit and not ctx.is_completed:
                self._commit(ctx)

        except BaseException as exc:
            ctx.error = exc if isinstance(exc, Exception) else None

            if not ctx.rolled_back:
                self._rollback(ctx, exc)

            raise

        finally:
            ctx.completed_at = _utcnow()

            self._logger.debug(
                f"Transaction completed: {ctx.transaction_id} "
                f"({'committed' if ctx.committed else 'rolled back'}) "
                f"in {ctx.duration_ms:.2f}ms",
                extra={
                    "transaction_id": ctx.transaction_id,
                    "committed": ctx.committed,
                    "rolled_back": ctx.rolled_back,
                    "duration_ms": ctx.duration_ms,
                }
            )

        if ctx.committed:
            self._run_after_commit(ctx)

    def _commit(self, ctx: TransactionContext) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self._logger.error(
                f"Commit failed for transaction {ctx.transaction_id}: {e}",
                exc_info=True,
                extra={"transaction_id": ctx.transaction_id}
            )
            self._rollback(ctx, e)
            raise

        ctx.committed = True
        self._logger.debug(
            f"Transaction committed: {ctx.transaction_id}",
            extra={"transaction_id": ctx.transaction_id}
        )

    def _rollback(self, ctx: TransactionContext, exc: BaseException) -> None:
        # Rollback errors are logged, never raised over the original exception
        try:
            self.db.rollback()
        except Exception as e:
            self._logger.error(
                f"Rollback failed for transaction {ctx.transaction_id}: {e}",
                exc_info=True
            )
            return
        finally:
            ctx.rolled_back = True

        self._logger.warning(
            f"Transaction rolled back: {ctx.transaction_id} - {exc}",
            extra={
                "transaction_id": ctx.transaction_id,
                "error": str(exc),
            }
        )

    def _run_after_commit(self, ctx: TransactionContext) -> None:
        for callback in ctx._after_commit:
            try:
                callback()
            except Exception as e:
                self._logger.error(f"After-commit callback failed: {e}", exc_info=True)
