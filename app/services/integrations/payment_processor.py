"""
Payment processor capability.

Settlement code depends on the ``PaymentProcessor`` protocol only. The
Stripe implementation places manual-capture holds, captures or cancels
them, and pays providers out through connected-account transfers.
Every processor error surfaces as ``ProcessorFailure``.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Protocol

import stripe

from app.config.settings import Settings, get_settings
from app.core.exceptions import ConfigurationError, ProcessorFailure
from app.core.logging import get_logger

logger = get_logger(__name__)


class PaymentProcessor(Protocol):
    """Operations the settlement layer needs from a payment processor."""

    def authorize(self, amount: Decimal, payer_ref: str) -> str:
        """Place a hold and return its authorization reference."""
        ...

    def capture(self, authorization_ref: str) -> str:
        """Capture a hold and return the capture reference."""
        ...

    def cancel(self, authorization_ref: str) -> None:
        """Release a hold without charging."""
        ...

    def transfer(
        self,
        destination_ref: str,
        amount: Decimal,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        """Pay out to a destination account and return the transfer reference."""
        ...


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (12.34) to minor units (1234)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripePaymentProcessor:
    """Client for payment gateway operations backed by Stripe"""

    def __init__(
        self,
        api_key: str,
        currency: str = "usd",
        api_version: Optional[str] = None,
        client: Any = stripe,
    ):
        if not api_key:
            raise ConfigurationError("Stripe API key is not configured", config_key="STRIPE_API_KEY")

        self.currency = currency.lower()
        self.client = client
        self.client.api_key = api_key
        if api_version:
            self.client.api_version = api_version

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "StripePaymentProcessor":
        settings = settings or get_settings()
        return cls(
            api_key=settings.STRIPE_API_KEY,
            currency=settings.CURRENCY,
            api_version=settings.STRIPE_API_VERSION,
        )

    def _fail(self, operation: str, exc: Exception) -> ProcessorFailure:
        logger.error(
            f"Stripe {operation} error: {exc}",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        return ProcessorFailure(
            f"Payment processor {operation} failed",
            operation=operation,
            processor_error=str(exc),
        )

    def authorize(self, amount: Decimal, payer_ref: str) -> str:
        try:
            intent = self.client.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=self.currency,
                payment_method=payer_ref,
                capture_method="manual",
                confirm=True,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
            )
        except Exception as e:
            raise self._fail("authorize", e) from e

        if intent.status != "requires_capture":
            raise ProcessorFailure(
                "Payment authorization was not approved",
                operation="authorize",
                processor_error=f"status={intent.status}",
            )
        return intent.id

    def capture(self, authorization_ref: str) -> str:
        try:
            intent = self.client.PaymentIntent.capture(authorization_ref)
        except Exception as e:
            raise self._fail("capture", e) from e

        if intent.status != "succeeded":
            raise ProcessorFailure(
                "Payment capture did not succeed",
                operation="capture",
                processor_error=f"status={intent.status}",
            )
        return intent.id

    def cancel(self, authorization_ref: str) -> None:
        try:
            intent = self.client.PaymentIntent.cancel(authorization_ref)
        except Exception as e:
            raise self._fail("cancel", e) from e

        if intent.status != "canceled":
            raise ProcessorFailure(
                "Payment authorization was not released",
                operation="cancel",
                processor_error=f"status={intent.status}",
            )

    def transfer(
        self,
        destination_ref: str,
        amount: Decimal,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        try:
            transfer = self.client.Transfer.create(
                amount=to_minor_units(amount),
                currency=self.currency,
                destination=destination_ref,
                metadata=metadata or {},
            )
        except Exception as e:
            raise self._fail("transfer", e) from e
        return transfer.id
