"""
Integrations service layer.

External capabilities used by the settlement flow.
"""

from app.services.integrations.payment_processor import (
    PaymentProcessor,
    StripePaymentProcessor,
    to_minor_units,
)

__all__ = ["PaymentProcessor", "StripePaymentProcessor", "to_minor_units"]
