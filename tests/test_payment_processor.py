from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe

from app.core.exceptions import ConfigurationError, ProcessorFailure
from app.services.integrations.payment_processor import StripePaymentProcessor, to_minor_units


class _PaymentIntents:
    def __init__(self, status="requires_capture", error=None):
        self.status = status
        self.error = error
        self.created = []

    def create(self, **kwargs):
        if self.error:
            raise self.error
        self.created.append(kwargs)
        return SimpleNamespace(id="pi_1", status=self.status)

    def capture(self, ref):
        if self.error:
            raise self.error
        return SimpleNamespace(id=ref, status="succeeded")

    def cancel(self, ref):
        return SimpleNamespace(id=ref, status=self.status)


class _Transfers:
    def __init__(self):
        self.created = []

    def create(self, **kwargs):
        self.created.append(kwargs)
        return SimpleNamespace(id="tr_1")


def _client(**intent_kwargs):
    return SimpleNamespace(
        api_key=None,
        api_version=None,
        PaymentIntent=_PaymentIntents(**intent_kwargs),
        Transfer=_Transfers(),
    )


def test_to_minor_units():
    assert to_minor_units(Decimal("12.345")) == 1235
    assert to_minor_units(Decimal("100")) == 10000


def test_missing_api_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        StripePaymentProcessor(api_key="", client=_client())


def test_authorize_places_manual_capture_hold():
    client = _client()
    processor = StripePaymentProcessor("sk_test", client=client)

    assert processor.authorize(Decimal("25.50"), "pm_card") == "pi_1"
    created = client.PaymentIntent.created[0]
    assert created["amount"] == 2550
    assert created["capture_method"] == "manual"


def test_unapproved_authorization_fails():
    processor = StripePaymentProcessor("sk_test", client=_client(status="requires_action"))

    with pytest.raises(ProcessorFailure):
        processor.authorize(Decimal("10"), "pm_card")


def test_stripe_errors_become_processor_failures():
    error = stripe.CardError("declined", param=None, code="card_declined")
    processor = StripePaymentProcessor("sk_test", client=_client(error=error))

    with pytest.raises(ProcessorFailure) as exc_info:
        processor.capture("pi_1")
    assert exc_info.value.details["operation"] == "capture"


def test_cancel_requires_canceled_status():
    processor = StripePaymentProcessor("sk_test", client=_client(status="canceled"))
    processor.cancel("pi_1")

    with pytest.raises(ProcessorFailure):
        StripePaymentProcessor("sk_test", client=_client(status="succeeded")).cancel("pi_1")


def test_transfer_sends_minor_units():
    client = _client()
    processor = StripePaymentProcessor("sk_test", currency="USD", client=client)

    assert processor.transfer("acct_1", Decimal("85.00"), {"booking_id": "b-1"}) == "tr_1"
    assert client.Transfer.created[0] == {
        "amount": 8500,
        "currency": "usd",
        "destination": "acct_1",
        "metadata": {"booking_id": "b-1"},
    }
