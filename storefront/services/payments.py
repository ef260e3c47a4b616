"""Stripe adapter: hosted checkout sessions and webhook verification.

Only the two provider calls the checkout flow needs live here, so the rest of
the code (and the tests) can swap the gateway for a fake.
"""
import json
from decimal import Decimal

import stripe

from storefront.core.config import settings
from storefront.core.errors import PaymentEventError, PaymentProviderError
from storefront.core.logging import get_logger

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


class StripeGateway:
    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET

    def create_session(self, params: dict) -> dict:
        try:
            session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        except stripe.StripeError as e:
            logger.error("Stripe session creation failed: %s", e)
            raise PaymentProviderError("Payment provider unavailable")
        return {"id": session.id, "url": session.url}

    def parse_event(self, payload: bytes, sig_header: str | None) -> dict:
        if not self.webhook_secret or not sig_header:
            raise PaymentEventError("Webhook Error: invalid signature")
        try:
            stripe.WebhookSignature.verify_header(payload.decode("utf-8"), sig_header, self.webhook_secret)
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning("Rejected payment event: %s", e)
            raise PaymentEventError("Webhook Error: invalid signature")
        try:
            event = json.loads(payload)
        except ValueError:
            raise PaymentEventError("Webhook Error: malformed payload")
        if not isinstance(event, dict):
            raise PaymentEventError("Webhook Error: malformed payload")
        return event


_gateway: StripeGateway | None = None

def get_payment_gateway() -> StripeGateway:
    global _gateway
    if _gateway is None:
        _gateway = StripeGateway()
    return _gateway
