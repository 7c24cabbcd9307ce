"""Thin async wrapper over the Stripe SDK.

The SDK is synchronous, so every network call runs in a worker thread.
Keys are read from settings on each call.
"""
import asyncio
import json

import stripe

from shared.config import settings
from shared.errors import ServiceUnavailableError

WEBHOOK_TOLERANCE_SECONDS = 300


class StripeGateway:

    def _api_key(self) -> str:
        if not settings.STRIPE_SECRET_KEY:
            raise ServiceUnavailableError("Payment service is not configured")
        return settings.STRIPE_SECRET_KEY

    async def create_payment_intent(self, amount: int, currency: str, metadata: dict):
        api_key = self._api_key()
        return await asyncio.to_thread(
            stripe.PaymentIntent.create,
            api_key=api_key,
            amount=amount,
            currency=currency,
            automatic_payment_methods={"enabled": True},
            metadata=metadata,
        )

    async def update_payment_intent(self, payment_intent_id: str, **params):
        api_key = self._api_key()
        return await asyncio.to_thread(stripe.PaymentIntent.modify, payment_intent_id, api_key=api_key, **params)

    async def cancel_payment_intent(self, payment_intent_id: str):
        api_key = self._api_key()
        return await asyncio.to_thread(stripe.PaymentIntent.cancel, payment_intent_id, api_key=api_key)

    async def create_checkout_session(self, **params):
        api_key = self._api_key()
        return await asyncio.to_thread(stripe.checkout.Session.create, api_key=api_key, **params)

    def verify_webhook(self, payload: bytes, signature: str) -> dict:
        """Checks the Stripe-Signature header and returns the decoded event.

        Raises stripe.SignatureVerificationError for a bad signature and
        ValueError for a body that is not JSON.
        """
        if not settings.STRIPE_WEBHOOK_SECRET:
            raise ServiceUnavailableError("Webhook secret is not configured")

        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            body, signature, settings.STRIPE_WEBHOOK_SECRET, WEBHOOK_TOLERANCE_SECONDS
        )
        return json.loads(body)


_gateway = StripeGateway()


def get_payment_gateway() -> StripeGateway:
    return _gateway
