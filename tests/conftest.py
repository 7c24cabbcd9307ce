"""Pytest fixtures for storefront tests."""

import hashlib
import hmac
import json
import os
import tempfile
import time
import uuid
from pathlib import Path
from types import SimpleNamespace

# Settings are read at import time, so the environment has to be in place
# before the application is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="storefront-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR / 'storefront.db'}"
os.environ["AUTH_JWT_SECRET"] = "test-jwt-secret"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_storefront"
os.environ["STRIPE_PUBLISHABLE_KEY"] = "pk_test_storefront"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_storefront"
os.environ["GOOGLE_PLACES_API_KEY"] = "test-places-key"
os.environ["SITE_URL"] = "https://shop.example.com"
os.environ["APP_ENV"] = "test"

import pytest
import stripe
from fastapi.testclient import TestClient
from jose import jwt

from main import app
from shared.config import settings
from shared.security import limiter
from services.payment_service.gateway import StripeGateway, get_payment_gateway


class FakeStripeGateway(StripeGateway):
    """Records Stripe calls instead of making them. Webhook verification is real."""

    def __init__(self):
        self.created_intents = []
        self.updated_intents = []
        self.cancelled_intents = []
        self.checkout_sessions = []
        self.fail_with = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def create_payment_intent(self, amount, currency, metadata):
        self._maybe_fail()
        intent_id = f"pi_test_{len(self.created_intents) + 1}_{uuid.uuid4().hex[:8]}"
        self.created_intents.append({"id": intent_id, "amount": amount, "currency": currency, "metadata": metadata})
        return SimpleNamespace(id=intent_id, client_secret=f"{intent_id}_secret_abc")

    async def update_payment_intent(self, payment_intent_id, **params):
        self._maybe_fail()
        self.updated_intents.append({"id": payment_intent_id, **params})
        return SimpleNamespace(id=payment_intent_id, **params)

    async def cancel_payment_intent(self, payment_intent_id):
        self.cancelled_intents.append(payment_intent_id)
        return SimpleNamespace(id=payment_intent_id, status="canceled")

    async def create_checkout_session(self, **params):
        self._maybe_fail()
        session_id = f"cs_test_{uuid.uuid4().hex[:12]}"
        self.checkout_sessions.append({"id": session_id, **params})
        return SimpleNamespace(id=session_id, url=f"https://checkout.stripe.com/c/pay/{session_id}")


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Every test starts with an empty rate-limit window."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def fake_gateway():
    gateway = FakeStripeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield gateway
    app.dependency_overrides.pop(get_payment_gateway, None)


@pytest.fixture
def make_token():
    """Factory for access tokens shaped like the auth provider's."""

    def _make(sub=None, email="shopper@example.com", name="Sam Shopper", expires_in=3600, secret=None):
        claims = {
            "email": email,
            "user_metadata": {"full_name": name} if name else {},
            "aud": "authenticated",
            "exp": int(time.time()) + expires_in,
        }
        if sub is not False:
            claims["sub"] = sub or str(uuid.uuid4())
        return jwt.encode(claims, secret or settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)

    return _make


@pytest.fixture
def auth_headers(make_token):
    """Bearer headers for a fresh shopper, so each test sees only its own orders."""
    return {"Authorization": f"Bearer {make_token()}"}


def sign_webhook(payload: str, secret=None, timestamp=None) -> str:
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new((secret or settings.STRIPE_WEBHOOK_SECRET).encode("utf-8"), signed, hashlib.sha256)
    return f"t={timestamp},v1={signature.hexdigest()}"


@pytest.fixture
def send_webhook(client):
    """Posts a signed Stripe event to the webhook route."""

    def _send(event_type, obj, event_id=None):
        payload = json.dumps(
            {
                "id": event_id or f"evt_{uuid.uuid4().hex[:12]}",
                "type": event_type,
                "data": {"object": obj},
            }
        )
        return client.post(
            "/api/webhooks/stripe",
            content=payload,
            headers={"stripe-signature": sign_webhook(payload), "content-type": "application/json"},
        )

    return _send


@pytest.fixture
def stripe_error():
    return stripe.StripeError("card network unavailable")


def cart(*lines):
    """Builds cart items from (product_id, name, price, quantity) tuples."""
    return [
        {"product_id": pid, "product_name": name, "price": price, "quantity": qty}
        for pid, name, price, qty in lines
    ]


EXTRA_LARGE = (1, "Magnetic Frag Rack [Extra Large]", 34.99, 1)
TWO_LARGE = (2, "Magnetic Frag Rack [Large]", 29.99, 2)
TEST_ITEM = (4, "Magnetic Frag Rack [TEST]", 0.10, 1)
