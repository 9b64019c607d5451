# tests/conftest.py
# Shared pytest fixtures

import hashlib
import hmac
import json
import os
import sys
import time

import pytest

# backend on the import path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from fastapi.testclient import TestClient

from billing.gateway import StripeGateway
from core.config import Settings
from main import create_app
from store import InMemoryBackend
from wizard.connectivity import SimulatedConnectivityChecker

WEBHOOK_SECRET = "whsec_test_secret"
PASSWORD = "password123"


class FakeGateway(StripeGateway):
    """Stripe gateway without network calls; signature checks stay real"""

    def __init__(self, secret_key: str = "sk_test_fake", webhook_secret: str = WEBHOOK_SECRET):
        super().__init__(secret_key, webhook_secret)
        self.customers = []
        self.sessions = []
        self.fail_with = None

    def create_customer(self, email, user_id):
        if self.fail_with:
            raise self.fail_with
        customer_id = f"cus_{len(self.customers) + 1:04d}"
        self.customers.append({"id": customer_id, "email": email, "user_id": user_id})
        return customer_id

    def create_checkout_session(self, customer_id, price_id, success_url, cancel_url, metadata=None):
        if self.fail_with:
            raise self.fail_with
        session_id = f"cs_test_{len(self.sessions) + 1:04d}"
        self.sessions.append({
            "id": session_id,
            "customer": customer_id,
            "price": price_id,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
        })
        return session_id


def sign_stripe_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """stripe-signature header for a raw payload"""
    t = timestamp or int(time.time())
    signature = hmac.new(secret.encode(), f"{t}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={t},v1={signature}"


def stripe_event(event_type: str, obj: dict, event_id: str = "evt_test_1") -> str:
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": obj}})


@pytest.fixture
def settings():
    return Settings(
        stripe_secret_key="sk_test_fake",
        stripe_publishable_key="pk_test_fake",
        stripe_webhook_secret=WEBHOOK_SECRET,
        log_level="WARNING",
    )


@pytest.fixture
def backend(settings):
    """In-memory backend"""
    return InMemoryBackend(secret=settings.session_secret)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def checker():
    return SimulatedConnectivityChecker()


@pytest.fixture
def app(settings, backend, gateway, checker):
    return create_app(settings=settings, backend=backend, gateway=gateway, checker=checker)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def user(backend):
    """Registered free-tier user: {id, email, token}"""
    session = backend.create_account("alice@example.com", PASSWORD)
    return {"id": session.user.id, "email": session.user.email, "token": session.access_token}


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {user['token']}"}


@pytest.fixture
def integration(backend, user):
    """One stored integration owned by `user`"""
    return backend.seed("integrations", {
        "user_id": user["id"],
        "name": "Shopify to HubSpot",
        "platform": "hubspot",
        "source_platform": "shopify",
    })


@pytest.fixture
def sample_webhook_payload():
    """Inbound platform event"""
    return {
        "event_type": "order.created",
        "order_id": "order_123",
        "total_price": "100.00",
        "customer": {"email": "test@example.com"},
    }
