# backend/billing/gateway.py
# Stripe SDK wrapper

import logging
from typing import Dict, Optional

import stripe

from core.errors import ConfigError, SignatureError

logger = logging.getLogger(__name__)

# Seconds a signed webhook stays valid
SIGNATURE_TOLERANCE = 300


class StripeGateway:
    """
    Calls into the Stripe SDK

    SDK calls block; routes run them in the thread pool.
    """

    def __init__(self, secret_key: str, webhook_secret: str = ""):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    def _require_key(self) -> None:
        if not self.secret_key:
            raise ConfigError("STRIPE_SECRET_KEY is not configured")

    def create_customer(self, email: str, user_id: str) -> str:
        self._require_key()
        customer = stripe.Customer.create(
            email=email,
            metadata={"user_id": user_id},
            api_key=self.secret_key,
        )
        return customer.id

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        self._require_key()
        session = stripe.checkout.Session.create(
            customer=customer_id,
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata or {},
            client_reference_id=(metadata or {}).get("user_id"),
            api_key=self.secret_key,
        )
        return session.id

    def verify_signature(self, payload: bytes, sig_header: Optional[str]) -> None:
        """Raises SignatureError unless the payload was signed with our secret"""
        if not self.webhook_secret:
            raise ConfigError("STRIPE_WEBHOOK_SECRET is not configured")
        if not sig_header:
            raise SignatureError("Webhook Error: missing stripe-signature header")
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                sig_header,
                self.webhook_secret,
                SIGNATURE_TOLERANCE,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning("Stripe signature verification failed: %s", e)
            raise SignatureError(f"Webhook Error: {e}")
