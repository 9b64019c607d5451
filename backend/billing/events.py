# backend/billing/events.py
# Stripe lifecycle events (tagged by "type")

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from core.errors import ValidationError

ACTIVE_STATUSES = {"active", "trialing"}


class _Loose(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CheckoutSession(_Loose):
    id: str
    customer: Optional[str] = None
    subscription: Optional[str] = None
    metadata: Dict[str, Any] = {}


class StripeSubscription(_Loose):
    id: str
    customer: str
    status: str
    items: Dict[str, Any] = {}

    @property
    def price_id(self) -> Optional[str]:
        data = self.items.get("data") or []
        if data:
            return (data[0].get("price") or {}).get("id")
        return None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class CheckoutSessionCompleted(_Loose):
    id: str
    type: str = "checkout.session.completed"
    session: CheckoutSession


class SubscriptionChanged(_Loose):
    """customer.subscription.created / updated / deleted"""
    id: str
    type: str
    subscription: StripeSubscription

    @property
    def deleted(self) -> bool:
        return self.type == "customer.subscription.deleted"


class UnhandledEvent(_Loose):
    id: Optional[str] = None
    type: str
    raw: Dict[str, Any] = Field(default_factory=dict)


StripeEvent = Union[CheckoutSessionCompleted, SubscriptionChanged, UnhandledEvent]

SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}


def parse_event(envelope: Dict[str, Any]) -> StripeEvent:
    """Envelope → typed event; unknown types stay opaque"""
    if not isinstance(envelope, dict) or "type" not in envelope:
        raise ValidationError("Webhook Error: malformed event envelope")

    event_type = envelope["type"]
    obj = (envelope.get("data") or {}).get("object") or {}
    try:
        if event_type == "checkout.session.completed":
            return CheckoutSessionCompleted(id=envelope.get("id", ""), session=obj)
        if event_type in SUBSCRIPTION_EVENTS:
            return SubscriptionChanged(id=envelope.get("id", ""), type=event_type, subscription=obj)
    except ValueError as e:
        raise ValidationError(f"Webhook Error: invalid {event_type} payload: {e}")
    return UnhandledEvent(id=envelope.get("id"), type=event_type, raw=envelope)
