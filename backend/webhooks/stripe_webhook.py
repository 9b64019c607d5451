# backend/webhooks/stripe_webhook.py
# Stripe subscription lifecycle webhook

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from billing.checkout import get_gateway, get_plans
from billing.events import (
    CheckoutSessionCompleted,
    SubscriptionChanged,
    parse_event,
)
from billing.gateway import StripeGateway
from billing.plans import PlanCatalog
from core.errors import NotFoundError, ValidationError
from store import BackendClient, get_backend
from store import repository as repo

logger = logging.getLogger(__name__)

router = APIRouter()


def checkout_values(event: CheckoutSessionCompleted, catalog: PlanCatalog) -> dict:
    values = {
        "subscription_status": "active",
        "stripe_subscription_id": event.session.subscription,
    }
    plan = catalog.get(event.session.metadata.get("price_id"))
    if plan:
        values.update(catalog.tier_values(plan.price_id))
    return values


def subscription_values(event: SubscriptionChanged, catalog: PlanCatalog) -> dict:
    sub = event.subscription
    values = {"subscription_status": sub.status}
    if sub.is_active and not event.deleted:
        values["stripe_subscription_id"] = sub.id
        values.update(catalog.tier_values(sub.price_id))
    else:
        values["stripe_subscription_id"] = None
        values.update(catalog.free_values())
    return values


@router.post("/stripe-webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    backend: BackendClient = Depends(get_backend),
    gateway: StripeGateway = Depends(get_gateway),
    catalog: PlanCatalog = Depends(get_plans),
):
    """
    Stripe webhook endpoint

    Handled:
    - checkout.session.completed → subscription active
    - customer.subscription.created / updated → mirror status + tier
    - customer.subscription.deleted → mirror status, clear subscription
    Anything else is acknowledged and ignored.
    """
    payload = await request.body()

    # fails closed: nothing below runs without a valid signature
    gateway.verify_signature(payload, stripe_signature)

    try:
        envelope = json.loads(payload)
    except ValueError:
        raise ValidationError("Webhook Error: invalid JSON payload")

    event = parse_event(envelope)

    if isinstance(event, CheckoutSessionCompleted):
        customer_id = event.session.customer
        values = checkout_values(event, catalog)
    elif isinstance(event, SubscriptionChanged):
        customer_id = event.subscription.customer
        values = subscription_values(event, catalog)
    else:
        logger.info("Unhandled Stripe event type %s", event.type)
        return {"received": True}

    if not customer_id:
        raise ValidationError(f"Webhook Error: {event.type} has no customer")

    users = await repo.update_users_by_customer(backend, customer_id, values)
    if not users:
        logger.warning("No user for Stripe customer %s (%s)", customer_id, event.type)
        raise NotFoundError("User not found for customer")

    for user in users:
        await repo.log_activity(backend, user.id, "Subscription updated", {
            "event": event.type,
            "status": values.get("subscription_status"),
            "tier": values.get("subscription_tier"),
        })

    logger.info("Applied %s to %d user(s)", event.type, len(users))
    return {"received": True}
