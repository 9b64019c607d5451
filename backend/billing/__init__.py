# backend/billing/__init__.py
# Billing module (Stripe)

from .plans import Plan, PlanCatalog, build_plans, FREE_TIER_LIMIT, UNLIMITED
from .gateway import StripeGateway
from .events import (
    CheckoutSessionCompleted,
    SubscriptionChanged,
    UnhandledEvent,
    StripeEvent,
    parse_event,
)

__all__ = [
    "Plan",
    "PlanCatalog",
    "build_plans",
    "FREE_TIER_LIMIT",
    "UNLIMITED",
    "StripeGateway",
    "CheckoutSessionCompleted",
    "SubscriptionChanged",
    "UnhandledEvent",
    "StripeEvent",
    "parse_event",
]
