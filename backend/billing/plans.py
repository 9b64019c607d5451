# backend/billing/plans.py
# Subscription plans: the single price → tier policy

from typing import Dict, List, Optional

from pydantic import BaseModel

from core.config import Settings
from store.models import SubscriptionTier

UNLIMITED = 999999


class Plan(BaseModel):
    name: str
    tier: SubscriptionTier
    price_id: str
    monthly_price: float
    integration_limit: int
    features: List[str] = []


FREE_TIER_LIMIT = 1


def build_plans(settings: Settings) -> List[Plan]:
    """Catalog sold on the pricing page"""
    return [
        Plan(
            name="Basic",
            tier=SubscriptionTier.FREE,
            price_id=settings.stripe_price_basic,
            monthly_price=9.99,
            integration_limit=FREE_TIER_LIMIT,
            features=["1 API integration", "1,000 API calls/month", "Email support"],
        ),
        Plan(
            name="Pro",
            tier=SubscriptionTier.PRO,
            price_id=settings.stripe_price_pro,
            monthly_price=29.99,
            integration_limit=5,
            features=["5 API integrations", "10,000 API calls/month", "Priority support"],
        ),
        Plan(
            name="Enterprise",
            tier=SubscriptionTier.ENTERPRISE,
            price_id=settings.stripe_price_enterprise,
            monthly_price=99.99,
            integration_limit=UNLIMITED,
            features=["Unlimited everything", "Dedicated account manager", "Custom solutions"],
        ),
    ]


class PlanCatalog:
    """Price id lookups"""

    def __init__(self, plans: List[Plan]):
        self.plans = plans
        self._by_price: Dict[str, Plan] = {p.price_id: p for p in plans}

    def get(self, price_id: Optional[str]) -> Optional[Plan]:
        return self._by_price.get(price_id) if price_id else None

    def tier_values(self, price_id: Optional[str]) -> Dict[str, object]:
        """users-row columns for a price; unknown prices fall back to free"""
        plan = self.get(price_id)
        if not plan:
            return self.free_values()
        return {"subscription_tier": plan.tier.value, "integration_limit": plan.integration_limit}

    @staticmethod
    def free_values() -> Dict[str, object]:
        return {"subscription_tier": SubscriptionTier.FREE.value, "integration_limit": FREE_TIER_LIMIT}
