# backend/billing/checkout.py
# Checkout session + plans API

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.errors import AppError, ValidationError
from store import BackendClient, get_backend
from store import repository as repo

from .gateway import StripeGateway
from .plans import PlanCatalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Billing"])


class CheckoutRequest(BaseModel):
    priceId: str
    userId: str


def get_gateway(request: Request) -> StripeGateway:
    return request.app.state.stripe


def get_plans(request: Request) -> PlanCatalog:
    return request.app.state.plans


@router.post("/create-checkout-session")
async def create_checkout_session(
    req: CheckoutRequest,
    request: Request,
    backend: BackendClient = Depends(get_backend),
    gateway: StripeGateway = Depends(get_gateway),
):
    """
    Create a subscription checkout session

    Creates (and stores) the Stripe customer on first checkout.
    """
    origin = request.headers.get("origin") or request.app.state.settings.app_url
    try:
        if not req.priceId:
            raise ValidationError("priceId is required")

        user = await repo.fetch_user(backend, req.userId)
        customer_id = user.stripe_customer_id

        if not customer_id:
            if not user.email:
                raise ValidationError("User email not found")
            customer_id = await run_in_threadpool(gateway.create_customer, user.email, user.id)
            await repo.update_user(backend, user.id, {"stripe_customer_id": customer_id})

        session_id = await run_in_threadpool(
            gateway.create_checkout_session,
            customer_id,
            req.priceId,
            f"{origin}/success?session_id={{CHECKOUT_SESSION_ID}}",
            f"{origin}/pricing",
            {"user_id": user.id, "price_id": req.priceId},
        )
    except Exception as e:
        message = e.message if isinstance(e, AppError) else str(e)
        logger.error("Error creating checkout session for %s: %s", req.userId, message)
        await repo.log_activity(
            backend, req.userId, "Error creating checkout session", {"error": message}
        )
        return JSONResponse(status_code=500, content={"error": message})

    await repo.log_activity(
        backend, req.userId, "Initiated subscription change", {"priceId": req.priceId}
    )
    return {"id": session_id}


@router.get("/plans")
async def list_plans(request: Request, catalog: PlanCatalog = Depends(get_plans)):
    """Plans for the pricing page"""
    return {
        "publishable_key": request.app.state.settings.stripe_publishable_key,
        "plans": [p.model_dump(mode="json") for p in catalog.plans],
    }
