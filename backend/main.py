# backend/main.py
# Integration Hub API

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import Settings, get_settings
from core.errors import register_error_handlers
from core.logging import setup_logging
from store import BackendClient, build_backend
from billing.gateway import StripeGateway
from billing.plans import PlanCatalog, build_plans
from wizard.connectivity import (
    ConnectivityChecker,
    HttpConnectivityChecker,
    SimulatedConnectivityChecker,
)
from wizard.sessions import WizardSessionStore

# routers
from webhooks.integration_webhook import router as integration_webhook_router
from webhooks.stripe_webhook import router as stripe_router
from billing.checkout import router as billing_router
from auth.api import router as auth_router
from wizard.api import router as wizard_router
from dashboard.api import router as dashboard_router
from websocket.api import router as ws_router, http_router as ws_http_router

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def build_checker(settings: Settings) -> ConnectivityChecker:
    if settings.connectivity_check == "http":
        return HttpConnectivityChecker()
    return SimulatedConnectivityChecker()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Integration Hub starting (backend: %s)", type(app.state.backend).__name__)
    yield
    await app.state.connectivity.close()
    await app.state.backend.close()
    logger.info("Integration Hub stopped")


def create_app(
    settings: Optional[Settings] = None,
    backend: Optional[BackendClient] = None,
    gateway: Optional[StripeGateway] = None,
    checker: Optional[ConnectivityChecker] = None,
) -> FastAPI:
    """
    Build the application

    One backend client, one Stripe gateway and one connectivity checker per
    app; routes reach them through app.state.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Integration Hub",
        description="""
## Integration Hub API

- **Wizard**: connect a source and a target platform, map fields, test, activate
- **Webhooks**: inbound platform events, Stripe subscription lifecycle
- **Billing**: Stripe checkout, plan tiers capping integrations
- **Dashboard**: integrations, usage, activity, live events over WebSocket

### Auth
Bearer token from `/auth/login`: `Authorization: Bearer <token>`
        """,
        version=VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.backend = backend or build_backend(settings)
    app.state.stripe = gateway or StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)
    app.state.plans = PlanCatalog(build_plans(settings))
    app.state.connectivity = checker or build_checker(settings)
    app.state.wizards = WizardSessionStore(app.state.connectivity)

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(integration_webhook_router, prefix="/api", tags=["Webhook - Integrations"])
    app.include_router(stripe_router, prefix="/api", tags=["Webhook - Stripe"])
    app.include_router(billing_router)
    app.include_router(auth_router)
    app.include_router(wizard_router)
    app.include_router(dashboard_router)
    app.include_router(ws_router)
    app.include_router(ws_http_router)

    @app.get("/")
    async def root():
        """API info"""
        return {
            "name": "Integration Hub",
            "version": VERSION,
            "endpoints": {
                "auth": ["/auth/signup", "/auth/login", "/auth/me", "/profile"],
                "wizard": ["/wizard", "/wizard/platforms", "/wizard/{id}"],
                "dashboard": ["/dashboard", "/integrations", "/activity"],
                "billing": ["/api/create-checkout-session", "/api/plans"],
                "webhooks": ["/api/webhook?integrationId=<id>", "/api/stripe-webhook"],
                "websocket": ["ws://localhost:8000/ws/dashboard?token=<token>", "/websocket/stats"],
            },
        }

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "backend": type(app.state.backend).__name__,
            "stripe": bool(settings.stripe_secret_key),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
