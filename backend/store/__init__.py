# backend/store/__init__.py
# Backend access (BaaS store, auth, realtime)

import logging

from fastapi import Request

from core.config import Settings

from .models import (
    ActivityLogEntry,
    ApiUsage,
    AuthSession,
    AuthUser,
    ErrorLog,
    FieldMapping,
    Integration,
    IntegrationStatus,
    RealtimeChange,
    SubscriptionTier,
    User,
    WebhookEvent,
)
from .realtime import RealtimeHub, Subscription
from .base import BackendClient
from .memory import InMemoryBackend
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)


def build_backend(settings: Settings) -> BackendClient:
    """Supabase when configured, in-memory otherwise"""
    if settings.uses_supabase:
        logger.info("Using Supabase backend at %s", settings.supabase_url)
        return SupabaseClient(settings)
    logger.warning("SUPABASE_URL not set - using in-memory backend")
    return InMemoryBackend(secret=settings.session_secret, expiry_hours=settings.session_expiry_hours)


def get_backend(request: Request) -> BackendClient:
    """FastAPI dependency: the app's single backend handle"""
    return request.app.state.backend


__all__ = [
    "ActivityLogEntry",
    "ApiUsage",
    "AuthSession",
    "AuthUser",
    "BackendClient",
    "ErrorLog",
    "FieldMapping",
    "InMemoryBackend",
    "Integration",
    "IntegrationStatus",
    "RealtimeChange",
    "RealtimeHub",
    "Subscription",
    "SubscriptionTier",
    "SupabaseClient",
    "User",
    "WebhookEvent",
    "build_backend",
    "get_backend",
]
