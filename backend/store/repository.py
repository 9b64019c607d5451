# backend/store/repository.py
# Typed helpers over the backend interface

import logging
from typing import Any, Dict, List, Optional

from core.errors import AppError, BackendError, NotFoundError

from .base import BackendClient
from .models import (
    ActivityLogEntry,
    ApiUsage,
    ErrorLog,
    Integration,
    IntegrationStatus,
    User,
    WebhookEvent,
    utcnow,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════════

async def fetch_user(backend: BackendClient, user_id: str) -> User:
    rows = await backend.query("users", {"id": user_id}, limit=1)
    if not rows:
        raise NotFoundError("User not found")
    return User(**rows[0])


async def create_user_row(backend: BackendClient, user_id: str, email: Optional[str]) -> User:
    row = await backend.insert("users", {
        "id": user_id,
        "email": email,
        "subscription_tier": "free",
        "integration_limit": 1,
    })
    return User(**row)


async def ensure_user_row(backend: BackendClient, user_id: str, email: Optional[str]) -> User:
    """Fetch the users row, recreating it when sign-up stopped before writing it"""
    rows = await backend.query("users", {"id": user_id}, limit=1)
    if rows:
        return User(**rows[0])
    logger.warning("Restoring missing users row for %s", user_id)
    return await create_user_row(backend, user_id, email)


async def update_user(backend: BackendClient, user_id: str, values: Dict[str, Any]) -> User:
    rows = await backend.update("users", values, {"id": user_id})
    if not rows:
        raise NotFoundError("User not found")
    return User(**rows[0])


async def update_users_by_customer(
    backend: BackendClient,
    customer_id: str,
    values: Dict[str, Any],
) -> List[User]:
    rows = await backend.update("users", values, {"stripe_customer_id": customer_id})
    return [User(**r) for r in rows]


# ═══════════════════════════════════════════════════════════════
# Integrations
# ═══════════════════════════════════════════════════════════════

async def list_integrations(backend: BackendClient, user_id: str) -> List[Integration]:
    rows = await backend.query("integrations", {"user_id": user_id}, order="created_at")
    return [Integration(**r) for r in rows]


async def fetch_integration(backend: BackendClient, integration_id: str, user_id: str) -> Integration:
    rows = await backend.query("integrations", {"id": integration_id, "user_id": user_id}, limit=1)
    if not rows:
        raise NotFoundError("Integration not found")
    return Integration(**rows[0])


async def create_integration(backend: BackendClient, user_id: str, row: Dict[str, Any]) -> Integration:
    """Atomic quota-checked insert; raises QuotaExceededError"""
    stored = await backend.rpc("create_integration", {"p_user_id": user_id, "p_row": row})
    return Integration(**stored)


async def touch_last_sync(backend: BackendClient, integration_id: str) -> None:
    await backend.update("integrations", {"last_sync": utcnow()}, {"id": integration_id})


async def set_integration_status(
    backend: BackendClient,
    integration_id: str,
    status: IntegrationStatus,
    error_message: Optional[str] = None,
) -> Integration:
    rows = await backend.update(
        "integrations",
        {"status": status.value, "error_message": error_message},
        {"id": integration_id},
    )
    if not rows:
        raise NotFoundError("Integration not found")
    return Integration(**rows[0])


# ═══════════════════════════════════════════════════════════════
# Events, logs, usage
# ═══════════════════════════════════════════════════════════════

async def record_webhook_event(
    backend: BackendClient,
    integration_id: str,
    event_type: Optional[str],
    payload: Any,
) -> WebhookEvent:
    """Insert through the privileged insert_webhook_event procedure"""
    stored = await backend.rpc("insert_webhook_event", {
        "p_integration_id": integration_id,
        "p_event_type": event_type,
        "p_payload": payload,
    })
    if isinstance(stored, dict):
        return WebhookEvent(**stored)
    return WebhookEvent(integration_id=integration_id, event_type=event_type, payload=payload)


async def log_activity(
    backend: BackendClient,
    user_id: Optional[str],
    action: str,
    details: Any = None,
) -> Optional[ActivityLogEntry]:
    """Append to the audit trail; failures are logged, never raised"""
    try:
        row = await backend.insert("activity_logs", {
            "user_id": user_id,
            "action": action,
            "details": details,
        })
    except AppError as e:
        logger.error("Error logging activity %r for %s: %s", action, user_id, e.message)
        return None
    return ActivityLogEntry(**row)


async def recent_activity(backend: BackendClient, user_id: str, limit: int = 10) -> List[ActivityLogEntry]:
    rows = await backend.query(
        "activity_logs", {"user_id": user_id}, order="created_at", desc=True, limit=limit
    )
    return [ActivityLogEntry(**r) for r in rows]


async def log_error(
    backend: BackendClient,
    integration_id: str,
    error_message: str,
    error_code: Optional[str] = None,
    details: Any = None,
) -> ErrorLog:
    row = await backend.insert("error_logs", {
        "integration_id": integration_id,
        "error_message": error_message,
        "error_code": error_code,
        "timestamp": utcnow(),
        "details": details,
    })
    return ErrorLog(**row)


async def error_logs_for(backend: BackendClient, integration_id: str, limit: int = 20) -> List[ErrorLog]:
    rows = await backend.query(
        "error_logs", {"integration_id": integration_id}, order="timestamp", desc=True, limit=limit
    )
    return [ErrorLog(**r) for r in rows]


async def usage_for(backend: BackendClient, user_id: str) -> Optional[ApiUsage]:
    """Latest usage counter row, if any"""
    try:
        rows = await backend.query("api_usage", {"user_id": user_id}, order="period", desc=True, limit=1)
    except BackendError as e:
        logger.warning("Usage counters unavailable for %s: %s", user_id, e.message)
        return None
    return ApiUsage(**rows[0]) if rows else None
