# backend/webhooks/integration_webhook.py
# Third-party platform webhook ingestion

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.errors import AppError, BackendError, ValidationError
from store import BackendClient, get_backend
from store import repository as repo

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook")
async def integration_webhook(
    request: Request,
    integration_id: Optional[str] = Query(None, alias="integrationId"),
    backend: BackendClient = Depends(get_backend),
):
    """
    Record an inbound event for an integration

    1. integrationId query param required
    2. event stored through insert_webhook_event
    3. integration last_sync bumped
    Dashboards see the insert on the webhook_events channel. Duplicates and
    out-of-order deliveries are stored as received.
    """
    if not integration_id:
        raise ValidationError("Integration ID is required")

    raw = await request.body()
    try:
        payload = json.loads(raw)
    except ValueError:
        raise ValidationError("Body must be valid JSON")
    if not isinstance(payload, dict):
        raise ValidationError("Body must be a JSON object")
    if not payload.get("event_type"):
        raise ValidationError("event_type is required")

    try:
        await repo.record_webhook_event(backend, integration_id, payload["event_type"], payload)
    except AppError as e:
        logger.error("Error storing webhook event for %s: %s", integration_id, e.message)
        raise BackendError("Failed to process webhook")

    # the event is already stored; a failed timestamp bump does not undo it
    try:
        await repo.touch_last_sync(backend, integration_id)
    except AppError as e:
        logger.error("Error updating last_sync for %s: %s", integration_id, e.message)

    return {"success": True}
