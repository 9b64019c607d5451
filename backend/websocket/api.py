# backend/websocket/api.py
# WebSocket API endpoints

import json
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from core.errors import AppError, AuthError
from dashboard.aggregator import DashboardAggregator
from store import WebhookEvent

from .manager import Message, manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["WebSocket"])

# policy violation
CLOSE_UNAUTHORIZED = 1008


@router.websocket("/dashboard")
async def websocket_dashboard(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
):
    """
    Live dashboard

    Connect: ws://localhost:8000/ws/dashboard?token=<access token>

    Sent:
    - connected: handshake
    - snapshot: user, integrations, usage, activity, recent events
    - webhook_event: new event for one of the user's integrations

    Received:
    - ping → pong
    - refresh → fresh snapshot
    """
    backend = websocket.app.state.backend
    try:
        if not token:
            raise AuthError("Authentication required")
        user = await backend.get_user(token)
    except AuthError as e:
        logger.info("WebSocket rejected: %s", e.message)
        await websocket.close(code=CLOSE_UNAUTHORIZED)
        return

    cid = f"dash_{uuid.uuid4().hex[:8]}"
    await manager.connect(websocket, cid, channels=["dashboard"], user_id=user.id)

    async def forward(event: WebhookEvent):
        await manager.send_personal(cid, Message(
            type="webhook_event",
            data=event.model_dump(mode="json"),
        ))

    try:
        async with DashboardAggregator(backend, user.id, on_event=forward) as dash:
            await manager.send_personal(cid, Message(
                type="snapshot",
                data=dash.current().model_dump(mode="json"),
            ))

            while True:
                raw = await websocket.receive_text()
                try:
                    data = json.loads(raw)
                except ValueError:
                    data = None
                if not isinstance(data, dict):
                    await manager.send_personal(cid, Message(
                        type="error",
                        data={"message": "Messages must be JSON objects"},
                    ))
                    continue
                msg_type = data.get("type")

                if msg_type == "ping":
                    await manager.send_personal(cid, Message(type="pong", data={"client_id": cid}))
                elif msg_type == "refresh":
                    await dash.load()
                    await manager.send_personal(cid, Message(
                        type="snapshot",
                        data=dash.current().model_dump(mode="json"),
                    ))
                else:
                    await manager.send_personal(cid, Message(
                        type="error",
                        data={"message": f"Unknown message type: {msg_type}"},
                    ))

    except WebSocketDisconnect:
        pass
    except AppError as e:
        logger.error("Dashboard stream for %s failed: %s", user.id, e.message)
        await websocket.close(code=1011)
    finally:
        manager.disconnect(cid)


# ═══════════════════════════════════════════════════════════════
# HTTP API (connection status)
# ═══════════════════════════════════════════════════════════════

http_router = APIRouter(prefix="/websocket", tags=["WebSocket API"])


@http_router.get("/stats")
async def get_stats():
    return manager.get_stats()


@http_router.get("/clients")
async def get_clients():
    """Connected clients"""
    return {
        "clients": manager.get_clients(),
        "count": len(manager.active_connections),
    }
