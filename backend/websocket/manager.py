# backend/websocket/manager.py
# WebSocket connection manager

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket
from pydantic import BaseModel

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Message(BaseModel):
    """WebSocket message"""
    type: str  # connected, snapshot, webhook_event, pong, error
    data: Dict[str, Any]
    timestamp: Optional[str] = None

    def __init__(self, **data):
        if not data.get("timestamp"):
            data["timestamp"] = _now()
        super().__init__(**data)


class ConnectionManager:
    """
    WebSocket connection manager

    - client_id → socket, per-channel membership
    - failed sends drop the connection
    """

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.channels: Dict[str, Set[str]] = {"dashboard": set()}
        # client_id -> {connected_at, channels, user_id, message_count}
        self.metadata: Dict[str, Dict] = {}
        self.stats = {
            "total_connections": 0,
            "total_messages": 0,
        }

    async def connect(
        self,
        websocket: WebSocket,
        client_id: str,
        channels: List[str] = None,
        user_id: Optional[str] = None,
    ):
        await websocket.accept()

        subscribe_channels = channels or ["dashboard"]
        self.active_connections[client_id] = websocket
        self.metadata[client_id] = {
            "connected_at": _now(),
            "channels": subscribe_channels,
            "user_id": user_id,
            "message_count": 0,
        }
        for channel in subscribe_channels:
            self.channels.setdefault(channel, set()).add(client_id)

        self.stats["total_connections"] += 1

        await self.send_personal(client_id, Message(
            type="connected",
            data={
                "client_id": client_id,
                "channels": subscribe_channels,
                "server_time": _now(),
            },
        ))
        logger.info("WebSocket connected: %s → %s", client_id, subscribe_channels)

    def disconnect(self, client_id: str):
        if client_id not in self.active_connections:
            return
        del self.active_connections[client_id]
        for members in self.channels.values():
            members.discard(client_id)
        self.metadata.pop(client_id, None)
        logger.info("WebSocket disconnected: %s", client_id)

    async def send_personal(self, client_id: str, message: Message) -> bool:
        websocket = self.active_connections.get(client_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(message.model_dump())
        except Exception as e:
            logger.warning("Send to %s failed: %s", client_id, e)
            self.disconnect(client_id)
            return False

        self.metadata[client_id]["message_count"] += 1
        self.stats["total_messages"] += 1
        return True

    def get_stats(self) -> Dict:
        return {
            **self.stats,
            "active_connections": len(self.active_connections),
            "channels": {k: len(v) for k, v in self.channels.items()},
        }

    def get_clients(self) -> List[Dict]:
        return [
            {"client_id": cid, **self.metadata.get(cid, {})}
            for cid in self.active_connections
        ]


manager = ConnectionManager()
