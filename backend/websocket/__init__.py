# backend/websocket/__init__.py
# WebSocket module

from .manager import manager, Message, ConnectionManager
from .api import router, http_router

__all__ = [
    "manager",
    "Message",
    "ConnectionManager",
    "router",
    "http_router",
]
