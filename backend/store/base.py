# backend/store/base.py
# Backend access interface (store + auth + realtime)

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import AuthSession, AuthUser, RealtimeChange
from .realtime import Handler, RealtimeHub, Subscription

# Tables this app reads or writes
TABLES = (
    "users",
    "integrations",
    "activity_logs",
    "webhook_events",
    "error_logs",
    "api_usage",
)


class BackendClient(ABC):
    """
    Single injected handle to the BaaS

    Built once per application and passed explicitly to every component.
    Inserts are published on the realtime channel named after the table.
    """

    def __init__(self, hub: Optional[RealtimeHub] = None):
        self.hub = hub or RealtimeHub()

    # ── auth ───────────────────────────────────────────────────

    @abstractmethod
    async def get_user(self, token: str) -> AuthUser:
        """Resolve a session token; raises AuthError"""

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> AuthSession:
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        pass

    # ── data ───────────────────────────────────────────────────

    @abstractmethod
    async def query(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def update(
        self,
        table: str,
        values: Dict[str, Any],
        filters: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def rpc(self, function: str, params: Dict[str, Any]) -> Any:
        """Call a privileged stored procedure"""

    # ── realtime ───────────────────────────────────────────────

    def subscribe(self, channel: str, handler: Handler) -> Subscription:
        return self.hub.subscribe(channel, handler)

    async def _notify_insert(self, table: str, row: Dict[str, Any]) -> None:
        await self.hub.publish(table, RealtimeChange(table=table, type="INSERT", new=row))

    async def close(self) -> None:
        pass


def to_jsonable(value: Any) -> Any:
    """datetimes → ISO strings, recursively"""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value
