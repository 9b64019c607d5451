# backend/dashboard/aggregator.py
# Dashboard read model + live webhook event feed

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel

from store import (
    ActivityLogEntry,
    ApiUsage,
    BackendClient,
    Integration,
    RealtimeChange,
    Subscription,
    User,
    WebhookEvent,
)
from store import repository as repo

logger = logging.getLogger(__name__)

MAX_RECENT_EVENTS = 5
RECENT_ACTIVITY_LIMIT = 10
# undelivered on_event backlog per dashboard; newer events are dropped past this
MAX_PENDING_EVENTS = 100

EventCallback = Callable[[WebhookEvent], Awaitable[None]]


class DashboardSnapshot(BaseModel):
    user: User
    integrations: List[Integration] = []
    usage: Optional[ApiUsage] = None
    recent_activity: List[ActivityLogEntry] = []
    recent_events: List[WebhookEvent] = []


class DashboardAggregator:
    """
    Composes the dashboard for one user

    load() reads user, integrations, usage and recent activity one call after
    another. Used as an async context manager it also follows the
    webhook_events channel: events for the user's integrations are prepended
    to `recent_events` (newest first, at most 5) and queued for `on_event`,
    which a background task awaits so a slow consumer never holds up the
    publisher.
    Leaving the context releases the subscriptions.
    """

    def __init__(
        self,
        backend: BackendClient,
        user_id: str,
        on_event: Optional[EventCallback] = None,
    ):
        self.backend = backend
        self.user_id = user_id
        self.on_event = on_event
        self.recent_events: deque = deque(maxlen=MAX_RECENT_EVENTS)
        self.snapshot: Optional[DashboardSnapshot] = None
        self._integration_ids: set = set()
        self._subscriptions: List[Subscription] = []
        self._outbox: Optional[asyncio.Queue] = None
        self._delivery: Optional[asyncio.Task] = None

    async def load(self) -> DashboardSnapshot:
        user = await repo.fetch_user(self.backend, self.user_id)
        integrations = await repo.list_integrations(self.backend, self.user_id)
        usage = await repo.usage_for(self.backend, self.user_id)
        activity = await repo.recent_activity(self.backend, self.user_id, limit=RECENT_ACTIVITY_LIMIT)

        self._integration_ids = {i.id for i in integrations}
        self.snapshot = DashboardSnapshot(
            user=user,
            integrations=integrations,
            usage=usage,
            recent_activity=activity,
            recent_events=list(self.recent_events),
        )
        return self.snapshot

    def current(self) -> Optional[DashboardSnapshot]:
        if self.snapshot is None:
            return None
        return self.snapshot.model_copy(update={"recent_events": list(self.recent_events)})

    @property
    def subscribed(self) -> bool:
        return any(s.active for s in self._subscriptions)

    # ── realtime ───────────────────────────────────────────────

    def _on_integration(self, change: RealtimeChange) -> None:
        # integrations created while the dashboard is open
        if change.new.get("user_id") == self.user_id and change.new.get("id"):
            self._integration_ids.add(change.new["id"])

    def _on_webhook_event(self, change: RealtimeChange) -> None:
        # runs inside the publisher; on_event is awaited by the delivery task
        if change.new.get("integration_id") not in self._integration_ids:
            return
        event = WebhookEvent(**change.new)
        self.recent_events.appendleft(event)
        if self._outbox is None:
            return
        try:
            self._outbox.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Dashboard for %s is not keeping up, dropped event %s", self.user_id, event.id)

    async def _deliver(self, outbox: asyncio.Queue) -> None:
        while True:
            event = await outbox.get()
            try:
                await self.on_event(event)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Dashboard event delivery failed for %s", self.user_id)
            finally:
                outbox.task_done()

    async def flush(self) -> None:
        """Wait until every queued event has been handed to on_event"""
        if self._outbox is not None:
            await self._outbox.join()

    def subscribe(self) -> None:
        if self.subscribed:
            return
        if self.on_event:
            self._outbox = asyncio.Queue(maxsize=MAX_PENDING_EVENTS)
            self._delivery = asyncio.ensure_future(self._deliver(self._outbox))
        self._subscriptions = [
            self.backend.subscribe("integrations", self._on_integration),
            self.backend.subscribe("webhook_events", self._on_webhook_event),
        ]

    def unsubscribe(self) -> None:
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions = []
        if self._delivery is not None:
            self._delivery.cancel()
            self._delivery = None
        self._outbox = None

    async def __aenter__(self):
        await self.load()
        self.subscribe()
        return self

    async def __aexit__(self, *exc):
        self.unsubscribe()
