# backend/store/realtime.py
# In-process realtime channel (table change notifications)

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Dict, List, Union

from .models import RealtimeChange

logger = logging.getLogger(__name__)

Handler = Callable[[RealtimeChange], Union[None, Awaitable[None]]]


class Subscription:
    """
    Cancellable handle for a channel subscription

    Usable directly (unsubscribe()), or as a (async) context manager so the
    subscription is released when the owning scope ends.
    """

    def __init__(self, hub: "RealtimeHub", channel: str, handler: Handler):
        self.hub = hub
        self.channel = channel
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.hub._remove(self)
            self.active = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.unsubscribe()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.unsubscribe()


class RealtimeHub:
    """Channel → subscribers fan-out"""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = {}

    def subscribe(self, channel: str, handler: Handler) -> Subscription:
        sub = Subscription(self, channel, handler)
        self._subscribers.setdefault(channel, []).append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        subs = self._subscribers.get(sub.channel, [])
        if sub in subs:
            subs.remove(sub)
        if not subs:
            self._subscribers.pop(sub.channel, None)

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscribers.get(channel, []))

    async def publish(self, channel: str, change: RealtimeChange) -> int:
        """Deliver to every subscriber; returns the number delivered"""
        delivered = 0
        # copy: handlers may unsubscribe while we iterate
        for sub in list(self._subscribers.get(channel, [])):
            try:
                result = sub.handler(change)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Realtime handler failed on channel %s", channel)
        return delivered
