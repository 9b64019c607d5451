# backend/dashboard/__init__.py
# Dashboard module

from .aggregator import (
    DashboardAggregator,
    DashboardSnapshot,
    MAX_RECENT_EVENTS,
    RECENT_ACTIVITY_LIMIT,
)

__all__ = [
    "DashboardAggregator",
    "DashboardSnapshot",
    "MAX_RECENT_EVENTS",
    "RECENT_ACTIVITY_LIMIT",
]
