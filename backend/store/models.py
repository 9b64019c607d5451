# backend/store/models.py
# Records persisted by the backend store

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubscriptionTier(str, Enum):
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class IntegrationStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ERROR = "Error"


class Record(BaseModel):
    """Row from the store; unknown columns are ignored"""
    model_config = ConfigDict(extra="ignore")


class User(Record):
    id: str
    email: Optional[str] = None
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    integration_limit: int = 1
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    subscription_status: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class FieldMapping(BaseModel):
    source: str
    target: str


class Integration(Record):
    id: str
    user_id: str
    name: str
    platform: str
    source_platform: Optional[str] = None
    field_mappings: List[FieldMapping] = []
    status: IntegrationStatus = IntegrationStatus.ACTIVE
    last_sync: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None


class WebhookEvent(Record):
    id: Optional[str] = None
    integration_id: str
    event_type: Optional[str] = None
    payload: Any = None
    created_at: Optional[datetime] = None


class ActivityLogEntry(Record):
    id: Optional[str] = None
    user_id: Optional[str] = None
    action: str
    details: Any = None
    created_at: Optional[datetime] = None


class ErrorLog(Record):
    id: Optional[str] = None
    integration_id: str
    error_message: str
    error_code: Optional[str] = None
    timestamp: Optional[datetime] = None
    details: Any = None


class ApiUsage(Record):
    user_id: str
    period: Optional[str] = None
    calls: int = 0
    call_limit: int = 0


class AuthUser(BaseModel):
    """Identity resolved from a session token"""
    id: str
    email: Optional[str] = None


class AuthSession(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = 86400
    user: AuthUser


class RealtimeChange(BaseModel):
    """Change notification delivered to subscribers"""
    table: str
    type: str = "INSERT"
    new: Dict[str, Any] = Field(default_factory=dict)
    commit_timestamp: datetime = Field(default_factory=utcnow)
