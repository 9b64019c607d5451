# backend/store/memory.py
# In-process backend (development mode + tests)

import copy
import hashlib
import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from auth.tokens import create_access_token, decode_access_token
from core.errors import AuthError, BackendError, QuotaExceededError, ValidationError

from .base import TABLES, BackendClient, to_jsonable
from .models import AuthSession, AuthUser, utcnow
from .realtime import RealtimeHub

logger = logging.getLogger(__name__)

# Column defaults applied on insert
DEFAULTS = {
    "users": {"subscription_tier": "free", "integration_limit": 1},
    "integrations": {"status": "Active", "field_mappings": []},
}


def _hash_password(password: str, salt: bytes) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, 100_000).hex()


class InMemoryBackend(BackendClient):
    """
    Dict-backed store with a local auth provider

    Mirrors the stored procedures of the hosted backend so routes behave the
    same. No await happens between a check and its write, so each call is
    atomic on the event loop.
    """

    def __init__(
        self,
        secret: str = "integration_hub_dev_secret_change_in_production",
        hub: Optional[RealtimeHub] = None,
        expiry_hours: int = 24,
    ):
        super().__init__(hub)
        self.secret = secret
        self.expiry_hours = expiry_hours
        self.tables: Dict[str, List[Dict[str, Any]]] = {t: [] for t in TABLES}
        # email -> {id, salt, hash}
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.fail_tables: set = set()  # tables whose writes raise BackendError

    # ── auth ───────────────────────────────────────────────────

    async def get_user(self, token: str) -> AuthUser:
        payload = decode_access_token(token, self.secret)
        return AuthUser(id=payload.sub, email=payload.email)

    def _session(self, user_id: str, email: str) -> AuthSession:
        token = create_access_token(user_id, self.secret, email=email, expiry_hours=self.expiry_hours)
        return AuthSession(
            access_token=token,
            expires_in=self.expiry_hours * 3600,
            user=AuthUser(id=user_id, email=email),
        )

    async def sign_up(self, email: str, password: str) -> AuthSession:
        return self._register(email, password)

    def _register(self, email: str, password: str) -> AuthSession:
        email = email.lower()
        if email in self.accounts:
            raise ValidationError("User already registered")
        user_id = str(uuid.uuid4())
        salt = os.urandom(16)
        self.accounts[email] = {
            "id": user_id,
            "salt": salt,
            "hash": _hash_password(password, salt),
        }
        return self._session(user_id, email)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        account = self.accounts.get(email.lower())
        if not account or _hash_password(password, account["salt"]) != account["hash"]:
            raise AuthError("Invalid login credentials")
        return self._session(account["id"], email.lower())

    # ── data ───────────────────────────────────────────────────

    def _table(self, table: str) -> List[Dict[str, Any]]:
        if table not in self.tables:
            raise BackendError(f'relation "{table}" does not exist')
        return self.tables[table]

    def _check_writable(self, table: str) -> None:
        if table in self.fail_tables:
            raise BackendError(f"write to {table} failed")

    @staticmethod
    def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
        return all(row.get(k) == v for k, v in (filters or {}).items())

    async def query(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        rows = [r for r in self._table(table) if self._matches(r, filters)]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order) or ""), reverse=desc)
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    def _insert_now(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._table(table)
        self._check_writable(table)
        stored = {**DEFAULTS.get(table, {}), **to_jsonable(row)}
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", utcnow().isoformat())
        if table == "error_logs":
            stored.setdefault("timestamp", stored["created_at"])
        rows.append(stored)
        return copy.deepcopy(stored)

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = self._insert_now(table, row)
        await self._notify_insert(table, stored)
        return stored

    async def update(
        self,
        table: str,
        values: Dict[str, Any],
        filters: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        rows = self._table(table)
        self._check_writable(table)
        updated = []
        for row in rows:
            if self._matches(row, filters):
                row.update(to_jsonable(values))
                updated.append(copy.deepcopy(row))
        return updated

    async def rpc(self, function: str, params: Dict[str, Any]) -> Any:
        if function == "insert_webhook_event":
            return await self._insert_webhook_event(**params)
        if function == "create_integration":
            return await self._create_integration(**params)
        raise BackendError(f"function {function} does not exist")

    # ── stored procedures ──────────────────────────────────────

    async def _insert_webhook_event(
        self,
        p_integration_id: str,
        p_event_type: Optional[str],
        p_payload: Any,
    ) -> Dict[str, Any]:
        if not any(i["id"] == p_integration_id for i in self.tables["integrations"]):
            raise BackendError(
                'insert on table "webhook_events" violates foreign key constraint'
            )
        return await self.insert("webhook_events", {
            "integration_id": p_integration_id,
            "event_type": p_event_type,
            "payload": p_payload,
        })

    async def _create_integration(self, p_user_id: str, p_row: Dict[str, Any]) -> Dict[str, Any]:
        users = [u for u in self.tables["users"] if u["id"] == p_user_id]
        if not users:
            raise BackendError(f"user {p_user_id} not found")
        limit = users[0].get("integration_limit") or 0
        owned = sum(1 for i in self.tables["integrations"] if i["user_id"] == p_user_id)
        if owned >= limit:
            raise QuotaExceededError(
                f"Integration limit reached ({limit}). Upgrade your plan to add more integrations."
            )
        stored = self._insert_now("integrations", {**p_row, "user_id": p_user_id})
        await self._notify_insert("integrations", stored)
        return stored

    # ── helpers ────────────────────────────────────────────────

    def create_account(self, email: str, password: str, **fields) -> AuthSession:
        """Register an auth account and its users row (no realtime notification)"""
        session = self._register(email, password)
        self.seed("users", {"id": session.user.id, "email": session.user.email, **fields})
        return session

    def seed(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert without notifying subscribers"""
        return self._insert_now(table, row)
