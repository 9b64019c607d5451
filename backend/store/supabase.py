# backend/store/supabase.py
# Supabase REST + auth client (httpx)

import logging
from typing import Any, Dict, List, Optional

import httpx

from auth.tokens import decode_access_token
from core.config import Settings
from core.errors import AuthError, BackendError, QuotaExceededError, ValidationError

from .base import BackendClient, to_jsonable
from .models import AuthSession, AuthUser
from .realtime import RealtimeHub

logger = logging.getLogger(__name__)

# raised by the create_integration() SQL function
QUOTA_ERROR_CODE = "P0001"
QUOTA_ERROR_HINT = "integration_limit_reached"


class SupabaseClient(BackendClient):
    """
    PostgREST / GoTrue client

    Table access goes through /rest/v1, stored procedures through
    /rest/v1/rpc, auth through /auth/v1. Writes use the service role key
    when configured.
    """

    def __init__(
        self,
        settings: Settings,
        hub: Optional[RealtimeHub] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(hub)
        self.settings = settings
        self.base_url = settings.supabase_url
        self.http_client = http_client or httpx.AsyncClient(timeout=30.0)

    def _headers(self, key: Optional[str] = None, token: Optional[str] = None) -> Dict[str, str]:
        key = key or self.settings.write_key
        return {
            "apikey": key,
            "Authorization": f"Bearer {token or key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _filters(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
        params = {}
        for column, value in (filters or {}).items():
            if value is None:
                params[column] = "is.null"
            else:
                params[column] = f"eq.{to_jsonable(value)}"
        return params

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.http_client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.error("Supabase %s %s failed: %s", method, path, e)
            raise BackendError(f"Backend request failed: {e}")
        if response.status_code >= 400:
            self._raise_for_error(method, path, response)
        return response

    @staticmethod
    def _raise_for_error(method: str, path: str, response: httpx.Response) -> None:
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        message = body.get("message") or body.get("msg") or body.get("error_description") or str(body)
        if body.get("code") == QUOTA_ERROR_CODE and QUOTA_ERROR_HINT in str(body.get("hint", "")):
            raise QuotaExceededError(message)
        logger.error("Supabase %s %s → %s: %s", method, path, response.status_code, message)
        if path.startswith("/auth/") and response.status_code in (400, 401, 403):
            raise AuthError(message)
        raise BackendError(message)

    # ── auth ───────────────────────────────────────────────────

    async def get_user(self, token: str) -> AuthUser:
        if self.settings.supabase_jwt_secret:
            payload = decode_access_token(token, self.settings.supabase_jwt_secret)
            return AuthUser(id=payload.sub, email=payload.email)

        response = await self._request(
            "GET",
            "/auth/v1/user",
            headers=self._headers(self.settings.supabase_anon_key, token=token),
        )
        data = response.json()
        return AuthUser(id=data["id"], email=data.get("email"))

    def _session(self, data: Dict[str, Any]) -> AuthSession:
        if not data.get("access_token"):
            # email confirmation pending
            raise ValidationError("Check your email to confirm your account")
        user = data.get("user") or {}
        return AuthSession(
            access_token=data["access_token"],
            token_type=data.get("token_type", "bearer"),
            expires_in=data.get("expires_in", 3600),
            user=AuthUser(id=user["id"], email=user.get("email")),
        )

    async def sign_up(self, email: str, password: str) -> AuthSession:
        response = await self._request(
            "POST",
            "/auth/v1/signup",
            headers=self._headers(self.settings.supabase_anon_key),
            json={"email": email, "password": password},
        )
        return self._session(response.json())

    async def sign_in(self, email: str, password: str) -> AuthSession:
        response = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            headers=self._headers(self.settings.supabase_anon_key),
            json={"email": email, "password": password},
        )
        return self._session(response.json())

    # ── data ───────────────────────────────────────────────────

    async def query(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = {"select": "*", **self._filters(filters)}
        if order:
            params["order"] = f"{order}.{'desc' if desc else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)
        response = await self._request("GET", f"/rest/v1/{table}", params=params, headers=self._headers())
        return response.json()

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        headers = {**self._headers(), "Prefer": "return=representation"}
        response = await self._request(
            "POST", f"/rest/v1/{table}", headers=headers, json=to_jsonable(row)
        )
        rows = response.json()
        stored = rows[0] if isinstance(rows, list) and rows else row
        await self._notify_insert(table, stored)
        return stored

    async def update(
        self,
        table: str,
        values: Dict[str, Any],
        filters: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        headers = {**self._headers(), "Prefer": "return=representation"}
        response = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=self._filters(filters),
            headers=headers,
            json=to_jsonable(values),
        )
        return response.json()

    async def rpc(self, function: str, params: Dict[str, Any]) -> Any:
        response = await self._request(
            "POST", f"/rest/v1/rpc/{function}", headers=self._headers(), json=to_jsonable(params)
        )
        result = response.json() if response.content else None

        # procedures that insert return the new row; fan it out locally
        if function == "insert_webhook_event" and isinstance(result, dict):
            await self._notify_insert("webhook_events", result)
        elif function == "create_integration" and isinstance(result, dict):
            await self._notify_insert("integrations", result)
        return result

    async def close(self):
        await self.http_client.aclose()
