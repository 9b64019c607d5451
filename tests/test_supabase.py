# tests/test_supabase.py
# Supabase client tests (httpx mock transport)

import json

import httpx
import pytest

from core.config import Settings
from core.errors import AuthError, BackendError, QuotaExceededError
from store import SupabaseClient

SETTINGS = Settings(
    supabase_url="https://abc.supabase.co",
    supabase_anon_key="anon-key",
    supabase_service_role_key="service-key",
)


def make_client(handler):
    transport = httpx.MockTransport(handler)
    return SupabaseClient(SETTINGS, http_client=httpx.AsyncClient(transport=transport))


class TestQueries:

    @pytest.mark.asyncio
    async def test_query_params(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["apikey"] = request.headers["apikey"]
            return httpx.Response(200, json=[{"id": "i1"}])

        client = make_client(handler)
        rows = await client.query("integrations", {"user_id": "u1", "error_message": None}, order="created_at", desc=True, limit=5)

        assert rows == [{"id": "i1"}]
        assert seen["path"] == "/rest/v1/integrations"
        assert seen["params"] == {
            "select": "*",
            "user_id": "eq.u1",
            "error_message": "is.null",
            "order": "created_at.desc",
            "limit": "5",
        }
        assert seen["apikey"] == "service-key"
        await client.close()

    @pytest.mark.asyncio
    async def test_insert_publishes(self):
        def handler(request):
            body = json.loads(request.content)
            return httpx.Response(201, json=[{**body, "id": "a1"}])

        client = make_client(handler)
        received = []
        client.subscribe("activity_logs", received.append)

        row = await client.insert("activity_logs", {"user_id": "u1", "action": "Signed up"})

        assert row["id"] == "a1"
        assert received[0].new["action"] == "Signed up"

    @pytest.mark.asyncio
    async def test_rpc_webhook_event_publishes(self):
        def handler(request):
            assert request.url.path == "/rest/v1/rpc/insert_webhook_event"
            return httpx.Response(200, json={"id": "e1", "integration_id": "i1", "event_type": "x"})

        client = make_client(handler)
        received = []
        client.subscribe("webhook_events", received.append)

        await client.rpc("insert_webhook_event", {"p_integration_id": "i1", "p_event_type": "x", "p_payload": {}})

        assert len(received) == 1


class TestErrors:

    @pytest.mark.asyncio
    async def test_quota_error(self):
        def handler(request):
            return httpx.Response(400, json={
                "code": "P0001",
                "message": "Integration limit reached (1). Upgrade your plan to add more integrations.",
                "hint": "integration_limit_reached",
            })

        client = make_client(handler)

        with pytest.raises(QuotaExceededError, match="Integration limit reached"):
            await client.rpc("create_integration", {"p_user_id": "u1", "p_row": {}})

    @pytest.mark.asyncio
    async def test_rls_denial(self):
        def handler(request):
            return httpx.Response(403, json={"code": "42501", "message": "permission denied for table users"})

        client = make_client(handler)

        with pytest.raises(BackendError, match="permission denied"):
            await client.update("users", {"avatar_url": "x"}, {"id": "u1"})

    @pytest.mark.asyncio
    async def test_bad_credentials(self):
        def handler(request):
            return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})

        client = make_client(handler)

        with pytest.raises(AuthError):
            await client.sign_in("a@example.com", "wrong-password")

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        client = make_client(handler)

        with pytest.raises(BackendError):
            await client.query("users")
