# tests/test_dashboard.py
# Dashboard aggregator + integrations API tests

import asyncio

import pytest

from dashboard.aggregator import MAX_RECENT_EVENTS, DashboardAggregator
from store import repository as repo


async def send_event(backend, integration_id, n=0):
    await repo.record_webhook_event(backend, integration_id, "order.created", {"n": n})


class TestAggregator:

    @pytest.mark.asyncio
    async def test_load(self, backend, user, integration):
        backend.seed("activity_logs", {"user_id": user["id"], "action": "Signed up"})

        snapshot = await DashboardAggregator(backend, user["id"]).load()

        assert snapshot.user.id == user["id"]
        assert [i.id for i in snapshot.integrations] == [integration["id"]]
        assert snapshot.usage is None
        assert [a.action for a in snapshot.recent_activity] == ["Signed up"]
        assert snapshot.recent_events == []

    @pytest.mark.asyncio
    async def test_recent_activity_capped(self, backend, user):
        for i in range(12):
            backend.seed("activity_logs", {
                "user_id": user["id"],
                "action": f"action {i}",
                "created_at": f"2026-01-01T00:00:{i:02d}+00:00",
            })

        snapshot = await DashboardAggregator(backend, user["id"]).load()

        assert len(snapshot.recent_activity) == 10
        assert snapshot.recent_activity[0].action == "action 11"

    @pytest.mark.asyncio
    async def test_live_events_bounded(self, backend, user, integration):
        """Newest first, at most 5"""
        async with DashboardAggregator(backend, user["id"]) as dash:
            for n in range(7):
                await send_event(backend, integration["id"], n)

            events = list(dash.recent_events)

        assert len(events) == MAX_RECENT_EVENTS
        assert [e.payload["n"] for e in events] == [6, 5, 4, 3, 2]

    @pytest.mark.asyncio
    async def test_ignores_other_users_events(self, backend, user, integration):
        other = backend.create_account("bob@example.com", "password123")
        foreign = backend.seed("integrations", {"user_id": other.user.id, "name": "x", "platform": "stripe"})

        async with DashboardAggregator(backend, user["id"]) as dash:
            await send_event(backend, foreign["id"])
            assert len(dash.recent_events) == 0

    @pytest.mark.asyncio
    async def test_follows_new_integrations(self, backend, user):
        async with DashboardAggregator(backend, user["id"]) as dash:
            created = await repo.create_integration(backend, user["id"], {"name": "New", "platform": "stripe"})
            await send_event(backend, created.id)

            assert len(dash.recent_events) == 1

    @pytest.mark.asyncio
    async def test_unsubscribes_on_exit(self, backend, user, integration):
        async with DashboardAggregator(backend, user["id"]) as dash:
            assert dash.subscribed
            assert backend.hub.subscriber_count("webhook_events") == 1

        assert not dash.subscribed
        assert backend.hub.subscriber_count("webhook_events") == 0

        await send_event(backend, integration["id"])
        assert len(dash.recent_events) == 0

    @pytest.mark.asyncio
    async def test_unsubscribes_on_error(self, backend, user):
        with pytest.raises(RuntimeError):
            async with DashboardAggregator(backend, user["id"]):
                raise RuntimeError("boom")

        assert backend.hub.subscriber_count("webhook_events") == 0

    @pytest.mark.asyncio
    async def test_on_event_callback(self, backend, user, integration):
        seen = []

        async def on_event(event):
            seen.append(event.event_type)

        async with DashboardAggregator(backend, user["id"], on_event=on_event) as dash:
            await send_event(backend, integration["id"])
            await asyncio.wait_for(dash.flush(), 1.0)

        assert seen == ["order.created"]

    @pytest.mark.asyncio
    async def test_stalled_consumer_does_not_block_ingestion(self, backend, user, integration):
        never = asyncio.Event()

        async def on_event(event):
            await never.wait()

        async with DashboardAggregator(backend, user["id"], on_event=on_event) as dash:
            await asyncio.wait_for(send_event(backend, integration["id"], 1), 1.0)
            await asyncio.wait_for(send_event(backend, integration["id"], 2), 1.0)

            assert [e.payload["n"] for e in dash.recent_events] == [2, 1]

        assert backend.tables["webhook_events"][-1]["payload"] == {"n": 2}

    @pytest.mark.asyncio
    async def test_failing_consumer_keeps_delivering(self, backend, user, integration):
        seen = []

        async def on_event(event):
            seen.append(event.payload["n"])
            if event.payload["n"] == 1:
                raise RuntimeError("socket gone")

        async with DashboardAggregator(backend, user["id"], on_event=on_event) as dash:
            await send_event(backend, integration["id"], 1)
            await send_event(backend, integration["id"], 2)
            await asyncio.wait_for(dash.flush(), 1.0)

        assert seen == [1, 2]


class TestDashboardAPI:

    def test_requires_auth(self, client):
        assert client.get("/dashboard").status_code == 401

    def test_snapshot(self, client, user, integration, auth_headers):
        response = client.get("/dashboard", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == user["email"]
        assert data["user"]["integration_limit"] == 1
        assert data["integrations"][0]["name"] == "Shopify to HubSpot"

    def test_list_integrations(self, client, integration, auth_headers):
        response = client.get("/integrations", headers=auth_headers)

        assert response.json()["count"] == 1

    def test_activity(self, client, backend, user, auth_headers):
        backend.seed("activity_logs", {"user_id": user["id"], "action": "Signed up"})

        response = client.get("/activity", headers=auth_headers)

        assert [a["action"] for a in response.json()["activity"]] == ["Signed up"]


class TestRetry:
    """POST /integrations/{id}/retry"""

    def test_success_sets_active(self, client, backend, integration, auth_headers):
        backend.tables["integrations"][0].update({"status": "Error", "error_message": "timeout"})

        response = client.post(f"/integrations/{integration['id']}/retry", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        row = backend.tables["integrations"][0]
        assert row["status"] == "Active"
        assert row["error_message"] is None

    def test_failure_logs_error(self, client, backend, checker, integration, auth_headers):
        checker.failing.add("hubspot")

        response = client.post(f"/integrations/{integration['id']}/retry", headers=auth_headers)

        assert response.json()["success"] is False
        row = backend.tables["integrations"][0]
        assert row["status"] == "Error"
        assert row["error_message"] == "Could not reach HubSpot"

        errors = client.get(f"/integrations/{integration['id']}/errors", headers=auth_headers).json()["errors"]
        assert [e["error_message"] for e in errors] == ["Could not reach HubSpot"]

    def test_other_users_integration(self, client, backend, integration):
        other = backend.create_account("bob@example.com", "password123")

        response = client.post(
            f"/integrations/{integration['id']}/retry",
            headers={"Authorization": f"Bearer {other.access_token}"},
        )

        assert response.status_code == 404
