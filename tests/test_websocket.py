# tests/test_websocket.py
# WebSocket tests

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from websocket.manager import ConnectionManager, Message


class TestMessage:
    """Message model"""

    def test_message_creation(self):
        msg = Message(type="test", data={"key": "value"})

        assert msg.type == "test"
        assert msg.data["key"] == "value"
        assert msg.timestamp is not None

    def test_explicit_timestamp_kept(self):
        msg = Message(type="test", data={}, timestamp="2026-01-01T00:00:00+00:00")

        assert msg.timestamp == "2026-01-01T00:00:00+00:00"


class TestConnectionManager:

    def setup_method(self):
        self.manager = ConnectionManager()

    def test_initial_state(self):
        assert len(self.manager.active_connections) == 0
        assert "dashboard" in self.manager.channels

    def test_disconnect_nonexistent(self):
        self.manager.disconnect("nonexistent_client")
        assert len(self.manager.active_connections) == 0

    def test_get_stats(self):
        stats = self.manager.get_stats()

        assert stats["active_connections"] == 0
        assert stats["total_messages"] == 0
        assert stats["channels"] == {"dashboard": 0}

    @pytest.mark.asyncio
    async def test_send_to_unknown_client(self):
        assert not await self.manager.send_personal("ghost", Message(type="ping", data={}))


class TestDashboardSocket:
    """WS /ws/dashboard"""

    def test_rejects_missing_token(self, app):
        with TestClient(app) as client:
            with pytest.raises(WebSocketDisconnect):
                with client.websocket_connect("/ws/dashboard"):
                    pass

    def test_rejects_bad_token(self, app):
        with TestClient(app) as client:
            with pytest.raises(WebSocketDisconnect):
                with client.websocket_connect("/ws/dashboard?token=invalid"):
                    pass

    def test_snapshot_then_live_events(self, app, user, integration, sample_webhook_payload):
        with TestClient(app) as client:
            with client.websocket_connect(f"/ws/dashboard?token={user['token']}") as ws:
                assert ws.receive_json()["type"] == "connected"

                snapshot = ws.receive_json()
                assert snapshot["type"] == "snapshot"
                assert snapshot["data"]["user"]["id"] == user["id"]
                assert len(snapshot["data"]["integrations"]) == 1

                response = client.post(
                    f"/api/webhook?integrationId={integration['id']}",
                    json=sample_webhook_payload,
                )
                assert response.status_code == 200

                event = ws.receive_json()
                assert event["type"] == "webhook_event"
                assert event["data"]["integration_id"] == integration["id"]
                assert event["data"]["payload"] == sample_webhook_payload

    def test_ping_and_refresh(self, app, user):
        with TestClient(app) as client:
            with client.websocket_connect(f"/ws/dashboard?token={user['token']}") as ws:
                ws.receive_json()
                ws.receive_json()

                ws.send_json({"type": "ping"})
                assert ws.receive_json()["type"] == "pong"

                ws.send_json({"type": "refresh"})
                assert ws.receive_json()["type"] == "snapshot"

                ws.send_json({"type": "dance"})
                assert ws.receive_json()["type"] == "error"

    def test_stats_and_clients(self, app, user):
        with TestClient(app) as client:
            with client.websocket_connect(f"/ws/dashboard?token={user['token']}") as ws:
                ws.receive_json()

                stats = client.get("/websocket/stats").json()
                clients = client.get("/websocket/clients").json()

                assert stats["active_connections"] >= 1
                assert any(c["user_id"] == user["id"] for c in clients["clients"])

    def test_malformed_frames_answered_with_error(self, app, user):
        with TestClient(app) as client:
            with client.websocket_connect(f"/ws/dashboard?token={user['token']}") as ws:
                ws.receive_json()
                ws.receive_json()

                ws.send_text("not json")
                assert ws.receive_json()["type"] == "error"

                ws.send_json(["ping"])
                assert ws.receive_json()["type"] == "error"

                ws.send_json({"type": "ping"})
                assert ws.receive_json()["type"] == "pong"
