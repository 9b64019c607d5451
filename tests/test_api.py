# tests/test_api.py
# App wiring tests

from core.config import get_settings
from core.errors import AppError, QuotaExceededError


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["backend"] == "InMemoryBackend"

    def test_root(self, client):
        data = client.get("/").json()

        assert data["name"] == "Integration Hub"
        assert "/api/stripe-webhook" in data["endpoints"]["webhooks"]


class TestErrors:

    def test_status_codes(self):
        assert QuotaExceededError("x").status_code == 403
        assert AppError("x", status_code=418).status_code == 418

    def test_unknown_route(self, client):
        assert client.get("/nope").status_code == 404


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL", "STRIPE_PRICE_PRO"):
            monkeypatch.delenv(name, raising=False)

        settings = get_settings()

        assert not settings.uses_supabase
        assert settings.stripe_price_pro == "price_pro456"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_URL", "https://abc.supabase.co/")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")

        settings = get_settings()

        assert settings.supabase_url == "https://abc.supabase.co"
        assert settings.uses_supabase
        assert settings.write_key == "service"
        assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]
