# tests/test_auth.py
# Auth tests

import time

import jwt
import pytest

from auth.middleware import validate_email
from auth.tokens import create_access_token, decode_access_token
from core.errors import AuthError

SECRET = "test-secret"


class TestTokens:
    """Session token helpers"""

    def test_round_trip(self):
        token = create_access_token("user_123", SECRET, email="a@example.com")
        payload = decode_access_token(token, SECRET)

        assert payload.sub == "user_123"
        assert payload.email == "a@example.com"
        assert payload.aud == "authenticated"

    def test_wrong_secret(self):
        token = create_access_token("user_123", SECRET)

        with pytest.raises(AuthError, match="Invalid token"):
            decode_access_token(token, "other-secret")

    def test_expired(self):
        now = int(time.time())
        token = jwt.encode(
            {"sub": "user_123", "aud": "authenticated", "iat": now - 7200, "exp": now - 3600},
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(AuthError, match="Token expired"):
            decode_access_token(token, SECRET)

    def test_garbage(self):
        with pytest.raises(AuthError):
            decode_access_token("invalid_token", SECRET)


class TestEmailValidation:

    @pytest.mark.parametrize("email", ["a@example.com", "first.last+tag@sub.example.co"])
    def test_valid(self, email):
        assert validate_email(email)

    @pytest.mark.parametrize("email", ["", "plain", "a@b", "a@example.c", "a b@example.com"])
    def test_invalid(self, email):
        assert not validate_email(email)


class TestAuthAPI:

    def test_signup_creates_user_row(self, client, backend):
        response = client.post("/auth/signup", json={"email": "dave@example.com", "password": "password123"})

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        row = backend.tables["users"][0]
        assert row["id"] == data["user"]["id"]
        assert row["subscription_tier"] == "free"
        assert row["integration_limit"] == 1

    def test_signup_invalid_email(self, client, backend):
        response = client.post("/auth/signup", json={"email": "not-an-email", "password": "password123"})

        assert response.status_code == 400
        assert backend.accounts == {}

    def test_signup_short_password(self, client):
        response = client.post("/auth/signup", json={"email": "dave@example.com", "password": "short"})

        assert response.status_code == 400
        assert "8" in response.json()["error"]

    def test_signup_duplicate(self, client, user):
        response = client.post("/auth/signup", json={"email": user["email"], "password": "password123"})

        assert response.status_code == 400

    def test_login(self, client, user):
        response = client.post("/auth/login", json={"email": user["email"], "password": "password123"})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user["id"]

    def test_login_wrong_password(self, client, user):
        response = client.post("/auth/login", json={"email": user["email"], "password": "wrong-password"})

        assert response.status_code == 401
        assert response.json() == {"error": "Incorrect email or password."}

    def test_me(self, client, user, auth_headers):
        response = client.get("/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user["id"]

    def test_me_without_token(self, client):
        response = client.get("/auth/me")

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_me_bad_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_update_profile(self, client, backend, auth_headers):
        response = client.patch(
            "/profile",
            json={"avatar_url": "https://cdn.example.com/a.png"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert backend.tables["users"][0]["avatar_url"] == "https://cdn.example.com/a.png"
        assert backend.tables["activity_logs"][-1]["action"] == "Updated profile"

    def test_failed_profile_setup_restored_on_login(self, client, backend):
        credentials = {"email": "dave@example.com", "password": "password123"}
        backend.fail_tables.add("users")

        response = client.post("/auth/signup", json=credentials)

        assert response.status_code == 500
        assert "sign in" in response.json()["error"]
        assert backend.tables["users"] == []

        backend.fail_tables.discard("users")
        response = client.post("/auth/login", json=credentials)

        assert response.status_code == 200
        token = response.json()["access_token"]
        row = backend.tables["users"][0]
        assert row["id"] == response.json()["user"]["id"]
        assert row["subscription_tier"] == "free"

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["integration_limit"] == 1
        assert client.get("/dashboard", headers={"Authorization": f"Bearer {token}"}).status_code == 200
