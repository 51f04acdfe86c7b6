"""Identity provider: sign-up, sign-in, sign-out, session gate."""

from types import SimpleNamespace

import pytest

from kinbook import auth, supabase_client
from kinbook.auth import AuthError, register_user, sign_out
from kinbook.config import settings
from kinbook.models.user import RevokedToken, User
from kinbook.schemas.auth_schema import CurrentSession


class TestSignUpAndIn:

    def test_sign_up_returns_token(self, client):
        response = client.post(
            "/auth/sign-up",
            json={"email": "bo@example.com", "password": "long-enough"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["user_id"]

    def test_duplicate_email(self, client):
        payload = {"email": "bo@example.com", "password": "long-enough"}
        assert client.post("/auth/sign-up", json=payload).status_code == 200

        response = client.post("/auth/sign-up", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already exists"

    def test_short_password(self, client):
        response = client.post(
            "/auth/sign-up",
            json={"email": "bo@example.com", "password": "short"},
        )
        assert response.status_code == 400

    def test_sign_in(self, client):
        client.post("/auth/sign-up", json={"email": "bo@example.com", "password": "long-enough"})

        response = client.post(
            "/auth/sign-in",
            json={"email": "bo@example.com", "password": "long-enough"},
        )
        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_wrong_password(self, client):
        client.post("/auth/sign-up", json={"email": "bo@example.com", "password": "long-enough"})

        response = client.post(
            "/auth/sign-in",
            json={"email": "bo@example.com", "password": "not-the-one"},
        )
        assert response.status_code == 401


class TestSession:

    def test_current_session(self, auth_client):
        response = auth_client.get("/auth/session")
        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "ann@example.com"
        assert body["display_name"] == "Ann Lee"

    def test_protected_routes_need_a_token(self, client):
        assert client.get("/families").status_code == 401
        assert client.get("/people/search", params={"q": "an"}).status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/auth/session", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_sign_out_revokes_token(self, auth_client):
        assert auth_client.post("/auth/sign-out").status_code == 200

        response = auth_client.get("/auth/session")
        assert response.status_code == 401
        assert response.json()["detail"] == "Session has ended"

    def test_health_is_public(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"message": "Kinbook API is running!"}


class TestRegistrationRace:

    def test_lost_race_is_a_duplicate_email(self, db, monkeypatch):
        register_user(db, email="bo@example.com", password="long-enough")

        # The other request inserted between our check and our insert
        monkeypatch.setattr(auth, "email_taken", lambda db, email: False)

        with pytest.raises(AuthError, match="Email already exists"):
            register_user(db, email="bo@example.com", password="long-enough")

        assert db.query(User).count() == 1


class TestSupabaseSignOut:

    def make_session(self):
        return CurrentSession(user_id="u1", email="bo@example.com", token_id="session-1")

    def test_ends_provider_session(self, db, monkeypatch):
        ended = []
        fake_client = SimpleNamespace(
            auth=SimpleNamespace(admin=SimpleNamespace(sign_out=ended.append)),
        )
        monkeypatch.setattr(settings, "AUTH_BACKEND", "supabase")
        monkeypatch.setattr(supabase_client, "get_supabase", lambda: fake_client)

        sign_out(db, self.make_session(), access_token="jwt-token")

        assert ended == ["jwt-token"]
        assert db.get(RevokedToken, "session-1") is not None

    def test_provider_failure_still_revokes_locally(self, db, monkeypatch):
        def failing_sign_out(token):
            raise ConnectionError("supabase down")

        fake_client = SimpleNamespace(
            auth=SimpleNamespace(admin=SimpleNamespace(sign_out=failing_sign_out)),
        )
        monkeypatch.setattr(settings, "AUTH_BACKEND", "supabase")
        monkeypatch.setattr(supabase_client, "get_supabase", lambda: fake_client)

        sign_out(db, self.make_session(), access_token="jwt-token")

        assert db.get(RevokedToken, "session-1") is not None

    def test_local_backend_does_not_call_provider(self, db, monkeypatch):
        def no_provider():
            raise AssertionError("provider must not be used")

        monkeypatch.setattr(supabase_client, "get_supabase", no_provider)

        sign_out(db, self.make_session(), access_token="jwt-token")

        assert db.get(RevokedToken, "session-1") is not None
