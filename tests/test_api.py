"""End-to-end tests through the FastAPI app."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.database import get_db
from app.main import app as api
from app.services.user_service import user_service

PREFIX = "/api/v1"
COOKIE = "refreshToken"
PASSWORD = "Password123"


def _register(client, email="ada@lovelace.io", name="Ada", password=PASSWORD):
    return client.post(f"{PREFIX}/auth/register", json={"name": name, "email": email, "password": password})


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _cookie(token):
    return {"Cookie": f"{COOKIE}={token}"}


@pytest.fixture
def session(client):
    """Register a user and return (access_token, refresh_token) with the cookie jar emptied."""
    resp = _register(client)
    assert resp.status_code == 201
    access = resp.json()["data"]["accessToken"]
    refresh = resp.cookies[COOKIE]
    client.cookies.clear()
    return access, refresh


class TestRegisterAndLogin:

    def test_register_sets_httponly_cookie(self, client):
        resp = _register(client)

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["tokenType"] == "Bearer"
        assert body["data"]["expiresIn"] == 15 * 60
        assert "refreshToken" not in body["data"]

        set_cookie = resp.headers["set-cookie"]
        assert set_cookie.startswith(f"{COOKIE}=")
        assert "HttpOnly" in set_cookie
        assert "samesite=strict" in set_cookie.lower()

    def test_duplicate_registration(self, client):
        _register(client)
        resp = _register(client, name="Other")

        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "ALREADY_EXISTS"

    def test_weak_password_rejected(self, client):
        resp = _register(client, password="short")

        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_login(self, client, session):
        resp = client.post(f"{PREFIX}/auth/login", json={"email": "ada@lovelace.io", "password": PASSWORD})

        assert resp.status_code == 200
        assert resp.json()["data"]["accessToken"]
        assert COOKIE in resp.cookies

    def test_login_wrong_password(self, client, session):
        resp = client.post(f"{PREFIX}/auth/login", json={"email": "ada@lovelace.io", "password": "Wrong1234"})

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "INVALID_CREDENTIALS"
        assert COOKIE not in resp.cookies


class TestProtectedRoutes:

    def test_bearer_access(self, client, session):
        access, _ = session
        resp = client.get(f"{PREFIX}/users/me", headers=_bearer(access))

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["email"] == "ada@lovelace.io"
        assert "accessToken" not in data

    def test_cookie_fallback_returns_new_access_token(self, client, codec, session):
        _, refresh = session
        resp = client.get(f"{PREFIX}/users/me", headers={**_bearer("expired-or-garbage"), **_cookie(refresh)})

        assert resp.status_code == 200
        new_access = resp.json()["data"]["accessToken"]
        assert codec.verify_access(new_access).ok

        again = client.get(f"{PREFIX}/users/me", headers=_bearer(new_access))
        assert again.status_code == 200

    def test_expired_bearer_uses_cookie(self, client, clock, session):
        access, refresh = session
        clock.advance(minutes=16)

        assert client.get(f"{PREFIX}/users/me", headers=_bearer(access)).status_code == 401
        resp = client.get(f"{PREFIX}/users/me", headers={**_bearer(access), **_cookie(refresh)})
        assert resp.status_code == 200
        assert "accessToken" in resp.json()["data"]

    def test_rejections_are_uniform(self, client, codec, clock, session):
        access, refresh = session
        missing = client.get(f"{PREFIX}/users/me")
        malformed = client.get(f"{PREFIX}/users/me", headers=_bearer("not.a.jwt"))
        cross_kind = client.get(f"{PREFIX}/users/me", headers=_bearer(refresh))

        client.post(f"{PREFIX}/auth/logout", headers=_cookie(refresh))
        revoked = client.get(f"{PREFIX}/users/me", headers=_cookie(refresh))

        clock.advance(minutes=15)
        expired = client.get(f"{PREFIX}/users/me", headers=_bearer(access))

        responses = [missing, malformed, cross_kind, revoked, expired]
        assert {r.status_code for r in responses} == {401}
        bodies = [r.json() for r in responses]
        assert all(b == bodies[0] for b in bodies)
        assert bodies[0]["error"]["code"] == "UNAUTHENTICATED"
        assert missing.headers["www-authenticate"] == "Bearer"

    def test_put_and_patch_profile(self, client, session):
        access, _ = session
        put = client.put(f"{PREFIX}/users/me", headers=_bearer(access), json={"name": "Countess"})
        assert put.json()["data"]["name"] == "Countess"

        patch = client.patch(f"{PREFIX}/users/me", headers=_bearer(access), json={"email": "ada@analytical.io"})
        assert patch.json()["data"]["email"] == "ada@analytical.io"

    def test_patch_to_taken_email(self, client, session):
        access, _ = session
        _register(client, email="bob@lovelace.io", name="Bob")
        resp = client.patch(f"{PREFIX}/users/me", headers=_bearer(access), json={"email": "bob@lovelace.io"})
        assert resp.status_code == 409

    def test_delete_account(self, client, session):
        access, refresh = session
        resp = client.delete(f"{PREFIX}/users/me", headers=_bearer(access))
        assert resp.status_code == 200

        assert client.post(f"{PREFIX}/auth/refresh", headers=_cookie(refresh)).status_code == 401
        assert client.get(f"{PREFIX}/users/me", headers=_bearer(access)).status_code == 401
        login = client.post(f"{PREFIX}/auth/login", json={"email": "ada@lovelace.io", "password": PASSWORD})
        assert login.status_code == 401


class TestRefreshAndLogout:

    def test_refresh(self, client, codec, session):
        _, refresh = session
        resp = client.post(f"{PREFIX}/auth/refresh", headers=_cookie(refresh))

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert codec.verify_access(data["accessToken"]).ok
        assert data["expiresIn"] == 15 * 60

    def test_refresh_uses_cookie_jar(self, client):
        _register(client)
        resp = client.post(f"{PREFIX}/auth/refresh")
        assert resp.status_code == 200

    def test_refresh_without_cookie(self, client):
        resp = client.post(f"{PREFIX}/auth/refresh")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHENTICATED"

    def test_logout_revokes_and_clears_cookie(self, client, session):
        _, refresh = session
        resp = client.post(f"{PREFIX}/auth/logout", headers=_cookie(refresh))

        assert resp.status_code == 200
        assert f'{COOKIE}=""' in resp.headers["set-cookie"] or "Max-Age=0" in resp.headers["set-cookie"]
        assert client.post(f"{PREFIX}/auth/refresh", headers=_cookie(refresh)).status_code == 401

    def test_logout_is_idempotent(self, client, session):
        _, refresh = session
        assert client.post(f"{PREFIX}/auth/logout", headers=_cookie(refresh)).status_code == 200
        assert client.post(f"{PREFIX}/auth/logout", headers=_cookie(refresh)).status_code == 200
        assert client.post(f"{PREFIX}/auth/logout").status_code == 200
        assert client.post(f"{PREFIX}/auth/logout", headers=_cookie("garbage")).status_code == 200


class TestStoreOutage:

    def test_store_outage_is_503(self, client, session):
        _, refresh = session
        broken = MagicMock()
        broken.query.side_effect = OperationalError("SELECT 1", {}, Exception("connection lost"))
        api.dependency_overrides[get_db] = lambda: broken

        resp = client.post(f"{PREFIX}/auth/refresh", headers=_cookie(refresh))

        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "STORE_UNAVAILABLE"

    @pytest.fixture
    def commits_fail(self, session_factory):
        def override_get_db():
            db = session_factory()
            db.commit = MagicMock(side_effect=OperationalError("COMMIT", {}, Exception("connection lost")))
            try:
                yield db
            finally:
                db.close()

        api.dependency_overrides[get_db] = override_get_db

    def test_login_with_lost_commit_is_503(self, client, session, commits_fail):
        resp = client.post(f"{PREFIX}/auth/login", json={"email": "ada@lovelace.io", "password": PASSWORD})

        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "STORE_UNAVAILABLE"
        assert COOKIE not in resp.cookies

    def test_logout_with_lost_commit_is_503(self, client, session, commits_fail):
        _, refresh = session
        resp = client.post(f"{PREFIX}/auth/logout", headers=_cookie(refresh))

        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "STORE_UNAVAILABLE"

    def test_unwrapped_driver_error_is_503(self, client, session, monkeypatch):
        access, _ = session

        def lost(db, user_id):
            raise OperationalError("SELECT", {}, Exception("connection lost"))
        monkeypatch.setattr(user_service, "get_profile", lost)

        resp = client.get(f"{PREFIX}/users/me", headers=_bearer(access))

        assert resp.status_code == 503
        assert resp.json() == {
            "success": False,
            "message": "The session store is temporarily unavailable. Please retry.",
            "error": {"code": "STORE_UNAVAILABLE", "details": None, "field": None},
        }


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
