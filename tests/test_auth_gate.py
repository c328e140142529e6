import uuid
from datetime import timedelta

from fastapi.testclient import TestClient

import main
from config.database import get_db
from config.settings import SESSION_COOKIE_NAME
from modules.auth.sessions import MemorySessionStore


def _cookie_cleared(resp) -> bool:
    header = resp.headers.get("set-cookie", "")
    return f"{SESSION_COOKIE_NAME}=" in header and "max-age=0" in header.lower()


def test_missing_cookie_is_unauthenticated(client):
    resp = client.get("/cartItems")

    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthenticated"
    assert "set-cookie" not in resp.headers


def test_unknown_token_is_invalid_and_cookie_is_cleared(app):
    client = TestClient(app, cookies={SESSION_COOKIE_NAME: "forged-token"})

    resp = client.get("/cartItems")

    assert resp.status_code == 401
    assert resp.json()["error"] == "InvalidSession"
    assert _cookie_cleared(resp)


def test_session_is_accepted_up_to_ttl(logged_in, clock):
    clock.advance(hours=24)
    assert logged_in.get("/cartItems").status_code == 200


def test_session_past_ttl_is_rejected(logged_in, clock, store):
    token = logged_in.cookies.get(SESSION_COOKIE_NAME)
    clock.advance(hours=24, seconds=1)

    resp = logged_in.get("/cartItems")

    assert resp.status_code == 401
    assert resp.json()["error"] == "InvalidSession"
    assert _cookie_cleared(resp)
    assert len(store) == 0
    assert store.validate(token) is None


class LenientStore(MemorySessionStore):
    """A backend whose lookup forgets to apply the TTL."""

    def validate(self, token):
        with self._lock:
            return self._sessions.get(token)


def test_gate_rechecks_expiry_for_lenient_backends(session_factory, clock):
    store = LenientStore(timedelta(hours=24), clock=clock)
    app = main.create_app(session_store=store, create_tables=False, start_scheduler=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    token = store.create(uuid.uuid4())
    clock.advance(hours=25)
    client = TestClient(app, cookies={SESSION_COOKIE_NAME: token})

    resp = client.get("/cartItems")

    assert resp.status_code == 401
    assert resp.json()["error"] == "SessionExpired"
    assert _cookie_cleared(resp)
    assert len(store) == 0


def test_public_routes_need_no_session(client, products):
    assert client.get("/products").status_code == 200
    assert client.get("/health").status_code == 200


def test_protected_routes_all_require_session(client, products):
    pid = products[0]
    calls = [
        client.get("/auth"),
        client.post("/auth/logout"),
        client.get("/cartItems"),
        client.post(f"/cartItems/add?productId={pid}"),
        client.delete(f"/cartItems/{pid}"),
        client.post("/orders"),
        client.get("/orders"),
    ]
    assert [r.status_code for r in calls] == [401] * len(calls)
