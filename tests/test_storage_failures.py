"""
tests/test_storage_failures.py -- Storage errors through the full HTTP stack.

The repository is patched on the live app so one lookup fails while the
guard's own session lookup keeps working.

Coverage:
  - an Internal from a route's repository call is a 500 with the fixed message
  - the driver text is logged but never sent to the client
  - login does not disguise a storage error as 401
  - an unexpected exception reaches the catch-all as an opaque 500
  - /health reports "degraded" with 503 when the database ping fails
"""

from __future__ import annotations

import logging
from uuid import uuid4

from fastapi.testclient import TestClient

from api.main import app
from core.errors import Internal

DRIVER_TEXT = "OperationalError: could not connect to server at 10.0.0.7 (password=hunter2)"
OPAQUE_500 = {"code": 500, "message": "Internal server error"}


def _fail_lookup(api, monkeypatch, target, exc: Exception) -> None:
    """Make repository.get_by_id raise exc for target only."""
    original = api.repository.get_by_id

    def get_by_id(person_id):
        if person_id == target:
            raise exc
        return original(person_id)

    monkeypatch.setattr(api.repository, "get_by_id", get_by_id)


def test_route_storage_error_is_opaque_500(api, admin_cookies, monkeypatch, caplog) -> None:
    target = uuid4()
    _fail_lookup(api, monkeypatch, target, Internal(DRIVER_TEXT))

    with caplog.at_level(logging.ERROR, logger="personservice.api"):
        resp = api.client.get(f"/person/{target}", cookies=admin_cookies)

    assert resp.status_code == 500, f"Expected 500, got {resp.status_code}: {resp.text}"
    assert resp.json() == OPAQUE_500
    assert "hunter2" not in resp.text
    assert "OperationalError" not in resp.text
    assert DRIVER_TEXT in caplog.text


def test_login_storage_error_is_500_not_401(api, monkeypatch) -> None:
    _fail_lookup(api, monkeypatch, api.user.id, Internal(DRIVER_TEXT))

    resp = api.client.post(f"/login/{api.user.id}")

    assert resp.status_code == 500, f"Expected 500, got {resp.status_code}: {resp.text}"
    assert resp.json() == OPAQUE_500
    assert "set-cookie" not in resp.headers


def test_unexpected_exception_hits_catch_all(api, admin_cookies, monkeypatch) -> None:
    target = uuid4()
    _fail_lookup(api, monkeypatch, target, RuntimeError(DRIVER_TEXT))

    # The catch-all re-raises after responding; this client swallows it.
    client = TestClient(app, raise_server_exceptions=False)
    resp = client.get(f"/person/{target}", cookies=admin_cookies)

    assert resp.status_code == 500
    assert resp.json() == OPAQUE_500
    assert "hunter2" not in resp.text


def test_health_degraded_when_database_unreachable(api, monkeypatch) -> None:
    monkeypatch.setattr(api.repository, "ping", lambda: False)

    resp = api.client.get("/health")

    assert resp.status_code == 503
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["components"] == {"app": "ok", "database": "error"}
