"""
tests/conftest.py -- Shared test fixtures for person service tests.

This module provides:
  - _make_test_repository(): isolated named shared-memory SQLite repository
  - _patch_lifespan(): wires the test repository into app.state, bypassing real startup
  - api_client: (client, repository, admin, user) with seeded admin and user rows
  - client: the same TestClient with an empty cookie jar for every test
  - login_cookies(): log in through the real endpoint and return the cookie

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Role, UserDTO, UserRecord
from auth.store import UserRepository
from auth.tokens import SESSION_COOKIE

# ---------------------------------------------------------------------------
# Repository helpers
# ---------------------------------------------------------------------------


def _make_test_repository(db_suffix: str) -> UserRepository:
    """Create an isolated named shared-memory SQLite repository.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return UserRepository(db_url=f"sqlite:///file:test_people_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(repository: UserRepository):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.repository = repository
        yield

    return test_lifespan


@dataclass
class ApiContext:
    client: TestClient
    repository: UserRepository
    admin: UserRecord
    user: UserRecord


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def repository() -> Generator[UserRepository, None, None]:
    """Fresh in-memory repository for unit tests of the store itself."""
    repo = UserRepository("sqlite:///:memory:")
    yield repo
    repo.close()


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real guards and route handlers against an isolated store. One admin
    and one ordinary user are seeded before the client starts.
    """
    repository = _make_test_repository(request.module.__name__.rsplit(".", 1)[-1])
    admin = repository.insert(UserDTO(name="Ada", last_name="Admin", age=40, role=Role.ADMIN))
    user = repository.insert(UserDTO(name="Uma", last_name="User", age=25, role=Role.USER))

    app.router.lifespan_context = _patch_lifespan(repository)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(client=client, repository=repository, admin=admin, user=user)

    repository.close()


@pytest.fixture
def api(api_client: ApiContext) -> ApiContext:
    """api_client with an empty cookie jar, so no session leaks between tests."""
    api_client.client.cookies.clear()
    return api_client


def _login_cookies(client: TestClient, person_id) -> dict[str, str]:
    """POST /login/{id} and return the issued session cookie as a dict.

    The client's own jar is cleared afterwards so callers decide explicitly
    which requests carry the session.
    """
    resp = client.post(f"/login/{person_id}")
    assert resp.status_code == 204, f"login failed: {resp.status_code} {resp.text}"
    cookie = resp.cookies.get(SESSION_COOKIE)
    assert cookie, "login must set the session cookie"
    client.cookies.clear()
    return {SESSION_COOKIE: cookie}


@pytest.fixture
def admin_cookies(api: ApiContext) -> dict[str, str]:
    return _login_cookies(api.client, api.admin.id)


@pytest.fixture
def user_cookies(api: ApiContext) -> dict[str, str]:
    return _login_cookies(api.client, api.user.id)
