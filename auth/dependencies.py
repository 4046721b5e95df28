"""
auth/dependencies.py -- FastAPI Depends() guards for authentication and authorization.

The guard chain runs in order before any handler body:
  1. get_current_principal -- session cookie -> Principal, or Unauthorized.
  2. require_role(role)     -- get_current_principal plus one role predicate,
                               or Forbidden.

try_get_principal() is the soft variant (returns None on failure).
get_current_principal() wraps it and raises Unauthorized.
require_role() wraps get_current_principal() and raises Forbidden on mismatch.

Non-leakage policy: every authentication-path failure -- missing cookie,
undecryptable cookie, malformed token, unknown user, storage error -- ends in
the same Unauthorized. A caller cannot distinguish "no such user" from "bad
token" from "database hiccup".

The guards are read-only. They never write to the repository or the response.

Layer rule: no imports from api/. auth/dependencies.py may import from
fastapi because this module is part of the FastAPI dependency system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends, Request

from auth.models import Principal, Role
from auth.store import UserRepository
from auth.tokens import SESSION_COOKIE, decrypt_session_token
from core.errors import Forbidden, Internal, NotFound, Unauthorized

logger = logging.getLogger("personservice.auth")


def get_repository(request: Request) -> UserRepository:
    """Return the shared repository wired into app.state by the lifespan."""
    return request.app.state.repository


def try_get_principal(request: Request) -> Principal | None:
    """Resolve the request's session cookie to a Principal, or None.

    Never raises -- callers that need a hard 401 should use
    get_current_principal().
    """
    cookie = request.cookies.get(SESSION_COOKIE)
    if not cookie:
        return None

    token = decrypt_session_token(cookie)
    if token is None:
        return None

    repository = get_repository(request)
    try:
        record = repository.get_by_token(token)
    except NotFound:
        return None
    except Internal as exc:
        # Collapsed into Unauthorized like any other failure; log so the
        # outage is still visible to operators.
        logger.warning("Session lookup failed on storage error: %s", exc.detail)
        return None
    return Principal.from_record(record)


def get_current_principal(request: Request) -> Principal:
    """Require authentication. Raises Unauthorized if no session resolves.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(principal: Principal = Depends(get_current_principal)): ...
    """
    principal = try_get_principal(request)
    if principal is None:
        raise Unauthorized()
    return principal


def require_role(role: Role) -> Callable[..., Principal]:
    """Build a guard that requires authentication plus an exact role match.

    Unauthenticated callers get Unauthorized from get_current_principal;
    authenticated callers with any other role get Forbidden.
    """

    def guard(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role is not role:
            raise Forbidden(f"{role.to_text()} role required.")
        return principal

    guard.__name__ = f"require_{role.to_text()}"
    return guard


require_admin = require_role(Role.ADMIN)
