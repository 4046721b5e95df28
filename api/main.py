"""
api/main.py -- FastAPI application entry point for the person service.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. log_requests          -- one log line per request with latency

Lifespan handles startup (repository, first-run admin) and shutdown (dispose
the connection pool) symmetrically.

Request ordering inside one request:
  authentication guard -> authorization guard (if required) -> handler ->
  repository call -> error mapper.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from api.errors import register_error_handlers
from api.models import HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.person import router as person_router
from auth.models import Role, UserDTO
from auth.store import UserRepository
from core.config import Settings, get_settings

__version__ = "0.1.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("personservice.api")


# ---------------------------------------------------------------------------
# First-run bootstrap
# ---------------------------------------------------------------------------


def bootstrap_admin(repository: UserRepository, settings: Settings) -> None:
    """Insert an admin when the users table is empty.

    Without it no session could ever pass require_admin, so nobody could
    create the first person. The generated id is logged once; it is the
    value to pass to POST /login/{id}.
    """
    if not settings.bootstrap_admin or repository.has_users():
        return
    admin = repository.insert(
        UserDTO(
            name=settings.bootstrap_admin_name,
            last_name=settings.bootstrap_admin_last_name,
            age=settings.bootstrap_admin_age,
            role=Role.ADMIN,
        )
    )
    logger.warning("No users found -- created bootstrap admin with id %s", admin.id)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared repository on startup and dispose its pool on shutdown."""
    logger.info("Person service starting up")
    app.state.repository = UserRepository(_settings.database_url, pool_size=_settings.db_pool_size)
    bootstrap_admin(app.state.repository, _settings)
    logger.info("Repository initialized")

    yield

    app.state.repository.close()
    logger.info("Person service shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Person Service",
    description="CRUD for people, gated by an encrypted session cookie and a role check.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration and error mapping
# ---------------------------------------------------------------------------

app.include_router(person_router, tags=["Person"])
app.include_router(auth_router, tags=["Session"])
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health endpoint
#
# No authentication -- load balancers must reach it without a session.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"], responses={503: {"model": HealthResponse}})
def health(request: Request, response: Response) -> HealthResponse:
    """Return liveness, version and database reachability.

    An unreachable database reports status "degraded" with a 503 so load
    balancers take the instance out of rotation.
    """
    db_ok = request.app.state.repository.ping()
    if not db_ok:
        response.status_code = 503
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=__version__,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
