"""
api/routes/v1/auth.py -- Session Manager endpoints.

Routes:
  POST /login/{person_id}  -- issue the "user" session cookie for an identity; 204
  POST /logout             -- delete the session cookie; 204
  GET  /me                 -- the Principal attached to the request (requires auth)

Security:
  Login performs NO credential check. Any caller who knows a person id can
  open a session as that person. This is documented as accepted for this
  service's scope (see DESIGN.md); put the service behind an authenticating
  proxy if that is not acceptable.

  An unknown identity is answered with the same 401 body the guards use.
  Storage errors are not reinterpreted: they reach the error mapper as 500.

  Cache-Control: no-store on login responses so the Set-Cookie is never cached.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from api.models import ErrorBody, MeResponse
from auth.dependencies import get_current_principal, get_repository
from auth.models import Principal
from auth.store import UserRepository
from auth.tokens import clear_session_cookie, set_session_cookie
from core.errors import NotFound, Unauthorized

logger = logging.getLogger("personservice.auth")

# Auth policy:
# - POST /login/{id}: public -- the login endpoint must be unauthenticated
# - POST /logout:     public -- clearing a cookie needs no prior auth
# - GET  /me:         requires auth (get_current_principal)
router = APIRouter()

_LOGIN_RESPONSES: dict = {
    400: {"model": ErrorBody},
    401: {"model": ErrorBody},
    500: {"model": ErrorBody},
}


@router.post("/login/{person_id}", status_code=204, responses=_LOGIN_RESPONSES)
def login(person_id: UUID, repository: UserRepository = Depends(get_repository)) -> Response:
    """Issue a session cookie bound to person_id.

    The identity must exist; otherwise the caller gets the generic 401.
    """
    try:
        record = repository.get_by_id(person_id)
    except NotFound as exc:
        raise Unauthorized() from exc

    resp = Response(status_code=204)
    set_session_cookie(resp, str(record.id))
    resp.headers["Cache-Control"] = "no-store"
    logger.info("Session issued for %s", record.id)
    return resp


@router.post("/logout", status_code=204)
def logout() -> Response:
    """Delete the session cookie and end the session."""
    resp = Response(status_code=204)
    clear_session_cookie(resp)
    return resp


@router.get("/me", response_model=MeResponse, responses={401: {"model": ErrorBody}})
def me(principal: Principal = Depends(get_current_principal)) -> MeResponse:
    """Return the id and role of the current principal."""
    return MeResponse.from_principal(principal)
