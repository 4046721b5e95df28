"""
api/routes/v1/person.py -- CRUD endpoints for the person resource.

Routes:
  GET    /person/{person_id}  -- read one person (requires auth)
  POST   /person              -- create (admin only); 201 + Location
  PUT    /person/{person_id}  -- full replacement (admin only); 201 + Location
  DELETE /person/{person_id}  -- delete (admin only); 204

Errors:
  Handlers do not catch repository errors. NotFound and Internal propagate to
  the exception handlers in api/errors.py unchanged. A person_id that is not
  a UUID fails path validation and is rendered as 400.

Body parsing:
  POST and PUT read their JSON body in read_person_body(), which depends on
  require_admin. The body is therefore only parsed once the guards have
  passed, so a caller without a session gets 401 even when the body is not
  valid JSON, and never learns why it would have been rejected.

Audit: mutating handlers log the acting principal's id.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.errors import created_response, summarize_validation
from api.models import ErrorBody, PersonIn, PersonOut
from auth.dependencies import get_current_principal, get_repository, require_admin
from auth.models import Principal
from auth.store import UserRepository
from core.errors import BadRequest

logger = logging.getLogger("personservice.api")

# Auth policy:
# - GET    /person/{id}: requires auth (get_current_principal)
# - POST   /person:      requires admin (require_admin)
# - PUT    /person/{id}: requires admin (require_admin)
# - DELETE /person/{id}: requires admin (require_admin)
router = APIRouter()

_ERROR_RESPONSES: dict = {
    400: {"model": ErrorBody},
    401: {"model": ErrorBody},
    403: {"model": ErrorBody},
    404: {"model": ErrorBody},
    500: {"model": ErrorBody},
}

# The body is read by hand in read_person_body(), so describe it for OpenAPI.
_PERSON_BODY_SCHEMA = PersonIn.model_json_schema(ref_template="#/components/schemas/{model}")
_PERSON_BODY_SCHEMA.pop("$defs", None)
_PERSON_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": _PERSON_BODY_SCHEMA}},
    }
}


async def read_person_body(request: Request, principal: Principal = Depends(require_admin)) -> PersonIn:
    """Parse the PersonIn body after the admin guard has passed."""
    try:
        return PersonIn.model_validate_json(await request.body())
    except ValidationError as exc:
        raise BadRequest(summarize_validation(exc)) from exc


@router.get("/person/{person_id}", response_model=PersonOut, responses=_ERROR_RESPONSES, name="get_person")
def get_person(
    person_id: UUID,
    principal: Principal = Depends(get_current_principal),
    repository: UserRepository = Depends(get_repository),
) -> PersonOut:
    """Return one person by id."""
    return PersonOut.from_record(repository.get_by_id(person_id))


@router.post(
    "/person", response_model=PersonOut, status_code=201, responses=_ERROR_RESPONSES, openapi_extra=_PERSON_BODY
)
def create_person(
    request: Request,
    body: PersonIn = Depends(read_person_body),
    principal: Principal = Depends(require_admin),
    repository: UserRepository = Depends(get_repository),
) -> JSONResponse:
    """Create a person. The repository generates the id and returns the full row."""
    record = repository.insert(body.to_dto())
    logger.info("person %s created by %s", record.id, principal.id)
    return created_response(request, record)


@router.put(
    "/person/{person_id}",
    response_model=PersonOut,
    status_code=201,
    responses=_ERROR_RESPONSES,
    openapi_extra=_PERSON_BODY,
)
def update_person(
    request: Request,
    person_id: UUID,
    body: PersonIn = Depends(read_person_body),
    principal: Principal = Depends(require_admin),
    repository: UserRepository = Depends(get_repository),
) -> JSONResponse:
    """Replace every field of an existing person."""
    record = repository.update(person_id, body.to_dto())
    logger.info("person %s updated by %s", record.id, principal.id)
    return created_response(request, record)


@router.delete("/person/{person_id}", status_code=204, responses=_ERROR_RESPONSES)
def delete_person(
    person_id: UUID,
    principal: Principal = Depends(require_admin),
    repository: UserRepository = Depends(get_repository),
) -> Response:
    repository.delete_by_id(person_id)
    logger.info("person %s deleted by %s", person_id, principal.id)
    return Response(status_code=204)
