"""
api/errors.py -- Error Mapper: domain errors and success objects -> status + body.

render_error() is a pure function from a PersonServiceError to (status, body).
The exception handlers below are thin adapters that call it, so every error
a request can end in -- raised by a guard, the repository or FastAPI's own
validation -- leaves the service as the same {"code", "message"} envelope.

Security note: Internal errors always render as "Internal server error". The
raw storage-driver text stays on the exception for logging only.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorBody, PersonOut
from auth.models import UserRecord
from core.errors import BadRequest, Internal, PersonServiceError

logger = logging.getLogger("personservice.api")


# ---------------------------------------------------------------------------
# Pure mapping
# ---------------------------------------------------------------------------


def render_error(exc: PersonServiceError) -> tuple[int, ErrorBody]:
    """Return the status code and wire body for a domain error."""
    message = Internal.default_message if isinstance(exc, Internal) else exc.message
    return exc.status_code, ErrorBody(code=exc.status_code, message=message)


def error_response(exc: PersonServiceError) -> JSONResponse:
    status, body = render_error(exc)
    return JSONResponse(status_code=status, content=body.model_dump())


def created_response(request: Request, record: UserRecord) -> JSONResponse:
    """201 with the persisted row and a Location pointing at its canonical path."""
    location = str(request.url_for("get_person", person_id=str(record.id)))
    return JSONResponse(
        status_code=201,
        content=PersonOut.from_record(record).model_dump(mode="json"),
        headers={"Location": location},
    )


def summarize_validation(exc: RequestValidationError | ValidationError) -> str:
    """Flatten validation errors into one "field: reason" message."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else str(err.get("msg", "invalid")))
    return "; ".join(parts) or BadRequest.default_message


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


async def domain_error_handler(request: Request, exc: PersonServiceError) -> JSONResponse:
    if isinstance(exc, Internal):
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.detail)
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed path identifiers and request bodies are BadRequest, not 422."""
    return error_response(BadRequest(summarize_validation(exc)))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework-level HTTP errors (unknown route, wrong method) in the same envelope."""
    body = ErrorBody(code=exc.status_code, message=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error_response(Internal(str(exc)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PersonServiceError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
