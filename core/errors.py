"""
core/errors.py -- Closed error taxonomy shared by the repository, guards and routes.

Every failure a request can end in is one of five classes. The repository
raises them, the guards raise them, handlers let them propagate untouched,
and api/errors.py is the single place that turns them into a status line
and a JSON body.

Layer rule: core/ is the kernel. No imports from api/ or auth/.
"""

from __future__ import annotations


class PersonServiceError(Exception):
    """Base class for all domain errors. status_code is fixed per subclass."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(PersonServiceError):
    """No session, or a session that does not resolve to a known user."""

    status_code = 401
    default_message = "Authentication required."


class Forbidden(PersonServiceError):
    """Known caller without the role the route requires."""

    status_code = 403
    default_message = "Insufficient role."


class BadRequest(PersonServiceError):
    """Malformed identifier, token shape or request body."""

    status_code = 400
    default_message = "Bad request."


class NotFound(PersonServiceError):
    """Well-formed request for a row that does not exist."""

    status_code = 404
    default_message = "Not found."

    @classmethod
    def person(cls, person_id: object) -> "NotFound":
        return cls(f"person with id: {person_id} not found")


class Internal(PersonServiceError):
    """Storage or connectivity failure.

    detail keeps the raw driver text for logging. It is never rendered.
    """

    status_code = 500

    def __init__(self, detail: str = "") -> None:
        super().__init__()
        self.detail = detail
