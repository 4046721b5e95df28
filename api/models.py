"""
API request and response models for the person service REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Principal, Role, UserDTO, UserRecord

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Age is signed end to end; these are the accepted bounds.
MIN_AGE = 0
MAX_AGE = 150


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class PersonIn(BaseModel):
    """Request body for POST /person and PUT /person/{id}.

    role accepts only the exact strings "admin" and "user"; anything else
    fails validation and is rendered as 400 by api/errors.py.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    age: int = Field(ge=MIN_AGE, le=MAX_AGE, strict=True)
    role: Role

    def to_dto(self) -> UserDTO:
        return UserDTO(name=self.name, last_name=self.last_name, age=self.age, role=self.role)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PersonOut(BaseModel):
    """A persisted user as returned on the wire. role serializes as lowercase text."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    last_name: str
    age: int
    role: Role

    @classmethod
    def from_record(cls, record: UserRecord) -> "PersonOut":
        return cls(
            id=record.id,
            name=record.name,
            last_name=record.last_name,
            age=record.age,
            role=record.role,
        )


class MeResponse(BaseModel):
    """Response for GET /me -- the Principal attached to the request."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: Role

    @classmethod
    def from_principal(cls, principal: Principal) -> "MeResponse":
        return cls(id=principal.id, role=principal.role)


class ErrorBody(BaseModel):
    """Error envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    code: int
    message: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
