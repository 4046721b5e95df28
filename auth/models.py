"""
auth/models.py -- Domain dataclasses for users, roles and authenticated principals.

Pattern: Data class (pure data container, near-zero logic). The repository
and routes do the work; these types only own the domain shape.

Role is persisted and serialized as lowercase text. The mapping between the
enum and its text form is an explicit table so decoding an unknown string is
a hard error rather than a silent fallback.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class RoleDecodeError(ValueError):
    """Raised when a stored or supplied string is not a known role."""


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"

    def to_text(self) -> str:
        return _TEXT_BY_ROLE[self]

    @classmethod
    def from_text(cls, text: str | None) -> "Role":
        """Decode a role from its storage/wire form. Exact, case-sensitive match."""
        try:
            return _ROLE_BY_TEXT[text]  # type: ignore[index]
        except (KeyError, TypeError):
            raise RoleDecodeError(f"Invalid role decoded: {text!r}") from None


_TEXT_BY_ROLE: dict[Role, str] = {
    Role.ADMIN: "admin",
    Role.USER: "user",
}
_ROLE_BY_TEXT: dict[str, Role] = {text: role for role, text in _TEXT_BY_ROLE.items()}


@dataclass(frozen=True)
class UserDTO:
    """Identity-less user shape used as create/update input.

    age is a signed integer so negative input reaches validation instead of
    wrapping around. Bounds are enforced at the API layer.
    """

    name: str
    last_name: str
    age: int
    role: Role


@dataclass(frozen=True)
class UserRecord:
    """A persisted user row. id is generated by the repository on insert."""

    id: UUID
    name: str
    last_name: str
    age: int
    role: Role


@dataclass(frozen=True)
class Principal:
    """The verified identity attached to a single request.

    Built only by the authentication guard and discarded when the request ends.
    """

    id: UUID
    role: Role

    @classmethod
    def from_record(cls, record: UserRecord) -> "Principal":
        return cls(id=record.id, role=record.role)
