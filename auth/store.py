"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper. UserRepository is the only component that
reads or writes user rows; _row_to_record is the mapper. Route and guard code
never touches SQL directly.

Error contract:
  Every public method either returns a domain value or raises one of the
  core.errors classes. Driver exceptions never escape: they are logged with
  their raw text and re-raised as Internal, whose rendered message is opaque.

Atomicity:
  Each write is a single statement inside engine.begin(). insert() and
  update() use RETURNING so callers get the persisted row without a second
  read. There is no multi-step write and therefore nothing to compensate.

Concurrency:
  The Engine's connection pool is shared by every in-flight request. No
  application-level lock is taken; correctness relies on per-statement
  atomicity in the storage engine.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, Uuid, create_engine, event, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from auth.models import Role, RoleDecodeError, UserDTO, UserRecord
from core.errors import Internal, NotFound

logger = logging.getLogger("personservice.store")

_DEFAULT_DB_URL = "sqlite:///./personservice.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("name", Text, nullable=False),
    Column("last_name", Text, nullable=False),
    Column("age", Integer, nullable=False),
    Column("role", String(16), nullable=False),  # Role.to_text(): "admin" | "user"
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block on writers.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Translate driver and decode failures into Internal.

    Domain errors raised inside the block (NotFound) pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("users.%s failed: %s", operation, exc)
        raise Internal(str(exc)) from exc
    except RoleDecodeError as exc:
        logger.error("users.%s returned an undecodable row: %s", operation, exc)
        raise Internal(str(exc)) from exc


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserRepository:
    """Repository for UserRecord entities.

    Usage:
        repo = UserRepository("sqlite:///./personservice.db")
        record = repo.insert(UserDTO(name="Ann", last_name="Lee", age=30, role=Role.USER))
        repo.get_by_id(record.id)
        repo.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, pool_size: int = 5) -> None:
        connect_args: dict = {}
        engine_kwargs: dict = {"pool_pre_ping": True}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        else:
            engine_kwargs["pool_size"] = pool_size
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, person_id: UUID) -> UserRecord:
        """Return the user with this id. Raises NotFound or Internal."""
        with _storage_errors("get_by_id"):
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.id == person_id)).fetchone()
            if row is None:
                raise NotFound.person(person_id)
            return _row_to_record(row)

    def get_by_token(self, token: str) -> UserRecord:
        """Resolve a session token to its user.

        A token that is not a well-formed UUID is reported exactly like a
        token with no matching row: NotFound. Callers cannot tell the two
        apart.
        """
        try:
            person_id = UUID(token)
        except (TypeError, ValueError, AttributeError):
            raise NotFound("No user for session token.") from None
        try:
            return self.get_by_id(person_id)
        except NotFound:
            raise NotFound("No user for session token.") from None

    def has_users(self) -> bool:
        """Return True if at least one user row exists. Used for first-run bootstrap."""
        with _storage_errors("has_users"):
            with self.engine.connect() as conn:
                result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return (result or 0) > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("Database ping failed: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Writes -- one statement each
    # ------------------------------------------------------------------

    def insert(self, dto: UserDTO) -> UserRecord:
        """Insert a new user and return the full persisted row with its generated id."""
        with _storage_errors("insert"):
            with self.engine.begin() as conn:
                row = conn.execute(
                    _users.insert().values(id=uuid.uuid4(), **_dto_values(dto)).returning(*_users.c)
                ).one()
            return _row_to_record(row)

    def update(self, person_id: UUID, dto: UserDTO) -> UserRecord:
        """Replace every mutable field of a user and return the persisted row.

        Raises NotFound if no row has this id.
        """
        with _storage_errors("update"):
            with self.engine.begin() as conn:
                row = conn.execute(
                    _users.update().where(_users.c.id == person_id).values(**_dto_values(dto)).returning(*_users.c)
                ).fetchone()
            if row is None:
                raise NotFound.person(person_id)
            return _row_to_record(row)

    def delete_by_id(self, person_id: UUID) -> None:
        """Permanently delete a user. Raises NotFound if no row has this id."""
        with _storage_errors("delete_by_id"):
            with self.engine.begin() as conn:
                result = conn.execute(_users.delete().where(_users.c.id == person_id))
            if result.rowcount == 0:
                raise NotFound.person(person_id)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _dto_values(dto: UserDTO) -> dict:
    return {
        "name": dto.name,
        "last_name": dto.last_name,
        "age": dto.age,
        "role": dto.role.to_text(),
    }


def _row_to_record(row) -> UserRecord:
    # Role.from_text raises RoleDecodeError for anything outside the mapping
    # table; _storage_errors turns that into Internal.
    return UserRecord(
        id=row.id,
        name=row.name,
        last_name=row.last_name,
        age=row.age,
        role=Role.from_text(row.role),
    )
