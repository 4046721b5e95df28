"""Unit tests for the first-run admin bootstrap in api/main.py.

Covers:
- an empty store gets exactly one admin
- a populated store is left alone
- BOOTSTRAP_ADMIN=false disables it
"""

from __future__ import annotations

from api.main import bootstrap_admin
from auth.models import Role, UserDTO
from auth.store import UserRepository, _users
from core.config import Settings


def _count(repository: UserRepository) -> int:
    with repository.engine.connect() as conn:
        return len(conn.execute(_users.select()).fetchall())


def test_empty_store_gets_admin(repository: UserRepository) -> None:
    bootstrap_admin(repository, Settings(debug=True, bootstrap_admin_name="Root"))
    with repository.engine.connect() as conn:
        rows = conn.execute(_users.select()).fetchall()
    assert len(rows) == 1
    assert rows[0].name == "Root"
    assert rows[0].role == "admin"


def test_populated_store_is_untouched(repository: UserRepository) -> None:
    repository.insert(UserDTO(name="Ann", last_name="Lee", age=30, role=Role.USER))
    bootstrap_admin(repository, Settings(debug=True))
    assert _count(repository) == 1


def test_disabled(repository: UserRepository) -> None:
    bootstrap_admin(repository, Settings(debug=True, bootstrap_admin=False))
    assert _count(repository) == 0
