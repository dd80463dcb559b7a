"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from studysync import db
from studysync.models import UserCreate
from studysync.session import UserSession


@pytest.fixture(autouse=True)
def _fast_password_hashing():
    """Use a cheap hash so seeding demo users does not slow every test."""
    with patch("studysync.session._HASH_METHOD", "pbkdf2:sha256:1000"):
        yield


@pytest.fixture()
def conn(tmp_path: Path):
    """Provide a fresh database file for each test."""
    connection = db.get_connection(db_path=tmp_path / "test.db")
    yield connection
    connection.close()


@pytest.fixture()
def session(conn, tmp_path: Path) -> UserSession:
    return UserSession(conn, mirror_path=tmp_path / "session.json")


@pytest.fixture()
def fresh_user(session: UserSession):
    """Sign up a brand-new user with zeroed counters."""
    user_in = UserCreate(
        full_name="Alex Student",
        email="alex@example.com",
        age=16,
        grade="11th Grade",
        subjects=["Physics"],
    )
    return session.sign_up(user_in, "secret123")
