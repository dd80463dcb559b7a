"""The signed-in user session.

One ``UserSession`` exists per process. It is created with an open database
connection, holds at most one ``UserRecord``, and mirrors that record to a
small JSON file so the next command starts signed in. Other components get the
session passed in and read ``session.user``; only the ledger and profile edits
write through ``commit``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from studysync import db
from studysync.models import UserCreate, UserRecord

log = logging.getLogger(__name__)

_HASH_METHOD = "scrypt"

_PROFILE_FIELDS = frozenset({"full_name", "age", "grade", "subjects"})

# Demo accounts available on a fresh install.
_DEMO_USERS: list[dict[str, Any]] = [
    {
        "id": "1",
        "email": "demo@studysync.com",
        "password": "password123",
        "full_name": "Demo User",
        "age": 16,
        "grade": "11th Grade",
        "subjects": ["Mathematics", "Chemistry"],
        "points": 1250,
        "streak": 5,
        "total_study_time": 25,
        "tasks_completed": 12,
        "focus_sessions": 18,
    },
    {
        "id": "2",
        "email": "sarah@example.com",
        "password": "sarah123",
        "full_name": "Sarah Johnson",
        "age": 17,
        "grade": "12th Grade",
        "subjects": ["Physics", "Mathematics", "Chemistry"],
        "points": 2100,
        "streak": 12,
        "total_study_time": 45,
        "tasks_completed": 28,
        "focus_sessions": 35,
    },
    {
        "id": "3",
        "email": "mike@example.com",
        "password": "mike123",
        "full_name": "Mike Rodriguez",
        "age": 16,
        "grade": "11th Grade",
        "subjects": ["Biology", "Chemistry"],
        "points": 890,
        "streak": 3,
        "total_study_time": 18,
        "tasks_completed": 8,
        "focus_sessions": 12,
    },
    {
        "id": "4",
        "email": "emma@example.com",
        "password": "emma123",
        "full_name": "Emma Wilson",
        "age": 15,
        "grade": "10th Grade",
        "subjects": ["English", "History"],
        "points": 1680,
        "streak": 8,
        "total_study_time": 32,
        "tasks_completed": 19,
        "focus_sessions": 24,
    },
]


def hash_password(password: str) -> str:
    """Salted hash in werkzeug's ``method$salt$hash`` format."""
    return generate_password_hash(password, method=_HASH_METHOD)


def verify_password(password: str, stored: str) -> bool:
    return check_password_hash(stored, password)


def seed_demo_users(conn: sqlite3.Connection) -> int:
    """Populate an empty user directory with the demo accounts."""
    if db.count_users(conn) > 0:
        return 0
    for entry in _DEMO_USERS:
        data = dict(entry)
        password = data.pop("password")
        db.create_user(conn, UserRecord(**data), hash_password(password))
    log.info("Seeded %d demo users", len(_DEMO_USERS))
    return len(_DEMO_USERS)


class UserSession:
    """Holds the current user and keeps the directory and local mirror in sync."""

    def __init__(self, conn: sqlite3.Connection, mirror_path: Optional[Path] = None) -> None:
        self.conn = conn
        self.mirror_path = mirror_path
        self._user: Optional[UserRecord] = None
        seed_demo_users(conn)

    @property
    def user(self) -> Optional[UserRecord]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    # -- lifecycle ----------------------------------------------------------

    def sign_in(self, email: str, password: str) -> Optional[UserRecord]:
        """Authenticate against the directory. Returns None on bad credentials."""
        stored = db.get_password_hash(self.conn, email)
        if stored is None or not verify_password(password, stored):
            log.info("Sign-in failed for %s", email)
            return None
        user = db.get_user_by_email(self.conn, email)
        if user is None:
            return None
        self._user = user
        self._write_mirror(user)
        log.info("Signed in %s", user.email)
        return user

    def sign_up(self, user_in: UserCreate, password: str) -> Optional[UserRecord]:
        """Create an account and sign it in. Returns None if the email is taken."""
        if db.get_user_by_email(self.conn, user_in.email) is not None:
            log.info("Sign-up rejected, %s already registered", user_in.email)
            return None
        user = UserRecord(id=uuid.uuid4().hex, **user_in.model_dump())
        try:
            db.create_user(self.conn, user, hash_password(password))
        except sqlite3.IntegrityError:
            return None
        self._user = user
        self._write_mirror(user)
        log.info("Signed up %s", user.email)
        return user

    def sign_out(self) -> None:
        """Forget the current user and remove the local mirror."""
        if self._user is not None:
            log.info("Signed out %s", self._user.email)
        self._user = None
        if self.mirror_path is not None and self.mirror_path.exists():
            self.mirror_path.unlink()

    def restore(self) -> Optional[UserRecord]:
        """Resume the session saved by a previous run, if any.

        The directory copy wins over the mirror; a mirror that no longer
        matches a known user is ignored.
        """
        if self.mirror_path is None or not self.mirror_path.exists():
            return None
        try:
            data = json.loads(self.mirror_path.read_text())
            mirrored = UserRecord(**data)
        except (
            OSError,
            UnicodeDecodeError,
            json.JSONDecodeError,
            TypeError,
            ValidationError,
        ):
            log.warning("Ignoring unreadable session file %s", self.mirror_path)
            return None
        user = db.get_user(self.conn, mirrored.id)
        if user is None:
            log.warning("Session file refers to unknown user %s", mirrored.id)
            return None
        self._user = user
        return user

    # -- writes -------------------------------------------------------------

    def commit(self, user: UserRecord) -> UserRecord:
        """Persist a new version of the current user record."""
        if self._user is None or user.id != self._user.id:
            raise ValueError("can only commit the signed-in user")
        db.save_user(self.conn, user)
        self._user = user
        self._write_mirror(user)
        return user

    def update_profile(self, **fields: Any) -> Optional[UserRecord]:
        """Edit identity fields of the signed-in user."""
        if self._user is None:
            return None
        unknown = set(fields) - _PROFILE_FIELDS
        if unknown:
            raise ValueError(f"not editable: {', '.join(sorted(unknown))}")
        data = self._user.model_dump(exclude={"level"})
        data.update(fields)
        return self.commit(UserRecord(**data))

    def _write_mirror(self, user: UserRecord) -> None:
        if self.mirror_path is None:
            return
        self.mirror_path.parent.mkdir(parents=True, exist_ok=True)
        self.mirror_path.write_text(user.model_dump_json(indent=2))
