"""SQLite database layer. All public functions return Pydantic models."""

from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

from studysync.config import get_db_path as _config_get_db_path
from studysync.models import (
    DailyLog,
    FocusSession,
    FocusSessionCreate,
    LeaderboardEntry,
    Priority,
    Task,
    TaskCreate,
    TaskFilter,
    UserRecord,
    level_for_points,
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id               TEXT    PRIMARY KEY,
    email            TEXT    NOT NULL UNIQUE,
    password_hash    TEXT    NOT NULL,
    full_name        TEXT    NOT NULL,
    age              INTEGER NOT NULL,
    grade            TEXT    NOT NULL DEFAULT '',
    subjects         TEXT    NOT NULL DEFAULT '[]',
    points           INTEGER NOT NULL DEFAULT 0,
    streak           INTEGER NOT NULL DEFAULT 0,
    total_study_time REAL    NOT NULL DEFAULT 0,
    tasks_completed  INTEGER NOT NULL DEFAULT 0,
    focus_sessions   INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS tasks (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id           TEXT    NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title             TEXT    NOT NULL,
    subject           TEXT    NOT NULL DEFAULT '',
    priority          TEXT    NOT NULL DEFAULT 'medium',
    due_date          TEXT,
    estimated_minutes INTEGER,
    completed         INTEGER NOT NULL DEFAULT 0,
    points            INTEGER NOT NULL DEFAULT 0,
    created_at        TEXT    NOT NULL,
    completed_at      TEXT
);

CREATE TABLE IF NOT EXISTS focus_sessions (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id          TEXT    NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    duration_minutes INTEGER NOT NULL,
    completed_at     TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS daily_log (
    user_id          TEXT    NOT NULL,
    date             TEXT    NOT NULL,
    tasks_completed  INTEGER NOT NULL DEFAULT 0,
    focus_minutes    INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (user_id, date)
);
"""


def _get_db_path() -> Path:
    """Return the database file path from config (or default)."""
    return _config_get_db_path()


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open a connection and ensure the schema exists."""
    path = db_path or _get_db_path()
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.executescript(_SCHEMA)
    return conn


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _row_to_user(row: sqlite3.Row) -> UserRecord:
    """Convert a database row to a UserRecord model."""
    return UserRecord(
        id=row["id"],
        full_name=row["full_name"],
        email=row["email"],
        age=row["age"],
        grade=row["grade"],
        subjects=json.loads(row["subjects"]),
        points=row["points"],
        streak=row["streak"],
        total_study_time=row["total_study_time"],
        tasks_completed=row["tasks_completed"],
        focus_sessions=row["focus_sessions"],
    )


def create_user(conn: sqlite3.Connection, user: UserRecord, password_hash: str) -> UserRecord:
    """Insert a new user. Raises sqlite3.IntegrityError on a duplicate email."""
    conn.execute(
        "INSERT INTO users (id, email, password_hash, full_name, age, grade, subjects, "
        "points, streak, total_study_time, tasks_completed, focus_sessions) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            user.id,
            user.email,
            password_hash,
            user.full_name,
            user.age,
            user.grade,
            json.dumps(user.subjects),
            user.points,
            user.streak,
            user.total_study_time,
            user.tasks_completed,
            user.focus_sessions,
        ),
    )
    conn.commit()
    return user


def save_user(conn: sqlite3.Connection, user: UserRecord) -> UserRecord:
    """Overwrite a stored user's profile and counters."""
    conn.execute(
        "UPDATE users SET full_name = ?, email = ?, age = ?, grade = ?, subjects = ?, "
        "points = ?, streak = ?, total_study_time = ?, tasks_completed = ?, "
        "focus_sessions = ? WHERE id = ?",
        (
            user.full_name,
            user.email,
            user.age,
            user.grade,
            json.dumps(user.subjects),
            user.points,
            user.streak,
            user.total_study_time,
            user.tasks_completed,
            user.focus_sessions,
            user.id,
        ),
    )
    conn.commit()
    return user


def get_user(conn: sqlite3.Connection, user_id: str) -> Optional[UserRecord]:
    """Fetch a single user by ID."""
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return _row_to_user(row) if row else None


def get_user_by_email(conn: sqlite3.Connection, email: str) -> Optional[UserRecord]:
    """Fetch a single user by (case-insensitive) email."""
    row = conn.execute(
        "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
    ).fetchone()
    return _row_to_user(row) if row else None


def get_password_hash(conn: sqlite3.Connection, email: str) -> Optional[str]:
    """Return the stored password hash for an email, if the user exists."""
    row = conn.execute(
        "SELECT password_hash FROM users WHERE email = ?", (email.strip().lower(),)
    ).fetchone()
    return row["password_hash"] if row else None


def count_users(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()
    return row["n"]


def get_leaderboard(conn: sqlite3.Connection, limit: int = 50) -> list[LeaderboardEntry]:
    """Users ranked by points, highest first."""
    rows = conn.execute(
        "SELECT id, full_name, points, streak FROM users "
        "ORDER BY points DESC, full_name ASC LIMIT ?",
        (limit,),
    ).fetchall()
    return [
        LeaderboardEntry(
            rank=i,
            user_id=r["id"],
            full_name=r["full_name"],
            points=r["points"],
            level=level_for_points(r["points"]),
            streak=r["streak"],
        )
        for i, r in enumerate(rows, 1)
    ]


def get_rank(conn: sqlite3.Connection, user_id: str) -> int:
    """1-based leaderboard position of a user, or 0 if unknown."""
    for entry in get_leaderboard(conn, limit=-1):
        if entry.user_id == user_id:
            return entry.rank
    return 0


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def _row_to_task(row: sqlite3.Row) -> Task:
    """Convert a database row to a Task model."""
    return Task(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        subject=row["subject"],
        priority=Priority(row["priority"]),
        due_date=date.fromisoformat(row["due_date"]) if row["due_date"] else None,
        estimated_minutes=row["estimated_minutes"],
        completed=bool(row["completed"]),
        points=row["points"],
        created_at=datetime.fromisoformat(row["created_at"]),
        completed_at=(
            datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None
        ),
    )


def add_task(
    conn: sqlite3.Connection, user_id: str, task_in: TaskCreate, points: int
) -> Task:
    """Insert a new task and return it as a model."""
    now = datetime.now().isoformat()
    cur = conn.execute(
        "INSERT INTO tasks (user_id, title, subject, priority, due_date, "
        "estimated_minutes, points, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        (
            user_id,
            task_in.title,
            task_in.subject,
            task_in.priority.value,
            task_in.due_date.isoformat() if task_in.due_date else None,
            task_in.estimated_minutes,
            points,
            now,
        ),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM tasks WHERE id = ?", (cur.lastrowid,)).fetchone()
    return _row_to_task(row)


def get_task(conn: sqlite3.Connection, task_id: int) -> Optional[Task]:
    """Fetch a single task by ID."""
    row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
    return _row_to_task(row) if row else None


def list_tasks(
    conn: sqlite3.Connection,
    user_id: str,
    task_filter: TaskFilter = TaskFilter.ALL,
    search: str = "",
) -> list[Task]:
    """List a user's tasks, optionally filtered by completion and search text."""
    query = "SELECT * FROM tasks WHERE user_id = ?"
    params: list[str | int] = [user_id]
    if task_filter is TaskFilter.PENDING:
        query += " AND completed = 0"
    elif task_filter is TaskFilter.COMPLETED:
        query += " AND completed = 1"
    if search:
        query += " AND (LOWER(title) LIKE ? OR LOWER(subject) LIKE ?)"
        needle = f"%{search.lower()}%"
        params.extend([needle, needle])
    query += " ORDER BY id ASC"
    rows = conn.execute(query, params).fetchall()
    return [_row_to_task(r) for r in rows]


def mark_task_completed(conn: sqlite3.Connection, task_id: int) -> bool:
    """Flip a pending task to completed and update the daily log.

    Returns False when the task is missing or already completed.
    """
    now = datetime.now()
    cur = conn.execute(
        "UPDATE tasks SET completed = 1, completed_at = ? WHERE id = ? AND completed = 0",
        (now.isoformat(), task_id),
    )
    if cur.rowcount != 1:
        conn.rollback()
        return False
    row = conn.execute("SELECT user_id FROM tasks WHERE id = ?", (task_id,)).fetchone()
    conn.execute(
        """INSERT INTO daily_log (user_id, date, tasks_completed, focus_minutes)
           VALUES (?, ?, 1, 0)
           ON CONFLICT(user_id, date) DO UPDATE SET tasks_completed = tasks_completed + 1""",
        (row["user_id"], now.date().isoformat()),
    )
    conn.commit()
    return True


# ---------------------------------------------------------------------------
# Focus sessions
# ---------------------------------------------------------------------------


def _row_to_session(row: sqlite3.Row) -> FocusSession:
    """Convert a database row to a FocusSession model."""
    return FocusSession(
        id=row["id"],
        user_id=row["user_id"],
        duration_minutes=row["duration_minutes"],
        completed_at=datetime.fromisoformat(row["completed_at"]),
    )


def log_focus_session(
    conn: sqlite3.Connection, session_in: FocusSessionCreate
) -> FocusSession:
    """Record a completed focus session and update the daily log."""
    now = datetime.now().isoformat()
    cur = conn.execute(
        "INSERT INTO focus_sessions (user_id, duration_minutes, completed_at) VALUES (?, ?, ?)",
        (session_in.user_id, session_in.duration_minutes, now),
    )
    today_str = date.today().isoformat()
    conn.execute(
        """INSERT INTO daily_log (user_id, date, tasks_completed, focus_minutes)
           VALUES (?, ?, 0, ?)
           ON CONFLICT(user_id, date) DO UPDATE SET focus_minutes = focus_minutes + ?""",
        (
            session_in.user_id,
            today_str,
            session_in.duration_minutes,
            session_in.duration_minutes,
        ),
    )
    conn.commit()
    row = conn.execute(
        "SELECT * FROM focus_sessions WHERE id = ?", (cur.lastrowid,)
    ).fetchone()
    return _row_to_session(row)


def list_focus_sessions(conn: sqlite3.Connection, user_id: str) -> list[FocusSession]:
    """All focus sessions of a user, oldest first."""
    rows = conn.execute(
        "SELECT * FROM focus_sessions WHERE user_id = ? ORDER BY completed_at ASC",
        (user_id,),
    ).fetchall()
    return [_row_to_session(r) for r in rows]


# ---------------------------------------------------------------------------
# Daily log
# ---------------------------------------------------------------------------


def get_daily_log(conn: sqlite3.Connection, user_id: str, for_date: date) -> DailyLog:
    """Get the daily log for a specific date, returning zeros if none exists."""
    row = conn.execute(
        "SELECT * FROM daily_log WHERE user_id = ? AND date = ?",
        (user_id, for_date.isoformat()),
    ).fetchone()
    if row:
        return DailyLog(
            date=date.fromisoformat(row["date"]),
            tasks_completed=row["tasks_completed"],
            focus_minutes=row["focus_minutes"],
        )
    return DailyLog(date=for_date, tasks_completed=0, focus_minutes=0)


def get_week_logs(
    conn: sqlite3.Connection, user_id: str, week_start: Optional[date] = None
) -> list[DailyLog]:
    """Seven daily logs, Monday through Sunday of the given (or current) week."""
    if week_start is None:
        today = date.today()
        week_start = today - timedelta(days=today.weekday())
    return [get_daily_log(conn, user_id, week_start + timedelta(days=i)) for i in range(7)]
