"""Points, levels and study counters.

The ledger is the only writer of a user's gamification counters. Every award
reads the signed-in record, builds the updated copy and commits it through
the session in one step. ``level`` is a computed field of ``UserRecord`` so it
can never drift from ``points``.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from studysync import db
from studysync.models import (
    POINTS_PER_LEVEL,
    FocusSessionCreate,
    LevelProgress,
    Priority,
    UserRecord,
    level_for_points,
)
from studysync.session import UserSession

log = logging.getLogger(__name__)

FOCUS_SESSION_POINTS = 50

PRIORITY_POINTS: dict[Priority, int] = {
    Priority.LOW: 20,
    Priority.MEDIUM: 30,
    Priority.HIGH: 50,
}

__all__ = [
    "FOCUS_SESSION_POINTS",
    "PRIORITY_POINTS",
    "Ledger",
    "level_for_points",
    "level_progress",
    "points_for_priority",
]


def points_for_priority(priority: Priority | str) -> int:
    """Points granted for completing a task of the given priority."""
    return PRIORITY_POINTS[Priority(priority)]


def add_study_hours(total: float, minutes: int) -> float:
    """Add minutes to an hour total, rounded half-up to one decimal place."""
    return math.floor((total + minutes / 60) * 10 + 0.5) / 10


def level_progress(user: UserRecord) -> LevelProgress:
    """Points toward the next level boundary."""
    next_level_points = user.level * POINTS_PER_LEVEL
    percent = min(100.0, user.points / next_level_points * 100)
    return LevelProgress(
        level=user.level,
        points=user.points,
        next_level_points=next_level_points,
        percent=percent,
    )


class Ledger:
    """Applies focus-session and task rewards to the signed-in user."""

    def __init__(self, session: UserSession) -> None:
        self._session = session

    @property
    def user(self) -> Optional[UserRecord]:
        return self._session.user

    def award_focus_session(self, focus_minutes: int) -> Optional[UserRecord]:
        """Reward one completed focus countdown. No-op when signed out."""
        user = self._session.user
        if user is None:
            log.debug("No user signed in; focus session not awarded")
            return None
        record = FocusSessionCreate(user_id=user.id, duration_minutes=focus_minutes)
        updated = user.model_copy(
            update={
                "points": user.points + FOCUS_SESSION_POINTS,
                "focus_sessions": user.focus_sessions + 1,
                "total_study_time": add_study_hours(user.total_study_time, focus_minutes),
            }
        )
        self._session.commit(updated)
        db.log_focus_session(self._session.conn, record)
        self._log_award("focus session", user, updated)
        return updated

    def award_task_completion(self, priority: Priority | str) -> Optional[UserRecord]:
        """Reward one completed task. No-op when signed out."""
        user = self._session.user
        if user is None:
            log.debug("No user signed in; task completion not awarded")
            return None
        updated = user.model_copy(
            update={
                "points": user.points + points_for_priority(priority),
                "tasks_completed": user.tasks_completed + 1,
            }
        )
        self._session.commit(updated)
        self._log_award("task", user, updated)
        return updated

    @staticmethod
    def _log_award(kind: str, before: UserRecord, after: UserRecord) -> None:
        log.debug(
            "Awarded %s: %d -> %d points", kind, before.points, after.points
        )
        if after.level > before.level:
            log.info("%s reached level %d", after.full_name, after.level)
