"""Task list operations that touch the ledger."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from studysync import db
from studysync.ledger import Ledger, points_for_priority
from studysync.models import Task, TaskCreate, TaskFilter

log = logging.getLogger(__name__)


def add_task(conn: sqlite3.Connection, user_id: str, task_in: TaskCreate) -> Task:
    """Create a task worth the points of its priority."""
    return db.add_task(conn, user_id, task_in, points_for_priority(task_in.priority))


def complete_task(
    conn: sqlite3.Connection, ledger: Ledger, task_id: int
) -> tuple[Optional[Task], bool]:
    """Mark a task done and award its points.

    Returns ``(task, newly_done)``. A task flips to done at most once, so it is
    only ever rewarded once; completing it again returns ``newly_done=False``
    and changes nothing. Another user's task is left untouched.
    """
    task = db.get_task(conn, task_id)
    if task is None or task.completed:
        return task, False
    if ledger.user is not None and task.user_id != ledger.user.id:
        log.warning("Task #%d belongs to another user", task_id)
        return task, False
    if not db.mark_task_completed(conn, task_id):
        return db.get_task(conn, task_id), False
    ledger.award_task_completion(task.priority)
    log.debug("Task #%d completed", task_id)
    return db.get_task(conn, task_id), True


def list_tasks(
    conn: sqlite3.Connection,
    user_id: str,
    task_filter: TaskFilter = TaskFilter.ALL,
    search: str = "",
) -> list[Task]:
    return db.list_tasks(conn, user_id, task_filter=task_filter, search=search.strip())
