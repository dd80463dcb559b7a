"""StudySync CLI -- tasks, focus timer, points and levels for students."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from studysync import achievements, charts, db, display, encouragement, tasks, timer
from studysync import config as cfg
from studysync.ledger import Ledger, level_progress
from studysync.models import (
    Priority,
    TaskCreate,
    TaskFilter,
    TimerConfig,
    TimerMode,
    UserCreate,
    UserRecord,
)
from studysync.session import UserSession

log = logging.getLogger(__name__)

app = typer.Typer(
    name="studysync",
    help="Study smarter: tasks, focus sessions, points and levels.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging before any command runs."""
    level = "DEBUG" if verbose else cfg.load_config().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@contextmanager
def _session() -> Iterator[UserSession]:
    """Open the database and resume the saved session (convenience wrapper)."""
    db_path = cfg.get_db_path()
    conn = db.get_connection(db_path)
    try:
        session = UserSession(conn, mirror_path=cfg.get_session_path(db_path))
        session.restore()
        yield session
    finally:
        conn.close()


def _require_user(session: UserSession) -> UserRecord:
    if session.user is None:
        display.print_warning("Please sign in first (studysync signin).")
        raise typer.Exit(1)
    return session.user


def _split_subjects(raw: str) -> list[str]:
    return [s.strip() for s in raw.split(",") if s.strip()]


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


@app.command()
def signup(
    full_name: str = typer.Option(..., "--name", prompt="Full name"),
    email: str = typer.Option(..., "--email", prompt="Email"),
    age: int = typer.Option(..., "--age", prompt="Age"),
    grade: str = typer.Option("", "--grade", prompt="Grade", show_default=False),
    subjects: str = typer.Option(
        "", "--subjects", prompt="Subjects (comma separated)", show_default=False
    ),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True
    ),
) -> None:
    """Create an account and sign in."""
    try:
        user_in = UserCreate(
            full_name=full_name,
            email=email,
            age=age,
            grade=grade,
            subjects=_split_subjects(subjects),
        )
    except ValidationError as exc:
        display.print_warning(f"Invalid details: {exc.errors()[0]['msg']}")
        raise typer.Exit(1)

    with _session() as session:
        user = session.sign_up(user_in, password)
        if user is None:
            display.print_warning(f"An account for {user_in.email} already exists.")
            raise typer.Exit(1)
        display.print_success(f"Welcome, {user.full_name}! You are level {user.level}.")


@app.command()
def signin(
    email: str = typer.Option(..., "--email", prompt="Email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
) -> None:
    """Sign in to an existing account."""
    with _session() as session:
        user = session.sign_in(email, password)
        if user is None:
            display.print_warning("Invalid email or password.")
            raise typer.Exit(1)
        display.print_success(f"Welcome back, {user.full_name}!")


@app.command()
def signout() -> None:
    """Sign out of the current account."""
    with _session() as session:
        session.sign_out()
    display.print_success("Signed out.")


@app.command()
def profile() -> None:
    """Show your level, points and study stats."""
    with _session() as session:
        user = _require_user(session)
        rank = db.get_rank(session.conn, user.id)
        display.print_profile(user, level_progress(user), rank)


@app.command(name="edit-profile")
def edit_profile(
    full_name: Optional[str] = typer.Option(None, "--name", help="New display name"),
    age: Optional[int] = typer.Option(None, "--age"),
    grade: Optional[str] = typer.Option(None, "--grade"),
    subjects: Optional[str] = typer.Option(None, "--subjects", help="Comma separated"),
) -> None:
    """Update your profile details."""
    fields: dict[str, object] = {}
    if full_name is not None:
        fields["full_name"] = full_name
    if age is not None:
        fields["age"] = age
    if grade is not None:
        fields["grade"] = grade
    if subjects is not None:
        fields["subjects"] = _split_subjects(subjects)
    if not fields:
        display.print_info("Use --name, --age, --grade or --subjects.")
        return

    with _session() as session:
        _require_user(session)
        try:
            session.update_profile(**fields)
        except ValidationError as exc:
            display.print_warning(f"Invalid details: {exc.errors()[0]['msg']}")
            raise typer.Exit(1)
        display.print_success("Profile updated.")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@app.command()
def add(
    title: str = typer.Argument(..., help="What do you need to do?"),
    subject: str = typer.Option("", "--subject", "-s", help="Subject, e.g. Chemistry"),
    priority: Priority = typer.Option(Priority.MEDIUM, "--priority", "-p"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    minutes: Optional[int] = typer.Option(None, "--minutes", "-m", help="Estimated minutes"),
) -> None:
    """Add a new task."""
    try:
        due_date = date.fromisoformat(due) if due else None
        task_in = TaskCreate(
            title=title,
            subject=subject,
            priority=priority,
            due_date=due_date,
            estimated_minutes=minutes,
        )
    except (ValueError, ValidationError) as exc:
        display.print_warning(f"Invalid task: {exc}")
        raise typer.Exit(1)

    with _session() as session:
        user = _require_user(session)
        task = tasks.add_task(session.conn, user.id, task_in)
        display.print_success(f"Added task #{task.id}: {task.title} (+{task.points} points)")


@app.command()
def done(
    task_id: int = typer.Argument(..., help="ID of the task to mark complete"),
) -> None:
    """Mark a task as done and collect its points."""
    with _session() as session:
        user = _require_user(session)
        existing = db.get_task(session.conn, task_id)
        if existing is None or existing.user_id != user.id:
            display.print_warning(f"Task #{task_id} not found.")
            raise typer.Exit(1)

        task, newly_done = tasks.complete_task(session.conn, Ledger(session), task_id)
        if not newly_done:
            display.print_info(f"Task #{task_id} is already completed.")
            return
        updated = session.user
        display.print_success(f"Completed: {task.title} (+{task.points} points)")
        if updated is not None and updated.level > user.level:
            display.print_success(f"Level up! You are now level {updated.level}.")
        display.print_nudge(encouragement.get_nudge())


@app.command(name="list")
def list_tasks(
    task_filter: TaskFilter = typer.Option(TaskFilter.ALL, "--filter", "-f"),
    search: str = typer.Option("", "--search", "-s", help="Match title or subject"),
) -> None:
    """List your tasks."""
    with _session() as session:
        user = _require_user(session)
        found = tasks.list_tasks(session.conn, user.id, task_filter=task_filter, search=search)
        display.print_task_list(found, title=f"Tasks ({task_filter.value})")


# ---------------------------------------------------------------------------
# Focus timer
# ---------------------------------------------------------------------------


@app.command()
def focus(
    focus_minutes: str = typer.Option("25", "--focus", help="Focus minutes (1-120)"),
    short_break: str = typer.Option("5", "--short-break", help="Short break minutes (1-120)"),
    long_break: str = typer.Option("15", "--long-break", help="Long break minutes (1-120)"),
    cycles: int = typer.Option(1, "--cycles", "-c", min=1, help="Focus sessions to run"),
) -> None:
    """Run focus sessions with breaks. Every 4th break is a long one."""
    config = TimerConfig(focus=focus_minutes, short_break=short_break, long_break=long_break)

    with _session() as session:
        ledger = Ledger(session)
        if session.user is None:
            display.print_info("Not signed in: sessions will not earn points.")
        focus_timer = timer.FocusTimer(config, on_focus_complete=ledger.award_focus_session)
        display.print_info(
            f"Focus {config.focus} min, short break {config.short_break} min, "
            f"long break {config.long_break} min."
        )

        def _ask_break(mode: TimerMode) -> bool:
            return typer.confirm(f"Start the {mode.label.lower()}?", default=True)

        completed = timer.run_focus_cycle(focus_timer, cycles=cycles, take_break=_ask_break)
        if completed and session.user is not None:
            display.print_success(
                f"{completed} session{'s' if completed != 1 else ''} logged. "
                f"Points: {session.user.points} (level {session.user.level})."
            )


# ---------------------------------------------------------------------------
# Profile surfaces
# ---------------------------------------------------------------------------


@app.command()
def leaderboard(
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Rows to show"),
) -> None:
    """See how you rank against other students."""
    with _session() as session:
        entries = db.get_leaderboard(session.conn, limit=limit)
        current = session.user.id if session.user else ""
        display.print_leaderboard(entries, current_user_id=current)
        if session.user is not None:
            display.print_info(f"Your rank: #{db.get_rank(session.conn, session.user.id)}")


@app.command(name="achievements")
def show_achievements() -> None:
    """Show which badges you have unlocked."""
    with _session() as session:
        user = _require_user(session)
        display.print_achievements(achievements.evaluate(user))


@app.command()
def chart(
    out: Path = typer.Argument(..., help="Where to write the PNG"),
) -> None:
    """Save a chart of this week's focus hours."""
    with _session() as session:
        user = _require_user(session)
        logs = db.get_week_logs(session.conn, user.id)
    image = charts.weekly_study_chart(logs)
    image.save(out)
    display.print_success(f"Chart saved to {out}")


@app.command()
def nudge() -> None:
    """Get a quick motivational message."""
    display.print_nudge(encouragement.get_nudge())


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@app.command()
def config(
    db_path: Optional[str] = typer.Option(
        None, "--db-path",
        help="Set a custom database file path",
    ),
    reset: bool = typer.Option(False, "--reset", help="Reset to default local DB"),
    show: bool = typer.Option(False, "--show", help="Show current config"),
) -> None:
    """Configure where your data is stored."""
    if db_path:
        result = cfg.set_db_path(db_path)
        display.print_success(f"Database path set to: {result.db_path}")
    elif reset:
        cfg.reset_db_path()
        display.print_success("Reset to default local database.")
    elif show:
        current = cfg.load_config()
        resolved = cfg.get_db_path()
        if current.db_path:
            display.print_info(f"Database: {current.db_path}")
        else:
            display.print_info(f"Database: {resolved} (default)")
        display.print_info(f"Log level: {current.log_level}")
    else:
        display.print_info("Use --db-path, --reset, or --show.")
