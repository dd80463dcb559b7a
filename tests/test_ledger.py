"""Tests for the gamification ledger."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from studysync import db
from studysync.ledger import (
    FOCUS_SESSION_POINTS,
    Ledger,
    add_study_hours,
    level_for_points,
    level_progress,
    points_for_priority,
)
from studysync.models import Priority, UserRecord


class TestPureHelpers:
    @pytest.mark.parametrize(
        ("points", "level"),
        [(0, 1), (999, 1), (1000, 2), (1030, 2), (2100, 3), (10_000, 11)],
    )
    def test_level_for_points(self, points: int, level: int) -> None:
        assert level_for_points(points) == level

    def test_points_for_priority(self) -> None:
        assert points_for_priority(Priority.LOW) == 20
        assert points_for_priority(Priority.MEDIUM) == 30
        assert points_for_priority("high") == 50

    def test_add_study_hours_rounds_to_one_decimal(self) -> None:
        assert add_study_hours(0, 25) == 0.4
        assert add_study_hours(25, 25) == 25.4
        assert add_study_hours(0.4, 25) == 0.8
        assert add_study_hours(0, 3) == 0.1  # 0.05 rounds half up

    def test_level_progress(self) -> None:
        user = UserRecord(id="x", full_name="X", email="x@example.com", age=15, points=1250)
        progress = level_progress(user)
        assert progress.level == 2
        assert progress.next_level_points == 2000
        assert progress.percent == pytest.approx(62.5)


class TestAwardFocusSession:
    def test_fixed_reward(self, session, fresh_user) -> None:
        ledger = Ledger(session)
        updated = ledger.award_focus_session(25)
        assert updated is not None
        assert updated.points == FOCUS_SESSION_POINTS
        assert updated.focus_sessions == 1
        assert updated.total_study_time == 0.4
        assert session.user == updated

    def test_level_up_at_boundary(self, session, fresh_user) -> None:
        session.commit(fresh_user.model_copy(update={"points": 980}))
        assert session.user.level == 1
        updated = Ledger(session).award_focus_session(25)
        assert updated.points == 1030
        assert updated.level == 2

    def test_persisted_and_logged(self, session, conn, fresh_user) -> None:
        Ledger(session).award_focus_session(30)
        stored = db.get_user(conn, fresh_user.id)
        assert stored is not None
        assert stored.points == 50
        assert stored.total_study_time == 0.5
        log = db.get_daily_log(conn, fresh_user.id, date.today())
        assert log.focus_minutes == 30
        assert len(db.list_focus_sessions(conn, fresh_user.id)) == 1

    def test_streak_passes_through(self, session, fresh_user) -> None:
        session.commit(fresh_user.model_copy(update={"streak": 4}))
        updated = Ledger(session).award_focus_session(25)
        assert updated.streak == 4

    def test_no_user_is_noop(self, session, conn) -> None:
        assert Ledger(session).award_focus_session(25) is None
        assert db.list_focus_sessions(conn, "1") == []

    def test_out_of_range_minutes_write_nothing(self, session, conn, fresh_user) -> None:
        with pytest.raises(ValidationError):
            Ledger(session).award_focus_session(150)
        assert session.user.points == 0
        stored = db.get_user(conn, fresh_user.id)
        assert stored.points == 0
        assert stored.focus_sessions == 0
        assert db.list_focus_sessions(conn, fresh_user.id) == []


class TestAwardTaskCompletion:
    def test_high_then_low(self, session, fresh_user) -> None:
        ledger = Ledger(session)
        ledger.award_task_completion(Priority.HIGH)
        updated = ledger.award_task_completion(Priority.LOW)
        assert updated.points == 70
        assert updated.tasks_completed == 2
        assert updated.level == 1

    def test_sum_of_rewards(self, session, fresh_user) -> None:
        ledger = Ledger(session)
        priorities = [Priority.MEDIUM, Priority.HIGH, Priority.HIGH, Priority.LOW] * 10
        for p in priorities:
            user = ledger.award_task_completion(p)
            assert user.level == user.points // 1000 + 1
        assert session.user.tasks_completed == len(priorities)
        assert session.user.points == sum(points_for_priority(p) for p in priorities)

    def test_counters_never_decrease(self, session, fresh_user) -> None:
        ledger = Ledger(session)
        before = session.user
        after = ledger.award_task_completion(Priority.LOW)
        assert after.points >= before.points
        assert after.tasks_completed >= before.tasks_completed
        assert after.focus_sessions == before.focus_sessions
        assert after.total_study_time == before.total_study_time

    def test_no_user_is_noop(self, session) -> None:
        assert Ledger(session).award_task_completion(Priority.HIGH) is None
        assert session.user is None
