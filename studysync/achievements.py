"""Profile badges derived from the user's counters."""

from __future__ import annotations

from typing import Callable, NamedTuple

from studysync.models import Achievement, UserRecord


class _Rule(NamedTuple):
    name: str
    description: str
    icon: str
    check: Callable[[UserRecord], bool]


_RULES: list[_Rule] = [
    _Rule("First Steps", "Complete your first study session", "🎯",
          lambda u: u.focus_sessions > 0),
    _Rule("Focus Master", "Complete 10 focus sessions", "🧠",
          lambda u: u.focus_sessions >= 10),
    _Rule("Task Destroyer", "Complete 25 tasks", "⚡",
          lambda u: u.tasks_completed >= 25),
    _Rule("Study Streak", "Study for 7 consecutive days", "🔥",
          lambda u: u.streak >= 7),
    _Rule("Time Lord", "Study for 10 hours total", "⏰",
          lambda u: u.total_study_time >= 10),
    _Rule("Point Collector", "Earn 500 points", "💎",
          lambda u: u.points >= 500),
]


def evaluate(user: UserRecord) -> list[Achievement]:
    """Every badge, with ``unlocked`` set for the ones this user has earned."""
    return [
        Achievement(name=r.name, description=r.description, icon=r.icon, unlocked=r.check(user))
        for r in _RULES
    ]
