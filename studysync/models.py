"""Pydantic models -- single source of truth for all data types."""

from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

POINTS_PER_LEVEL = 1000
MIN_TIMER_MINUTES = 1
MAX_TIMER_MINUTES = 120


class TimerMode(str, enum.Enum):
    """The three phases of the focus timer."""

    FOCUS = "focus"
    SHORT_BREAK = "short-break"
    LONG_BREAK = "long-break"

    @property
    def label(self) -> str:
        return _MODE_LABELS[self]


_MODE_LABELS: dict[TimerMode, str] = {
    TimerMode.FOCUS: "Focus Time",
    TimerMode.SHORT_BREAK: "Short Break",
    TimerMode.LONG_BREAK: "Long Break",
}


def level_for_points(points: int) -> int:
    """Level is one plus every full thousand points."""
    return points // POINTS_PER_LEVEL + 1


def clamp_minutes(value: Any) -> int:
    """Coerce user input into a whole number of minutes within [1, 120].

    Anything that does not parse as a number counts as 1.
    """
    try:
        minutes = int(float(value))
    except (TypeError, ValueError):
        minutes = MIN_TIMER_MINUTES
    return max(MIN_TIMER_MINUTES, min(MAX_TIMER_MINUTES, minutes))


class TimerConfig(BaseModel):
    """Focus and break durations in minutes. Out-of-range input is clamped."""

    focus: int = 25
    short_break: int = 5
    long_break: int = 15

    @field_validator("focus", "short_break", "long_break", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> int:
        return clamp_minutes(value)

    def minutes_for(self, mode: TimerMode) -> int:
        if mode is TimerMode.FOCUS:
            return self.focus
        if mode is TimerMode.SHORT_BREAK:
            return self.short_break
        return self.long_break


class TimerState(BaseModel):
    """Live state of a focus timer."""

    mode: TimerMode = TimerMode.FOCUS
    remaining_seconds: int = Field(ge=0)
    running: bool = False
    completed_focus_count: int = Field(default=0, ge=0)


class Priority(str, enum.Enum):
    """Task priority; each maps to a fixed point reward."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskFilter(str, enum.Enum):
    """Task list filter tabs."""

    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


class Task(BaseModel):
    """A study task."""

    id: int
    user_id: str
    title: str
    subject: str = ""
    priority: Priority = Priority.MEDIUM
    due_date: Optional[date] = None
    estimated_minutes: Optional[int] = None
    completed: bool = False
    points: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None


class TaskCreate(BaseModel):
    """Input model for creating a new task."""

    title: str = Field(min_length=1, max_length=500)
    subject: str = ""
    priority: Priority = Priority.MEDIUM
    due_date: Optional[date] = None
    estimated_minutes: Optional[int] = Field(default=None, gt=0)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class UserRecord(BaseModel):
    """A signed-in user's profile and gamification counters.

    ``level`` is derived from ``points`` and is never stored.
    """

    id: str
    full_name: str
    email: str
    age: int = Field(ge=1, le=120)
    grade: str = ""
    subjects: list[str] = Field(default_factory=list)
    points: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    total_study_time: float = Field(default=0.0, ge=0)
    tasks_completed: int = Field(default=0, ge=0)
    focus_sessions: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def level(self) -> int:
        return level_for_points(self.points)


class UserCreate(BaseModel):
    """Input model for signing up."""

    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320)
    age: int = Field(ge=1, le=120)
    grade: str = ""
    subjects: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value


class FocusSession(BaseModel):
    """A completed focus countdown."""

    id: int
    user_id: str
    duration_minutes: int = Field(gt=0)
    completed_at: datetime = Field(default_factory=datetime.now)


class FocusSessionCreate(BaseModel):
    """Input model for logging a focus session."""

    user_id: str
    duration_minutes: int = Field(gt=0, le=MAX_TIMER_MINUTES)


class DailyLog(BaseModel):
    """Aggregated daily activity for one user."""

    date: date
    tasks_completed: int = Field(ge=0)
    focus_minutes: int = Field(ge=0)


class LeaderboardEntry(BaseModel):
    """One row of the global leaderboard."""

    rank: int = Field(ge=1)
    user_id: str
    full_name: str
    points: int = Field(ge=0)
    level: int = Field(ge=1)
    streak: int = Field(default=0, ge=0)


class Achievement(BaseModel):
    """A profile badge and whether the user has earned it."""

    name: str
    description: str
    icon: str
    unlocked: bool = False


class LevelProgress(BaseModel):
    """Progress toward the next level, as shown on the profile."""

    level: int = Field(ge=1)
    points: int = Field(ge=0)
    next_level_points: int = Field(gt=0)
    percent: float = Field(ge=0, le=100)


class AppConfig(BaseModel):
    """Application configuration (persisted to ~/.config/studysync/config.json)."""

    db_path: Optional[str] = None  # None = use default (~/.local/share/studysync/)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()
