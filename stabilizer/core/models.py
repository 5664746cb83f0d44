"""
FILE: stabilizer/core/models.py
PURPOSE: Domain models for tasks, categories, habits, capacity, wins and reviews
EXPORTS:
  - Subtask (dataclass)
  - Task (dataclass)
  - Category (dataclass)
  - Habit (dataclass)
  - HabitLog (dataclass)
  - AppSettings (dataclass)
  - DailyCapacity (dataclass)
  - Win (dataclass)
  - WeeklyReview (dataclass)
DEPENDENCIES:
  - dataclasses (stdlib)
  - json (stdlib)
  - typing (stdlib)
NOTES:
  - All models have from_row() for SQLite row conversion
  - All models have to_json() for serialization
  - Optional fields use None as default
  - Timestamps stored as ISO-8601 strings, habit dates as YYYY-MM-DD
  - List/dict fields are stored as JSON text columns
"""

from dataclasses import dataclass, asdict, field
from typing import Dict, List, Optional
import json

from .constants import (
    DEFAULT_DOMAIN,
    DEFAULT_PRIORITY,
    HABIT_CHECK,
    LOG_NONE,
    SCHEDULE_DAILY,
    STATUS_BACKLOG,
    DOMAIN_LIFE_ADMIN,
    DOMAIN_BUSINESS,
    DEFAULT_CAPACITY_MINUTES,
)


def _load_json(value, default):
    """Decode a JSON text column, falling back to default for NULL/empty."""
    if value is None or value == "":
        return default
    return json.loads(value)


@dataclass
class Subtask:
    """A checklist item inside a task."""

    id: int
    title: str
    done: bool = False


@dataclass
class Task:
    """A unit of work that competes for a slot in the daily stack."""

    id: int
    title: str
    category_id: Optional[int] = None
    domain: str = DEFAULT_DOMAIN
    status: str = STATUS_BACKLOG
    priority: int = DEFAULT_PRIORITY
    due_date: Optional[str] = None
    soft_deadline: Optional[str] = None
    blocked_by_task_ids: List[int] = field(default_factory=list)
    estimate_minutes: Optional[int] = None
    actual_seconds_total: int = 0
    money_impact: Optional[float] = None
    next_action_at: Optional[str] = None
    pending_reason: Optional[str] = None
    notes: Optional[str] = None
    friction_note: Optional[str] = None
    subtasks: List[Subtask] = field(default_factory=list)
    completed_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Task":
        """Convert SQLite row to Task object."""
        subtasks = [Subtask(**s) for s in _load_json(row["subtasks"], [])]
        return cls(
            id=row["id"],
            title=row["title"],
            category_id=row["category_id"],
            domain=row["domain"],
            status=row["status"],
            priority=row["priority"],
            due_date=row["due_date"],
            soft_deadline=row["soft_deadline"],
            blocked_by_task_ids=_load_json(row["blocked_by_task_ids"], []),
            estimate_minutes=row["estimate_minutes"],
            actual_seconds_total=row["actual_seconds_total"],
            money_impact=row["money_impact"],
            next_action_at=row["next_action_at"],
            pending_reason=row["pending_reason"],
            notes=row["notes"],
            friction_note=row["friction_note"],
            subtasks=subtasks,
            completed_at=row["completed_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_json(self) -> str:
        """Serialize task to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class Category:
    """A named grouping whose kind drives the priority weight."""

    id: int
    name: str
    kind: str
    domain: str = DEFAULT_DOMAIN
    why: str = ""
    win_condition: str = ""
    script: str = ""

    @classmethod
    def from_row(cls, row) -> "Category":
        """Convert SQLite row to Category object."""
        return cls(
            id=row["id"],
            name=row["name"],
            kind=row["kind"],
            domain=row["domain"],
            why=row["why"] or "",
            win_condition=row["win_condition"] or "",
            script=row["script"] or "",
        )

    def to_json(self) -> str:
        """Serialize category to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class Habit:
    """A recurring intention with a schedule and a logging mode."""

    id: int
    name: str
    start_date: str
    type: str = HABIT_CHECK
    schedule_type: str = SCHEDULE_DAILY
    weekdays: List[int] = field(default_factory=list)
    every_n_days: Optional[int] = None
    times_per_week: Optional[int] = None
    goal_target: Optional[float] = None
    unit: Optional[str] = None
    show_in_today: bool = True
    allow_partial: bool = False
    allow_skip: bool = True
    color: Optional[str] = None
    icon: Optional[str] = None
    archived_at: Optional[str] = None
    sort_order: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @classmethod
    def from_row(cls, row) -> "Habit":
        """Convert SQLite row to Habit object."""
        return cls(
            id=row["id"],
            name=row["name"],
            start_date=row["start_date"],
            type=row["type"],
            schedule_type=row["schedule_type"],
            weekdays=_load_json(row["weekdays"], []),
            every_n_days=row["every_n_days"],
            times_per_week=row["times_per_week"],
            goal_target=row["goal_target"],
            unit=row["unit"],
            show_in_today=bool(row["show_in_today"]),
            allow_partial=bool(row["allow_partial"]),
            allow_skip=bool(row["allow_skip"]),
            color=row["color"],
            icon=row["icon"],
            archived_at=row["archived_at"],
            sort_order=row["sort_order"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_json(self) -> str:
        """Serialize habit to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class HabitLog:
    """The outcome recorded for one habit on one calendar date."""

    id: int
    habit_id: int
    date: str
    status: str = LOG_NONE
    value: Optional[float] = None
    note: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "HabitLog":
        """Convert SQLite row to HabitLog object."""
        return cls(
            id=row["id"],
            habit_id=row["habit_id"],
            date=row["date"],
            status=row["status"],
            value=row["value"],
            note=row["note"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_json(self) -> str:
        """Serialize log to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class AppSettings:
    """Persistent preferences, including the per-domain default capacity."""

    id: str = "default"
    role: str = "Stabilizer"
    dark_mode: bool = False
    default_minutes: Dict[str, int] = field(
        default_factory=lambda: {
            DOMAIN_LIFE_ADMIN: DEFAULT_CAPACITY_MINUTES,
            DOMAIN_BUSINESS: DEFAULT_CAPACITY_MINUTES,
        }
    )

    @classmethod
    def from_row(cls, row) -> "AppSettings":
        """Convert SQLite row to AppSettings object."""
        return cls(
            id=row["id"],
            role=row["role"],
            dark_mode=bool(row["dark_mode"]),
            default_minutes=_load_json(row["default_minutes"], {}),
        )

    def to_json(self) -> str:
        """Serialize settings to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class DailyCapacity:
    """A same-day capacity override for one domain."""

    date: str
    domain: str
    minutes: int

    @classmethod
    def from_row(cls, row) -> "DailyCapacity":
        """Convert SQLite row to DailyCapacity object."""
        return cls(
            date=row["date"],
            domain=row["domain"],
            minutes=row["minutes"],
        )

    def to_json(self) -> str:
        """Serialize override to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class Win:
    """Something that went well, logged on its own rather than as a task."""

    id: int
    text: str
    date: str
    tags: List[str] = field(default_factory=list)
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Win":
        """Convert SQLite row to Win object."""
        return cls(
            id=row["id"],
            text=row["text"],
            date=row["date"],
            tags=_load_json(row["tags"], []),
            created_at=row["created_at"],
        )

    def to_json(self) -> str:
        """Serialize win to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class WeeklyReview:
    """Saved answers from one weekly review."""

    id: int
    week_start: str
    friction: str = ""
    category_focus: str = ""
    scariest_next_step: str = ""
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "WeeklyReview":
        """Convert SQLite row to WeeklyReview object."""
        return cls(
            id=row["id"],
            week_start=row["week_start"],
            friction=row["friction"] or "",
            category_focus=row["category_focus"] or "",
            scariest_next_step=row["scariest_next_step"] or "",
            created_at=row["created_at"],
        )

    def to_json(self) -> str:
        """Serialize review to JSON string."""
        return json.dumps(asdict(self), indent=2)
