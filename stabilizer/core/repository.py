"""
FILE: stabilizer/core/repository.py
PURPOSE: Database operations and SQLite connection management
EXPORTS:
  - get_connection() -> Connection
  - init_database(conn) -> None
  - create_task(title, ...) -> Task
  - get_task(task_id) -> Task | None
  - list_tasks(domain, status) -> List[Task]
  - update_task(task) -> None
  - delete_task(task_id) -> None
  - create_category(name, kind, domain, ...) -> Category
  - get_category(category_id) -> Category | None
  - get_category_by_name(name) -> Category | None
  - list_categories(domain) -> List[Category]
  - create_habit(habit fields) -> Habit
  - get_habit(habit_id) -> Habit | None
  - list_habits() -> List[Habit]
  - update_habit(habit) -> None
  - upsert_habit_log(habit_id, date, status, value, note) -> HabitLog
  - get_habit_log(habit_id, date) -> HabitLog | None
  - list_habit_logs(habit_id, start, end) -> List[HabitLog]
  - get_app_settings() -> AppSettings
  - update_app_settings(settings) -> None
  - get_daily_capacity(date, domain) -> DailyCapacity | None
  - set_daily_capacity(date, domain, minutes) -> DailyCapacity
  - delete_daily_capacity(date, domain) -> None
  - create_win(text, date, tags) -> Win
  - list_wins(since) -> List[Win]
  - delete_win(win_id) -> None
  - create_weekly_review(week_start, answers...) -> WeeklyReview
  - list_weekly_reviews() -> List[WeeklyReview]
DEPENDENCIES:
  - sqlite3 (stdlib)
  - pathlib (stdlib)
  - json (stdlib)
  - logging (stdlib)
  - stabilizer.core.models
  - stabilizer.core.exceptions (TaskNotFoundError, CategoryNotFoundError, HabitNotFoundError,
    WinNotFoundError)
NOTES:
  - Database stored at $STABILIZER_HOME/stabilizer.db (default ~/.stabilizer)
  - Auto-creates directory and initializes schema on first run
  - Returns domain objects (Task, etc.), never raw dicts
  - Uses row_factory for dict-like row access
  - habit_logs is UNIQUE(habit_id, date); upsert_habit_log relies on it
"""

import json
import logging
import os
import sqlite3
from contextlib import closing
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .constants import DEFAULT_DOMAIN, DEFAULT_PRIORITY, STATUS_BACKLOG
from .dates import to_iso, utc_now
from .exceptions import (
    CategoryNotFoundError,
    HabitNotFoundError,
    TaskNotFoundError,
    WinNotFoundError,
)
from .models import (
    AppSettings,
    Category,
    DailyCapacity,
    Habit,
    HabitLog,
    Task,
    WeeklyReview,
    Win,
)

logger = logging.getLogger(__name__)

# Database file location (cross-platform, overridable for tests and scripting)
DB_DIR = Path(os.environ.get("STABILIZER_HOME", Path.home() / ".stabilizer"))
DB_PATH = DB_DIR / "stabilizer.db"

# Schema file location (shipped inside the package)
SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def _timestamp(now: Optional[datetime] = None) -> str:
    return to_iso(now) if now is not None else to_iso(utc_now())


def get_connection() -> sqlite3.Connection:
    """
    Get SQLite connection to the Stabilizer database.

    Creates the data directory if it doesn't exist.
    Enables row_factory for dict-like row access.
    Enables foreign key constraints.
    Initializes database schema on first connection.
    """
    DB_DIR.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row

    # Required for ON DELETE CASCADE/SET NULL
    conn.execute("PRAGMA foreign_keys = ON")

    init_database(conn)

    return conn


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database schema if tables don't exist.

    Executes schema.sql to create tables and default data. Checks for the
    newest table so databases created before it was added get upgraded.
    Safe to call multiple times (uses CREATE TABLE IF NOT EXISTS).
    """
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='weekly_reviews'"
    )
    tables_exist = cursor.fetchone() is not None

    if not tables_exist:
        logger.debug("Initializing database schema at %s", DB_PATH)
        with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
            schema_sql = f.read()

        conn.executescript(schema_sql)
        conn.commit()


# --- Task Operations ---


def create_task(
    title: str,
    category_id: Optional[int] = None,
    domain: str = DEFAULT_DOMAIN,
    status: str = STATUS_BACKLOG,
    priority: int = DEFAULT_PRIORITY,
    due_date: Optional[str] = None,
    soft_deadline: Optional[str] = None,
    blocked_by_task_ids: Optional[List[int]] = None,
    estimate_minutes: Optional[int] = None,
    money_impact: Optional[float] = None,
    notes: Optional[str] = None,
    friction_note: Optional[str] = None,
    actual_seconds_total: int = 0,
    completed_at: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Task:
    """
    Create a new task.

    Returns:
        Newly created Task object

    Note:
        Sets created_at and updated_at automatically.
        Validation is the service layer's job; this only persists.
    """
    stamp = _timestamp(now)

    with closing(get_connection()) as conn:
        cursor = conn.execute(
            """
            INSERT INTO tasks (
                title, category_id, domain, status, priority, due_date,
                soft_deadline, blocked_by_task_ids, estimate_minutes,
                actual_seconds_total, money_impact, notes, friction_note, subtasks,
                completed_at, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, '[]', ?, ?, ?)
            """,
            (
                title,
                category_id,
                domain,
                status,
                priority,
                due_date,
                soft_deadline,
                json.dumps(blocked_by_task_ids or []),
                estimate_minutes,
                actual_seconds_total,
                money_impact,
                notes,
                friction_note,
                completed_at,
                stamp,
                stamp,
            ),
        )
        conn.commit()
        task_id = cursor.lastrowid

    task = get_task(task_id)
    if not task:
        # This should never happen, but handle gracefully
        raise TaskNotFoundError(task_id)

    return task


def get_task(task_id: int) -> Optional[Task]:
    """
    Fetch single task by ID.

    Returns:
        Task object if found, None otherwise
    """
    with closing(get_connection()) as conn:
        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()

    return Task.from_row(row) if row else None


def list_tasks(domain: Optional[str] = None, status: Optional[str] = None) -> List[Task]:
    """
    List tasks, optionally filtered by domain and/or status.

    Returns:
        Tasks in insertion order (oldest first), so "original order" is stable
    """
    query = "SELECT * FROM tasks"
    clauses = []
    params: list = []
    if domain is not None:
        clauses.append("domain = ?")
        params.append(domain)
    if status is not None:
        clauses.append("status = ?")
        params.append(status)
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY id"

    with closing(get_connection()) as conn:
        rows = conn.execute(query, params).fetchall()

    return [Task.from_row(row) for row in rows]


def update_task(task: Task) -> None:
    """
    Update existing task.

    Args:
        task: Task object with updated fields

    Raises:
        TaskNotFoundError: If task doesn't exist

    Note:
        Writes task.updated_at when the caller set it, otherwise the current time.
        Updates all mutable fields.
    """
    if not task.updated_at:
        task.updated_at = _timestamp()

    with closing(get_connection()) as conn:
        cursor = conn.execute(
            """
            UPDATE tasks
            SET title = ?,
                category_id = ?,
                domain = ?,
                status = ?,
                priority = ?,
                due_date = ?,
                soft_deadline = ?,
                blocked_by_task_ids = ?,
                estimate_minutes = ?,
                actual_seconds_total = ?,
                money_impact = ?,
                next_action_at = ?,
                pending_reason = ?,
                notes = ?,
                friction_note = ?,
                subtasks = ?,
                completed_at = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                task.title,
                task.category_id,
                task.domain,
                task.status,
                task.priority,
                task.due_date,
                task.soft_deadline,
                json.dumps(task.blocked_by_task_ids or []),
                task.estimate_minutes,
                task.actual_seconds_total,
                task.money_impact,
                task.next_action_at,
                task.pending_reason,
                task.notes,
                task.friction_note,
                json.dumps([asdict(s) for s in task.subtasks]),
                task.completed_at,
                task.updated_at,
                task.id,
            ),
        )
        conn.commit()

    if cursor.rowcount == 0:
        raise TaskNotFoundError(task.id)


def delete_task(task_id: int) -> None:
    """
    Delete task by ID.

    Raises:
        TaskNotFoundError: If task doesn't exist
    """
    task = get_task(task_id)
    if not task:
        raise TaskNotFoundError(task_id)

    with closing(get_connection()) as conn:
        conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        conn.commit()


# --- Category Operations ---


def create_category(
    name: str,
    kind: str,
    domain: str = DEFAULT_DOMAIN,
    why: str = "",
    win_condition: str = "",
    script: str = "",
) -> Category:
    """
    Create a new category.

    Raises:
        sqlite3.IntegrityError: If category name already exists
    """
    with closing(get_connection()) as conn:
        cursor = conn.execute(
            """
            INSERT INTO categories (name, kind, domain, why, win_condition, script)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (name, kind, domain, why, win_condition, script),
        )
        conn.commit()
        category_id = cursor.lastrowid

    category = get_category(category_id)
    if not category:
        raise CategoryNotFoundError(category_id)

    return category


def get_category(category_id: int) -> Optional[Category]:
    with closing(get_connection()) as conn:
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        ).fetchone()

    return Category.from_row(row) if row else None


def get_category_by_name(name: str) -> Optional[Category]:
    """
    Fetch single category by name (case-insensitive).

    Note:
        Useful for CLI/REPL commands where users specify categories by name
    """
    with closing(get_connection()) as conn:
        row = conn.execute(
            "SELECT * FROM categories WHERE lower(name) = lower(?)", (name,)
        ).fetchone()

    return Category.from_row(row) if row else None


def list_categories(domain: Optional[str] = None) -> List[Category]:
    """List categories (optionally for one domain), ordered by id."""
    with closing(get_connection()) as conn:
        if domain is None:
            rows = conn.execute("SELECT * FROM categories ORDER BY id").fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM categories WHERE domain = ? ORDER BY id", (domain,)
            ).fetchall()

    return [Category.from_row(row) for row in rows]


# --- Habit Operations ---


def create_habit(habit: Habit, now: Optional[datetime] = None) -> Habit:
    """
    Insert a habit built by the service layer.

    The id on the passed object is ignored; the stored habit is returned.
    """
    stamp = _timestamp(now)

    with closing(get_connection()) as conn:
        cursor = conn.execute(
            """
            INSERT INTO habits (
                name, type, schedule_type, weekdays, every_n_days,
                times_per_week, goal_target, unit, start_date, show_in_today,
                allow_partial, allow_skip, color, icon, archived_at,
                sort_order, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                habit.name,
                habit.type,
                habit.schedule_type,
                json.dumps(habit.weekdays or []),
                habit.every_n_days,
                habit.times_per_week,
                habit.goal_target,
                habit.unit,
                habit.start_date,
                int(habit.show_in_today),
                int(habit.allow_partial),
                int(habit.allow_skip),
                habit.color,
                habit.icon,
                habit.archived_at,
                habit.sort_order,
                stamp,
                stamp,
            ),
        )
        conn.commit()
        habit_id = cursor.lastrowid

    created = get_habit(habit_id)
    if not created:
        raise HabitNotFoundError(habit_id)

    return created


def get_habit(habit_id: int) -> Optional[Habit]:
    with closing(get_connection()) as conn:
        row = conn.execute("SELECT * FROM habits WHERE id = ?", (habit_id,)).fetchone()

    return Habit.from_row(row) if row else None


def list_habits() -> List[Habit]:
    """List all habits (active and archived), ordered by sort_order then id."""
    with closing(get_connection()) as conn:
        rows = conn.execute("SELECT * FROM habits ORDER BY sort_order, id").fetchall()

    return [Habit.from_row(row) for row in rows]


def next_habit_sort_order() -> int:
    with closing(get_connection()) as conn:
        row = conn.execute("SELECT MAX(sort_order) AS top FROM habits").fetchone()

    return (row["top"] or 0) + 1


def update_habit(habit: Habit) -> None:
    """
    Update existing habit.

    Raises:
        HabitNotFoundError: If habit doesn't exist
    """
    if not habit.updated_at:
        habit.updated_at = _timestamp()

    with closing(get_connection()) as conn:
        cursor = conn.execute(
            """
            UPDATE habits
            SET name = ?,
                type = ?,
                schedule_type = ?,
                weekdays = ?,
                every_n_days = ?,
                times_per_week = ?,
                goal_target = ?,
                unit = ?,
                start_date = ?,
                show_in_today = ?,
                allow_partial = ?,
                allow_skip = ?,
                color = ?,
                icon = ?,
                archived_at = ?,
                sort_order = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                habit.name,
                habit.type,
                habit.schedule_type,
                json.dumps(habit.weekdays or []),
                habit.every_n_days,
                habit.times_per_week,
                habit.goal_target,
                habit.unit,
                habit.start_date,
                int(habit.show_in_today),
                int(habit.allow_partial),
                int(habit.allow_skip),
                habit.color,
                habit.icon,
                habit.archived_at,
                habit.sort_order,
                habit.updated_at,
                habit.id,
            ),
        )
        conn.commit()

    if cursor.rowcount == 0:
        raise HabitNotFoundError(habit.id)


# --- Habit Log Operations ---


def upsert_habit_log(
    habit_id: int,
    date: str,
    status: str,
    value: Optional[float] = None,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> HabitLog:
    """
    Insert or overwrite the log for (habit_id, date).

    Returns:
        The single stored HabitLog for that habit and day

    Raises:
        HabitNotFoundError: If the habit doesn't exist

    Note:
        ON CONFLICT targets UNIQUE(habit_id, date), so a second call for the
        same day updates status/value/note in place and keeps created_at.
    """
    if not get_habit(habit_id):
        raise HabitNotFoundError(habit_id)

    stamp = _timestamp(now)

    with closing(get_connection()) as conn:
        conn.execute(
            """
            INSERT INTO habit_logs (habit_id, date, status, value, note, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(habit_id, date) DO UPDATE SET
                status = excluded.status,
                value = excluded.value,
                note = excluded.note,
                updated_at = excluded.updated_at
            """,
            (habit_id, date, status, value, note, stamp, stamp),
        )
        conn.commit()

    log = get_habit_log(habit_id, date)
    if not log:
        raise HabitNotFoundError(habit_id)

    return log


def get_habit_log(habit_id: int, date: str) -> Optional[HabitLog]:
    with closing(get_connection()) as conn:
        row = conn.execute(
            "SELECT * FROM habit_logs WHERE habit_id = ? AND date = ?",
            (habit_id, date),
        ).fetchone()

    return HabitLog.from_row(row) if row else None


def list_habit_logs(
    habit_id: int,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> List[HabitLog]:
    """
    List logs for a habit, ascending by date.

    Args:
        start: Inclusive lower bound (YYYY-MM-DD), optional
        end: Inclusive upper bound (YYYY-MM-DD), optional
    """
    query = "SELECT * FROM habit_logs WHERE habit_id = ?"
    params: list = [habit_id]
    if start is not None:
        query += " AND date >= ?"
        params.append(start)
    if end is not None:
        query += " AND date <= ?"
        params.append(end)
    query += " ORDER BY date"

    with closing(get_connection()) as conn:
        rows = conn.execute(query, params).fetchall()

    return [HabitLog.from_row(row) for row in rows]


# --- Settings & Capacity ---


def get_app_settings() -> AppSettings:
    """Fetch the settings row, falling back to defaults if it was removed."""
    with closing(get_connection()) as conn:
        row = conn.execute(
            "SELECT * FROM app_settings WHERE id = 'default'"
        ).fetchone()

    return AppSettings.from_row(row) if row else AppSettings()


def update_app_settings(settings: AppSettings) -> None:
    with closing(get_connection()) as conn:
        conn.execute(
            """
            INSERT INTO app_settings (id, role, dark_mode, default_minutes)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                role = excluded.role,
                dark_mode = excluded.dark_mode,
                default_minutes = excluded.default_minutes
            """,
            (
                settings.id,
                settings.role,
                int(settings.dark_mode),
                json.dumps(settings.default_minutes),
            ),
        )
        conn.commit()


def get_daily_capacity(date: str, domain: str) -> Optional[DailyCapacity]:
    with closing(get_connection()) as conn:
        row = conn.execute(
            "SELECT * FROM daily_capacity WHERE date = ? AND domain = ?",
            (date, domain),
        ).fetchone()

    return DailyCapacity.from_row(row) if row else None


def set_daily_capacity(date: str, domain: str, minutes: int) -> DailyCapacity:
    """Upsert the capacity override for (date, domain)."""
    with closing(get_connection()) as conn:
        conn.execute(
            """
            INSERT INTO daily_capacity (date, domain, minutes)
            VALUES (?, ?, ?)
            ON CONFLICT(date, domain) DO UPDATE SET minutes = excluded.minutes
            """,
            (date, domain, minutes),
        )
        conn.commit()

    return DailyCapacity(date=date, domain=domain, minutes=minutes)


def delete_daily_capacity(date: str, domain: str) -> None:
    with closing(get_connection()) as conn:
        conn.execute(
            "DELETE FROM daily_capacity WHERE date = ? AND domain = ?",
            (date, domain),
        )
        conn.commit()


# --- Wins & Weekly Reviews ---


def create_win(text: str, date: str, tags: List[str], now: Optional[datetime] = None) -> Win:
    with closing(get_connection()) as conn:
        cursor = conn.execute(
            "INSERT INTO wins (text, date, tags, created_at) VALUES (?, ?, ?, ?)",
            (text, date, json.dumps(tags), _timestamp(now)),
        )
        conn.commit()
        row = conn.execute("SELECT * FROM wins WHERE id = ?", (cursor.lastrowid,)).fetchone()

    return Win.from_row(row)


def list_wins(since: Optional[str] = None) -> List[Win]:
    """List wins, newest day first; since is an inclusive YYYY-MM-DD bound."""
    with closing(get_connection()) as conn:
        if since is None:
            rows = conn.execute("SELECT * FROM wins ORDER BY date DESC, id DESC").fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM wins WHERE date >= ? ORDER BY date DESC, id DESC", (since,)
            ).fetchall()

    return [Win.from_row(row) for row in rows]


def delete_win(win_id: int) -> None:
    """
    Delete win by ID.

    Raises:
        WinNotFoundError: If win doesn't exist
    """
    with closing(get_connection()) as conn:
        cursor = conn.execute("DELETE FROM wins WHERE id = ?", (win_id,))
        conn.commit()

    if cursor.rowcount == 0:
        raise WinNotFoundError(win_id)


def create_weekly_review(
    week_start: str,
    friction: str,
    category_focus: str,
    scariest_next_step: str,
    now: Optional[datetime] = None,
) -> WeeklyReview:
    with closing(get_connection()) as conn:
        cursor = conn.execute(
            """
            INSERT INTO weekly_reviews (
                week_start, friction, category_focus, scariest_next_step, created_at
            )
            VALUES (?, ?, ?, ?, ?)
            """,
            (week_start, friction, category_focus, scariest_next_step, _timestamp(now)),
        )
        conn.commit()
        row = conn.execute(
            "SELECT * FROM weekly_reviews WHERE id = ?", (cursor.lastrowid,)
        ).fetchone()

    return WeeklyReview.from_row(row)


def list_weekly_reviews() -> List[WeeklyReview]:
    """Saved reviews, most recently saved first."""
    with closing(get_connection()) as conn:
        rows = conn.execute(
            "SELECT * FROM weekly_reviews ORDER BY created_at DESC, id DESC"
        ).fetchall()

    return [WeeklyReview.from_row(row) for row in rows]
