"""
FILE: stabilizer/core/service.py
PURPOSE: Business logic layer - validation, status transitions, habit logging
EXPORTS:
  Tasks:
  - create_task(title, ...) -> Task
  - get_task(task_id) -> Task
  - list_tasks(domain, status, include_closed) -> List[Task]
  - pin_task / unpin_task / start_task(task_id) -> Task
  - mark_task_done / mark_task_archived / unmark_task_done(task_id) -> Task
  - set_task_pending(task_id, next_action_at, reason) -> Task
  - make_actionable_now(task_id) -> Task
  - transition_due_pending_tasks(now) -> int
  - add_subtask / toggle_subtask / remove_subtask -> Task
  - log_task(title, duration_minutes, day, ...) -> Task
  - delete_task(task_id) -> None
  - set_friction_note(task_id, note) -> Task
  - list_completed_tasks(since) -> List[Task]
  Stack:
  - get_today_stack(domain, max_tasks, now, today) -> StackSplit
  - get_waiting(domain, now) -> List[Task]
  - list_builder_tasks(now) -> List[Task]
  Categories & capacity:
  - create_category / list_categories / get_categories_by_domain / find_category
  - get_capacity / set_daily_capacity / clear_daily_capacity / set_default_minutes
  Habits:
  - create_habit(name, ...) -> Habit
  - get_habit / list_habits / archive_habit / unarchive_habit
  - list_today_habits(today) -> List[Habit]
  - upsert_habit_log(habit_id, day, status, value, note) -> HabitLog
  - get_habit_log(habit_id, day) -> HabitLog | None
  - get_habit_summary(habit_id, range_name, today) -> HabitSummary
  Wins & review:
  - add_win(text, day, tags) -> Win
  - list_wins(search) -> List[Win]
  - get_wins_by_period(period, search) -> List[WinGroup]
  - delete_win(win_id) -> None
  - get_weekly_review(now) -> WeekSummary
  - save_weekly_review(friction, category_focus, scariest_next_step) -> WeeklyReview
  - list_weekly_reviews() -> List[WeeklyReview]
DEPENDENCIES:
  - stabilizer.core.repository (all persistence)
  - stabilizer.core.stack / stabilizer.core.habits / stabilizer.core.review (pure engines)
  - stabilizer.core.exceptions
NOTES:
  - No direct database access (use repository layer)
  - Returns domain objects, never dicts or raw SQL results
  - Every mutating function accepts now= (or today=) so callers control time
  - Undo always lands in BACKLOG, never back in PENDING or TODAY
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from . import repository
from .constants import (
    CLOSED_STATUSES,
    DEFAULT_DOMAIN,
    DEFAULT_MAX_TASKS,
    DEFAULT_PRIORITY,
    DOMAIN_BUSINESS,
    HABIT_CHECK,
    LOG_PARTIAL,
    LOG_SKIP,
    MAX_LOG_DURATION_MINUTES,
    PERIOD_WEEK,
    REVIEW_LOOKBACK_DAYS,
    SCHEDULE_DAILY,
    SCHEDULE_EVERY_N_DAYS,
    SCHEDULE_TIMES_PER_WEEK,
    SCHEDULE_WEEKDAYS,
    STARTABLE_STATUSES,
    STATUS_ARCHIVED,
    STATUS_BACKLOG,
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    STATUS_TODAY,
    VALID_DOMAINS,
    VALID_HABIT_TYPES,
    VALID_LOG_STATUSES,
    VALID_PRIORITIES,
    VALID_RANGES,
    VALID_SCHEDULE_TYPES,
    VALID_STATUSES,
    VALID_WIN_PERIODS,
    WIN_TAGS,
)
from .dates import UTC, ensure_utc, format_day, parse_day, parse_timestamp, to_iso, utc_now
from .exceptions import (
    CategoryNotFoundError,
    HabitNotFoundError,
    InvalidInputError,
    TaskNotFoundError,
)
from .habits import (
    HabitRangeStats,
    get_consistency_stats,
    get_current_streak,
    get_range_dates,
    index_logs_by_date,
    is_habit_scheduled_on_date,
)
from .models import Category, DailyCapacity, Habit, HabitLog, Subtask, Task, WeeklyReview, Win
from .review import (
    WeekSummary,
    WinGroup,
    filter_wins,
    group_wins_by_period,
    period_start,
    summarize_week,
)
from .stack import (
    StackSplit,
    build_stabilizer_stack_split,
    get_effective_minutes,
    get_waiting_tasks,
    is_actionable,
)

logger = logging.getLogger(__name__)


def _now(now: Optional[datetime]) -> datetime:
    return ensure_utc(now) if now is not None else utc_now()


def _today(today: Optional[date]) -> date:
    return today if today is not None else date.today()


def _require_task(task_id: int) -> Task:
    task = repository.get_task(task_id)
    if not task:
        raise TaskNotFoundError(task_id)
    return task


def _validate_domain(domain: str) -> str:
    domain = (domain or "").upper()
    if domain not in VALID_DOMAINS:
        raise InvalidInputError(
            f"Invalid domain '{domain}'. Must be one of: {', '.join(VALID_DOMAINS)}"
        )
    return domain


def _normalize_timestamp(value: Optional[str], field_name: str) -> Optional[str]:
    """Validate an optional date/timestamp argument and store it as ISO UTC."""
    if value is None or not str(value).strip():
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise InvalidInputError(f"Invalid {field_name} '{value}'. Use YYYY-MM-DD or ISO-8601")
    return to_iso(parsed)


def _clean_text(value: Optional[str]) -> Optional[str]:
    return value.strip() if value and value.strip() else None


def _parse_day_arg(value, field_name: str = "date") -> date:
    try:
        return parse_day(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid {field_name} '{value}'. Use YYYY-MM-DD")


# --- Tasks ---


def create_task(
    title: str,
    domain: str = DEFAULT_DOMAIN,
    category_id: Optional[int] = None,
    priority: int = DEFAULT_PRIORITY,
    due_date: Optional[str] = None,
    soft_deadline: Optional[str] = None,
    estimate_minutes: Optional[int] = None,
    money_impact: Optional[float] = None,
    blocked_by_task_ids: Optional[List[int]] = None,
    notes: Optional[str] = None,
    friction_note: Optional[str] = None,
    pinned: bool = False,
    now: Optional[datetime] = None,
) -> Task:
    """
    Create a new task with validation.

    Args:
        title: Task title (required, must not be empty)
        domain: LIFE_ADMIN or BUSINESS
        category_id: Optional category (must exist)
        priority: 1-4, 1 = highest
        due_date / soft_deadline: YYYY-MM-DD or ISO-8601 timestamps
        estimate_minutes: Positive estimate, or None for "unknown"
        blocked_by_task_ids: Ids of existing tasks that block this one
        friction_note: What makes the task hard to start
        pinned: Create straight into TODAY instead of BACKLOG

    Raises:
        InvalidInputError: On empty title or out-of-range fields
        CategoryNotFoundError: If category_id doesn't exist
        TaskNotFoundError: If a blocking task doesn't exist
    """
    title = title.strip()
    if not title:
        raise InvalidInputError("Task title cannot be empty")

    domain = _validate_domain(domain)

    if priority not in VALID_PRIORITIES:
        raise InvalidInputError("Priority must be between 1 and 4")

    if estimate_minutes is not None and estimate_minutes <= 0:
        raise InvalidInputError("Estimate must be a positive number of minutes")

    if money_impact is not None and money_impact < 0:
        raise InvalidInputError("Money impact cannot be negative")

    if category_id is not None and not repository.get_category(category_id):
        raise CategoryNotFoundError(category_id)

    blocked = list(blocked_by_task_ids or [])
    for blocker_id in blocked:
        _require_task(blocker_id)

    task = repository.create_task(
        title=title,
        category_id=category_id,
        domain=domain,
        status=STATUS_TODAY if pinned else STATUS_BACKLOG,
        priority=priority,
        due_date=_normalize_timestamp(due_date, "due date"),
        soft_deadline=_normalize_timestamp(soft_deadline, "soft deadline"),
        blocked_by_task_ids=blocked,
        estimate_minutes=estimate_minutes,
        money_impact=money_impact,
        notes=_clean_text(notes),
        friction_note=_clean_text(friction_note),
        now=now,
    )
    logger.info("Created task %s in %s", task.id, domain)
    return task


def get_task(task_id: int) -> Task:
    """Fetch a task or raise TaskNotFoundError."""
    return _require_task(task_id)


def list_tasks(
    domain: Optional[str] = None,
    status: Optional[str] = None,
    include_closed: bool = False,
) -> List[Task]:
    """
    List tasks with optional filters.

    DONE and ARCHIVED tasks are hidden unless include_closed is set or they
    are asked for explicitly through status.
    """
    if domain is not None:
        domain = _validate_domain(domain)
    if status is not None:
        status = status.upper()
        if status not in VALID_STATUSES:
            raise InvalidInputError(
                f"Invalid status '{status}'. Must be one of: {', '.join(VALID_STATUSES)}"
            )

    tasks = repository.list_tasks(domain=domain, status=status)
    if status is None and not include_closed:
        tasks = [t for t in tasks if t.status not in CLOSED_STATUSES]
    return tasks


def _save(task: Task, now: datetime) -> Task:
    task.updated_at = to_iso(now)
    repository.update_task(task)
    return task


def pin_task(task_id: int, now: Optional[datetime] = None) -> Task:
    """
    Pin a backlog task into today's stack (BACKLOG -> TODAY).

    Pinning an already-pinned task is a no-op.

    Raises:
        TaskNotFoundError: If task_id doesn't exist
        InvalidInputError: If the task is not in BACKLOG
    """
    task = _require_task(task_id)
    if task.status == STATUS_TODAY:
        return task
    if task.status != STATUS_BACKLOG:
        raise InvalidInputError(f"Only backlog tasks can be pinned (task {task_id} is {task.status})")

    task.status = STATUS_TODAY
    logger.info("Task %s pinned", task_id)
    return _save(task, _now(now))


def unpin_task(task_id: int, now: Optional[datetime] = None) -> Task:
    """TODAY -> BACKLOG. Unpinning a backlog task is a no-op."""
    task = _require_task(task_id)
    if task.status == STATUS_BACKLOG:
        return task
    if task.status != STATUS_TODAY:
        raise InvalidInputError(f"Task {task_id} is not pinned")

    task.status = STATUS_BACKLOG
    logger.info("Task %s unpinned", task_id)
    return _save(task, _now(now))


def start_task(task_id: int, now: Optional[datetime] = None) -> Task:
    """
    Start working on a task (BACKLOG/TODAY/PENDING -> IN_PROGRESS).

    Starting a PENDING task clears its follow-up time and reason.
    """
    task = _require_task(task_id)
    if task.status == STATUS_IN_PROGRESS:
        return task
    if task.status not in STARTABLE_STATUSES:
        raise InvalidInputError(f"Task {task_id} is {task.status} and cannot be started")

    if task.status == STATUS_PENDING:
        task.next_action_at = None
        task.pending_reason = None
    task.status = STATUS_IN_PROGRESS
    logger.info("Task %s started", task_id)
    return _save(task, _now(now))


def mark_task_done(task_id: int, now: Optional[datetime] = None) -> Task:
    """
    Mark a task as done from any status.

    Only status, completed_at and updated_at change.
    """
    task = _require_task(task_id)
    stamp = to_iso(_now(now))

    task.status = STATUS_DONE
    task.completed_at = stamp
    task.updated_at = stamp
    repository.update_task(task)

    logger.info("Task %s marked done", task_id)
    return task


def mark_task_archived(task_id: int, now: Optional[datetime] = None) -> Task:
    """Archive a task, keeping its completion time (or stamping one)."""
    task = _require_task(task_id)
    current = _now(now)

    task.status = STATUS_ARCHIVED
    if not task.completed_at:
        task.completed_at = to_iso(current)

    logger.info("Task %s archived", task_id)
    return _save(task, current)


def unmark_task_done(task_id: int, now: Optional[datetime] = None) -> Task:
    """
    Undo completion: DONE/ARCHIVED -> BACKLOG with completed_at cleared.

    Raises:
        InvalidInputError: If the task is not DONE or ARCHIVED
    """
    task = _require_task(task_id)
    if task.status not in CLOSED_STATUSES:
        raise InvalidInputError(f"Task {task_id} is not done")

    task.status = STATUS_BACKLOG
    task.completed_at = None

    logger.info("Task %s returned to backlog", task_id)
    return _save(task, _now(now))


def set_task_pending(
    task_id: int,
    next_action_at: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Task:
    """
    Park a task until next_action_at (any status -> PENDING).

    Raises:
        InvalidInputError: If next_action_at is missing or unparseable
    """
    task = _require_task(task_id)
    stamp = _normalize_timestamp(next_action_at, "follow-up time")
    if stamp is None:
        raise InvalidInputError("A follow-up time is required to mark a task as waiting")

    task.status = STATUS_PENDING
    task.next_action_at = stamp
    task.pending_reason = reason.strip() if reason and reason.strip() else None

    logger.info("Task %s waiting until %s", task_id, stamp)
    return _save(task, _now(now))


def make_actionable_now(task_id: int, now: Optional[datetime] = None) -> Task:
    """PENDING -> BACKLOG immediately, clearing the follow-up fields."""
    task = _require_task(task_id)
    if task.status != STATUS_PENDING:
        raise InvalidInputError(f"Task {task_id} is not waiting")

    task.status = STATUS_BACKLOG
    task.next_action_at = None
    task.pending_reason = None

    logger.info("Task %s made actionable", task_id)
    return _save(task, _now(now))


def transition_due_pending_tasks(now: Optional[datetime] = None) -> int:
    """
    Move every PENDING task whose follow-up time has passed back to BACKLOG.

    Returns:
        Number of tasks transitioned
    """
    current = _now(now)
    count = 0

    for task in repository.list_tasks(status=STATUS_PENDING):
        next_action = parse_timestamp(task.next_action_at)
        if next_action is None or next_action > current:
            continue
        task.status = STATUS_BACKLOG
        _save(task, current)
        count += 1

    if count:
        logger.info("Sweep moved %d pending task(s) to backlog", count)
    return count


def add_subtask(task_id: int, title: str, now: Optional[datetime] = None) -> Task:
    task = _require_task(task_id)
    title = title.strip()
    if not title:
        raise InvalidInputError("Subtask title cannot be empty")

    next_id = max((s.id for s in task.subtasks), default=0) + 1
    task.subtasks.append(Subtask(id=next_id, title=title))
    return _save(task, _now(now))


def _require_subtask(task: Task, subtask_id: int) -> Subtask:
    for subtask in task.subtasks:
        if subtask.id == subtask_id:
            return subtask
    raise InvalidInputError(f"Task {task.id} has no subtask {subtask_id}")


def toggle_subtask(task_id: int, subtask_id: int, now: Optional[datetime] = None) -> Task:
    """
    Flip a subtask's done flag.

    When this leaves every subtask done, an open task is marked DONE as well.
    Reopening a subtask never reopens the task.
    """
    task = _require_task(task_id)
    current = _now(now)

    subtask = _require_subtask(task, subtask_id)
    subtask.done = not subtask.done

    if subtask.done and all(s.done for s in task.subtasks) and task.status not in CLOSED_STATUSES:
        task.status = STATUS_DONE
        task.completed_at = to_iso(current)
        logger.info("Task %s marked done (all subtasks complete)", task_id)

    return _save(task, current)


def remove_subtask(task_id: int, subtask_id: int, now: Optional[datetime] = None) -> Task:
    task = _require_task(task_id)
    subtask = _require_subtask(task, subtask_id)
    task.subtasks.remove(subtask)
    return _save(task, _now(now))


def log_task(
    title: str,
    duration_minutes: int,
    day: Optional[str] = None,
    domain: str = DEFAULT_DOMAIN,
    category_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Task:
    """
    Record work that already happened as a finished task.

    The duration is clamped to 1..480 minutes. The task completes at noon
    UTC of the given day plus the duration.
    """
    title = title.strip()
    if not title:
        raise InvalidInputError("Task title cannot be empty")
    domain = _validate_domain(domain)
    if category_id is not None and not repository.get_category(category_id):
        raise CategoryNotFoundError(category_id)

    current = _now(now)
    worked_on = _parse_day_arg(day) if day else current.date()
    minutes = max(1, min(MAX_LOG_DURATION_MINUTES, int(duration_minutes)))

    completed = datetime.combine(worked_on, time(12, 0), tzinfo=UTC) + timedelta(minutes=minutes)

    task = repository.create_task(
        title=title,
        category_id=category_id,
        domain=domain,
        status=STATUS_DONE,
        estimate_minutes=minutes,
        actual_seconds_total=minutes * 60,
        completed_at=to_iso(completed),
        now=current,
    )
    logger.info("Logged task %s (%d min on %s)", task.id, minutes, format_day(worked_on))
    return task


def delete_task(task_id: int) -> None:
    """
    Permanently delete task.

    Raises:
        TaskNotFoundError: If task_id doesn't exist
    """
    repository.delete_task(task_id)
    logger.info("Task %s deleted", task_id)


def set_friction_note(
    task_id: int,
    note: Optional[str],
    now: Optional[datetime] = None,
) -> Task:
    """Record (or clear, with an empty note) what is making a task hard to start."""
    task = _require_task(task_id)
    task.friction_note = _clean_text(note)
    return _save(task, _now(now))


def list_completed_tasks(since: Optional[str] = None) -> List[Task]:
    """DONE and ARCHIVED tasks, most recently completed first."""
    cutoff = parse_timestamp(since) if since else None
    if since and cutoff is None:
        raise InvalidInputError(f"Invalid date '{since}'. Use YYYY-MM-DD")

    tasks = [t for t in repository.list_tasks() if t.status in CLOSED_STATUSES]
    if cutoff is not None:
        tasks = [
            t for t in tasks
            if parse_timestamp(t.completed_at) and parse_timestamp(t.completed_at) >= cutoff
        ]

    def sort_key(t: Task):
        return parse_timestamp(t.completed_at) or datetime.min.replace(tzinfo=UTC)

    return sorted(tasks, key=sort_key, reverse=True)


# --- Stack ---


def get_today_stack(
    domain: str = DEFAULT_DOMAIN,
    max_tasks: int = DEFAULT_MAX_TASKS,
    now: Optional[datetime] = None,
    today: Optional[date] = None,
) -> StackSplit:
    """
    Build today's stack for a domain from stored records.

    Runs the pending sweep first so elapsed follow-ups compete again. The
    capacity override is looked up on the same calendar day that
    set_daily_capacity writes it under (today=, default the local date).
    """
    domain = _validate_domain(domain)
    if max_tasks < 1:
        raise InvalidInputError("Stack size must be at least 1")

    current = _now(now)
    transition_due_pending_tasks(current)

    minutes = get_capacity(domain, today=today)
    return build_stabilizer_stack_split(
        repository.list_tasks(domain=domain),
        repository.list_categories(),
        minutes,
        max_tasks=max_tasks,
        domain=domain,
        now=current,
    )


def get_waiting(domain: str = DEFAULT_DOMAIN, now: Optional[datetime] = None) -> List[Task]:
    domain = _validate_domain(domain)
    return get_waiting_tasks(repository.list_tasks(domain=domain), domain, _now(now))


def list_builder_tasks(now: Optional[datetime] = None) -> List[Task]:
    """Actionable BUSINESS tasks in creation order, unscored."""
    current = _now(now)
    return [t for t in repository.list_tasks(domain=DOMAIN_BUSINESS) if is_actionable(t, current)]


# --- Categories ---


def create_category(
    name: str,
    kind: str,
    domain: str = DEFAULT_DOMAIN,
    why: str = "",
    win_condition: str = "",
    script: str = "",
) -> Category:
    """
    Create a category. Custom kinds are allowed and carry no weight.

    Raises:
        InvalidInputError: On empty name/kind or a duplicate name
    """
    name = name.strip()
    kind = kind.strip().upper()
    if not name:
        raise InvalidInputError("Category name cannot be empty")
    if not kind:
        raise InvalidInputError("Category kind cannot be empty")
    domain = _validate_domain(domain)

    try:
        category = repository.create_category(name, kind, domain, why, win_condition, script)
    except sqlite3.IntegrityError:
        raise InvalidInputError(f"Category '{name}' already exists")

    logger.info("Created category %s (%s)", name, kind)
    return category


def list_categories() -> List[Category]:
    return repository.list_categories()


def get_categories_by_domain(domain: str) -> List[Category]:
    return repository.list_categories(domain=_validate_domain(domain))


def find_category(name_or_id: str) -> Category:
    """
    Resolve a category from an id or a (case-insensitive) name.

    Raises:
        CategoryNotFoundError: If nothing matches
    """
    value = str(name_or_id).strip()
    category = None
    if value.isdigit():
        category = repository.get_category(int(value))
    if category is None:
        category = repository.get_category_by_name(value)
    if category is None:
        raise CategoryNotFoundError(value)
    return category


# --- Capacity ---


def get_capacity(domain: str = DEFAULT_DOMAIN, today: Optional[date] = None) -> int:
    """Minutes available today for a domain (override, default, or 120)."""
    domain = _validate_domain(domain)
    day = _today(today)
    override = repository.get_daily_capacity(format_day(day), domain)
    return get_effective_minutes(repository.get_app_settings(), override, domain, day)


def set_daily_capacity(
    domain: str,
    minutes: int,
    today: Optional[date] = None,
) -> DailyCapacity:
    domain = _validate_domain(domain)
    if minutes < 0:
        raise InvalidInputError("Capacity cannot be negative")

    day = format_day(_today(today))
    logger.info("Capacity for %s on %s set to %d min", domain, day, minutes)
    return repository.set_daily_capacity(day, domain, minutes)


def clear_daily_capacity(domain: str, today: Optional[date] = None) -> None:
    domain = _validate_domain(domain)
    repository.delete_daily_capacity(format_day(_today(today)), domain)


def set_default_minutes(domain: str, minutes: int) -> None:
    domain = _validate_domain(domain)
    if minutes < 0:
        raise InvalidInputError("Capacity cannot be negative")

    settings = repository.get_app_settings()
    settings.default_minutes[domain] = minutes
    repository.update_app_settings(settings)
    logger.info("Default capacity for %s set to %d min", domain, minutes)


# --- Habits ---


@dataclass
class HabitSummary:
    """Consistency and streak for one habit over a reporting range."""

    habit: Habit
    range_name: str
    range_dates: List[str]
    stats: HabitRangeStats
    streak: int


def create_habit(
    name: str,
    type: str = HABIT_CHECK,
    schedule_type: str = SCHEDULE_DAILY,
    weekdays: Optional[List[int]] = None,
    every_n_days: Optional[int] = None,
    times_per_week: Optional[int] = None,
    goal_target: Optional[float] = None,
    unit: Optional[str] = None,
    start_date: Optional[str] = None,
    show_in_today: bool = True,
    allow_partial: bool = False,
    allow_skip: bool = True,
    color: Optional[str] = None,
    icon: Optional[str] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Habit:
    """
    Create a habit, validating the fields its schedule type needs.

    Raises:
        InvalidInputError: On empty name, unknown type/schedule, or missing
            schedule parameters (weekdays, interval, weekly target)
    """
    name = name.strip()
    if not name:
        raise InvalidInputError("Habit name cannot be empty")

    type = type.upper()
    if type not in VALID_HABIT_TYPES:
        raise InvalidInputError(
            f"Invalid habit type '{type}'. Must be one of: {', '.join(VALID_HABIT_TYPES)}"
        )

    schedule_type = schedule_type.upper()
    if schedule_type not in VALID_SCHEDULE_TYPES:
        raise InvalidInputError(
            f"Invalid schedule '{schedule_type}'. Must be one of: {', '.join(VALID_SCHEDULE_TYPES)}"
        )

    weekdays = sorted(set(weekdays or []))
    if schedule_type == SCHEDULE_WEEKDAYS:
        if not weekdays or any(d < 0 or d > 6 for d in weekdays):
            raise InvalidInputError("Weekday habits need days between 0 (Sunday) and 6 (Saturday)")
    if schedule_type == SCHEDULE_EVERY_N_DAYS and (every_n_days is None or every_n_days < 1):
        raise InvalidInputError("Interval habits need every_n_days of at least 1")
    if schedule_type == SCHEDULE_TIMES_PER_WEEK and (
        times_per_week is None or not 1 <= times_per_week <= 7
    ):
        raise InvalidInputError("Weekly habits need times_per_week between 1 and 7")

    if goal_target is not None and goal_target <= 0:
        raise InvalidInputError("Goal must be positive")

    start = _parse_day_arg(start_date, "start date") if start_date else _today(today)

    habit = Habit(
        id=0,
        name=name,
        start_date=format_day(start),
        type=type,
        schedule_type=schedule_type,
        weekdays=weekdays,
        every_n_days=every_n_days,
        times_per_week=times_per_week,
        goal_target=goal_target,
        unit=unit,
        show_in_today=show_in_today,
        allow_partial=allow_partial,
        allow_skip=allow_skip,
        color=color,
        icon=icon,
        sort_order=repository.next_habit_sort_order(),
    )
    created = repository.create_habit(habit, now=now)
    logger.info("Created habit %s (%s)", created.id, schedule_type)
    return created


def get_habit(habit_id: int) -> Habit:
    habit = repository.get_habit(habit_id)
    if not habit:
        raise HabitNotFoundError(habit_id)
    return habit


def list_habits(archived: bool = False) -> List[Habit]:
    """Active habits by sort order, or archived habits by name."""
    habits = repository.list_habits()
    if archived:
        return sorted((h for h in habits if h.is_archived), key=lambda h: h.name.lower())
    return [h for h in habits if not h.is_archived]


def archive_habit(habit_id: int, now: Optional[datetime] = None) -> Habit:
    habit = get_habit(habit_id)
    if habit.is_archived:
        return habit

    current = to_iso(_now(now))
    habit.archived_at = current
    habit.updated_at = current
    repository.update_habit(habit)
    logger.info("Habit %s archived", habit_id)
    return habit


def unarchive_habit(habit_id: int, now: Optional[datetime] = None) -> Habit:
    habit = get_habit(habit_id)
    if not habit.is_archived:
        return habit

    habit.archived_at = None
    habit.updated_at = to_iso(_now(now))
    repository.update_habit(habit)
    logger.info("Habit %s restored", habit_id)
    return habit


def list_today_habits(today: Optional[date] = None) -> List[Habit]:
    """Active habits shown on the Today view and scheduled for today."""
    day = _today(today)
    return [
        h for h in list_habits()
        if h.show_in_today and is_habit_scheduled_on_date(h, day)
    ]


def upsert_habit_log(
    habit_id: int,
    day: str,
    status: str,
    value: Optional[float] = None,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> HabitLog:
    """
    Record the outcome of a habit for one day, overwriting any earlier log.

    Raises:
        HabitNotFoundError: If habit_id doesn't exist
        InvalidInputError: On unknown status, bad date, a skip on a habit
            that forbids skipping, or a partial check-in that isn't allowed
    """
    habit = get_habit(habit_id)

    status = status.upper()
    if status not in VALID_LOG_STATUSES:
        raise InvalidInputError(
            f"Invalid log status '{status}'. Must be one of: {', '.join(VALID_LOG_STATUSES)}"
        )
    if status == LOG_SKIP and not habit.allow_skip:
        raise InvalidInputError(f"Habit '{habit.name}' cannot be skipped")
    if status == LOG_PARTIAL and habit.type == HABIT_CHECK and not habit.allow_partial:
        raise InvalidInputError(f"Habit '{habit.name}' does not allow partial check-ins")
    if value is not None and value < 0:
        raise InvalidInputError("Value cannot be negative")

    log_day = format_day(_parse_day_arg(day))
    log = repository.upsert_habit_log(habit_id, log_day, status, value, note, now=now)
    logger.info("Habit %s logged %s on %s", habit_id, status, log_day)
    return log


def get_habit_log(habit_id: int, day: str) -> Optional[HabitLog]:
    return repository.get_habit_log(habit_id, format_day(_parse_day_arg(day)))


def get_habit_summary(
    habit_id: int,
    range_name: str,
    today: Optional[date] = None,
) -> HabitSummary:
    """Consistency over a WEEK/MONTH/THREE_MONTHS range plus the current streak."""
    habit = get_habit(habit_id)

    range_name = range_name.upper()
    if range_name not in VALID_RANGES:
        raise InvalidInputError(
            f"Invalid range '{range_name}'. Must be one of: {', '.join(VALID_RANGES)}"
        )

    day = _today(today)
    dates = get_range_dates(range_name, day)
    logs = index_logs_by_date(repository.list_habit_logs(habit_id))

    return HabitSummary(
        habit=habit,
        range_name=range_name,
        range_dates=dates,
        stats=get_consistency_stats(habit, logs, dates),
        streak=get_current_streak(habit, logs, day),
    )


# --- Wins & weekly review ---


def add_win(
    text: str,
    day: Optional[str] = None,
    tags: Optional[List[str]] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Win:
    """
    Log a win that isn't a task.

    Raises:
        InvalidInputError: On empty text, a bad date or an unknown tag
    """
    text = text.strip()
    if not text:
        raise InvalidInputError("Win text cannot be empty")

    worked_on = _parse_day_arg(day) if day else _today(today)

    clean_tags: List[str] = []
    for tag in tags or []:
        tag = tag.strip().lower()
        if tag not in WIN_TAGS:
            raise InvalidInputError(
                f"Invalid tag '{tag}'. Must be one of: {', '.join(WIN_TAGS)}"
            )
        if tag not in clean_tags:
            clean_tags.append(tag)

    win = repository.create_win(text, format_day(worked_on), clean_tags, now=now)
    logger.info("Logged win %s on %s", win.id, win.date)
    return win


def list_wins(search: Optional[str] = None) -> List[Win]:
    return filter_wins(repository.list_wins(), search)


def get_wins_by_period(period: str, search: Optional[str] = None) -> List[WinGroup]:
    """Wins grouped by WEEK/MONTH/QUARTER/YEAR, newest group first."""
    period = period.upper()
    if period not in VALID_WIN_PERIODS:
        raise InvalidInputError(
            f"Invalid period '{period}'. Must be one of: {', '.join(VALID_WIN_PERIODS)}"
        )
    return group_wins_by_period(list_wins(search), period)


def delete_win(win_id: int) -> None:
    repository.delete_win(win_id)
    logger.info("Win %s deleted", win_id)


def get_weekly_review(now: Optional[datetime] = None) -> WeekSummary:
    """Last 7 days of finished tasks and wins, estimate drift and open friction."""
    current = _now(now)
    since = current - timedelta(days=REVIEW_LOOKBACK_DAYS)
    return summarize_week(
        repository.list_tasks(),
        repository.list_wins(since=format_day(since.date())),
        current,
    )


def save_weekly_review(
    friction: str = "",
    category_focus: str = "",
    scariest_next_step: str = "",
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> WeeklyReview:
    """
    Save the review answers under the Sunday that starts this week.

    Raises:
        InvalidInputError: If every answer is empty
    """
    answers = [(a or "").strip() for a in (friction, category_focus, scariest_next_step)]
    if not any(answers):
        raise InvalidInputError("Answer at least one review question")

    week_start = format_day(period_start(_today(today), PERIOD_WEEK))
    review = repository.create_weekly_review(week_start, *answers, now=now)
    logger.info("Saved weekly review for week of %s", week_start)
    return review


def list_weekly_reviews() -> List[WeeklyReview]:
    return repository.list_weekly_reviews()
