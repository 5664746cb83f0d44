"""
FILE: stabilizer/core/stack.py
PURPOSE: Daily stack builder - scoring and capacity-bounded task selection
EXPORTS:
  - StackSplit (dataclass with pinned and suggested tiers)
  - is_actionable(task, now) -> bool
  - is_waiting(task, now) -> bool
  - category_weight(kind) -> int
  - score_task(task, category_kind, available_minutes_remaining, now) -> float
  - build_stabilizer_stack_split(tasks, categories, available_minutes, ...) -> StackSplit
  - build_stabilizer_stack(tasks, categories, available_minutes, ...) -> List[Task]
  - get_waiting_tasks(tasks, domain, now) -> List[Task]
  - get_effective_minutes(settings, daily_override, domain, today) -> int
DEPENDENCIES:
  - stabilizer.core.models (Task, Category, AppSettings, DailyCapacity)
  - stabilizer.core.constants (weights, bonuses, defaults)
  - stabilizer.core.dates (timestamp parsing)
NOTES:
  - Pure functions - no I/O, no caching, safe to re-invoke on every change
  - "now" is injectable everywhere and defaults to the current UTC time
  - Pinned (status TODAY) tasks bypass scoring, capacity and diversity
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from .constants import (
    DEFAULT_CAPACITY_MINUTES,
    DEFAULT_DOMAIN,
    DEFAULT_MAX_TASKS,
    DUE_SOON_BONUS,
    DUE_SOON_DAYS,
    DUE_WEEK_BONUS,
    DUE_WEEK_DAYS,
    EXCLUDED_SCORE,
    IN_PROGRESS_BONUS,
    KIND_WEIGHTS,
    MAX_PER_KIND,
    MONEY_IMPACT_CAP,
    MONEY_IMPACT_DIVISOR,
    PINNED_BONUS,
    QUICK_WIN_BONUS,
    QUICK_WIN_MINUTES,
    SCORING_DEFAULT_ESTIMATE,
    SELECTION_DEFAULT_ESTIMATE,
    SHORT_TASK_BONUS,
    SHORT_TASK_MINUTES,
    SOFT_DEADLINE_BONUS,
    SOFT_DEADLINE_DAYS,
    STATUS_ARCHIVED,
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    STATUS_TODAY,
)
from .dates import days_between, ensure_utc, parse_day, parse_timestamp, utc_now
from .models import AppSettings, Category, DailyCapacity, Task


@dataclass
class StackSplit:
    """Today's working set: user pins first, algorithmic picks second."""

    pinned: List[Task] = field(default_factory=list)
    suggested: List[Task] = field(default_factory=list)

    def merged(self) -> List[Task]:
        return self.pinned + self.suggested


def _resolve_now(now: Optional[datetime]) -> datetime:
    return ensure_utc(now) if now is not None else utc_now()


def is_waiting(task: Task, now: Optional[datetime] = None) -> bool:
    """PENDING with a follow-up time still in the future."""
    if task.status != STATUS_PENDING:
        return False
    next_action = parse_timestamp(task.next_action_at)
    if next_action is None:
        return False
    return next_action > _resolve_now(now)


def is_actionable(task: Task, now: Optional[datetime] = None) -> bool:
    """
    Whether a task can be worked on right now.

    DONE and ARCHIVED never are; a PENDING task is actionable exactly when it
    is not waiting. Every other status is always actionable.
    """
    if task.status in (STATUS_DONE, STATUS_ARCHIVED):
        return False
    if task.status == STATUS_PENDING:
        return not is_waiting(task, now)
    return True


def category_weight(kind: Optional[str]) -> int:
    return KIND_WEIGHTS.get(kind or "", 0)


def score_task(
    task: Task,
    category_kind: Optional[str],
    available_minutes_remaining: int,
    now: Optional[datetime] = None,
) -> float:
    """
    Additive priority score for a task, or -1 when it must be excluded.

    Exclusions: not actionable, blocked by other tasks, or an estimate that
    exceeds a positive remaining budget. A remaining budget of exactly 0 does
    not exclude anything.

    Pure function - no I/O.
    """
    now = _resolve_now(now)

    if not is_actionable(task, now):
        return EXCLUDED_SCORE
    if task.blocked_by_task_ids:
        return EXCLUDED_SCORE
    if (
        task.estimate_minutes
        and task.estimate_minutes > available_minutes_remaining
        and available_minutes_remaining > 0
    ):
        return EXCLUDED_SCORE

    score: float = category_weight(category_kind)

    due = parse_timestamp(task.due_date)
    if due is not None:
        days = days_between(due, now)
        if days <= DUE_SOON_DAYS:
            score += DUE_SOON_BONUS
        elif days <= DUE_WEEK_DAYS:
            score += DUE_WEEK_BONUS

    soft = parse_timestamp(task.soft_deadline)
    if soft is not None and days_between(soft, now) <= SOFT_DEADLINE_DAYS:
        score += SOFT_DEADLINE_BONUS

    if task.status == STATUS_IN_PROGRESS:
        score += IN_PROGRESS_BONUS
    elif task.status == STATUS_TODAY:
        score += PINNED_BONUS

    estimate = task.estimate_minutes if task.estimate_minutes is not None else SCORING_DEFAULT_ESTIMATE
    if estimate <= QUICK_WIN_MINUTES:
        score += QUICK_WIN_BONUS
    elif estimate <= SHORT_TASK_MINUTES:
        score += SHORT_TASK_BONUS

    if task.money_impact and task.money_impact > 0:
        score += min(MONEY_IMPACT_CAP, task.money_impact / MONEY_IMPACT_DIVISOR)

    return score


def _selection_estimate(task: Task) -> int:
    if task.estimate_minutes is None:
        return SELECTION_DEFAULT_ESTIMATE
    return task.estimate_minutes


def build_stabilizer_stack_split(
    tasks: Iterable[Task],
    categories: Iterable[Category],
    available_minutes: int,
    max_tasks: int = DEFAULT_MAX_TASKS,
    domain: str = DEFAULT_DOMAIN,
    now: Optional[datetime] = None,
) -> StackSplit:
    """
    Select today's working set for one domain.

    Pinned tasks (status TODAY) are taken first, in their original order and
    without any filtering beyond actionability. The remaining slots are
    filled greedily from the highest-scoring tasks:
      - the suggested tier shares a budget of available minus pinned minutes;
        a task that would overflow it is skipped, except when nothing has
        been suggested yet
      - at most two tasks per category kind, unless the candidate pool is not
        larger than the number of free slots

    Pure function - no I/O.
    """
    now = _resolve_now(now)
    kind_by_category: Dict[int, str] = {c.id: c.kind for c in categories}

    pool = [t for t in tasks if t.domain == domain and is_actionable(t, now)]

    pinned = [t for t in pool if t.status == STATUS_TODAY][:max_tasks]
    pinned_minutes = sum(_selection_estimate(t) for t in pinned)

    candidates = [t for t in pool if t.status != STATUS_TODAY]
    scored = [
        (score_task(t, kind_by_category.get(t.category_id), available_minutes, now), t)
        for t in candidates
    ]
    scored = [(s, t) for s, t in scored if s >= 0]
    # sorted() is stable, so ties keep their original order
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)

    slots = max(0, max_tasks - len(pinned))
    budget = max(0, available_minutes - pinned_minutes)
    enforce_diversity = len(scored) > slots

    suggested: List[Task] = []
    kind_count: Dict[str, int] = {}
    used_minutes = 0

    for _, task in scored:
        if len(suggested) >= slots:
            break

        estimate = _selection_estimate(task)
        if used_minutes + estimate > budget and suggested:
            continue

        kind = kind_by_category.get(task.category_id) or ""
        if enforce_diversity and kind_count.get(kind, 0) >= MAX_PER_KIND:
            continue

        suggested.append(task)
        used_minutes += estimate
        kind_count[kind] = kind_count.get(kind, 0) + 1

    return StackSplit(pinned=pinned, suggested=suggested)


def build_stabilizer_stack(
    tasks: Iterable[Task],
    categories: Iterable[Category],
    available_minutes: int,
    max_tasks: int = DEFAULT_MAX_TASKS,
    domain: str = DEFAULT_DOMAIN,
    now: Optional[datetime] = None,
) -> List[Task]:
    """Pinned and suggested tiers concatenated, pinned first."""
    return build_stabilizer_stack_split(
        tasks, categories, available_minutes, max_tasks, domain, now
    ).merged()


def get_waiting_tasks(
    tasks: Iterable[Task],
    domain: str = DEFAULT_DOMAIN,
    now: Optional[datetime] = None,
) -> List[Task]:
    """Waiting tasks of a domain, soonest follow-up first."""
    now = _resolve_now(now)
    waiting = [t for t in tasks if t.domain == domain and is_waiting(t, now)]

    def sort_key(t: Task):
        next_action = parse_timestamp(t.next_action_at)
        # Missing action dates sort last
        return (next_action is None, next_action or now)

    return sorted(waiting, key=sort_key)


def get_effective_minutes(
    settings: Optional[AppSettings],
    daily_override: Optional[DailyCapacity],
    domain: str = DEFAULT_DOMAIN,
    today: Optional[date] = None,
) -> int:
    """Today's override if it is for today, else the domain default, else 120."""
    today = today or date.today()
    if daily_override is not None and parse_day(daily_override.date) == today:
        return daily_override.minutes
    if settings is not None and settings.default_minutes.get(domain) is not None:
        return settings.default_minutes[domain]
    return DEFAULT_CAPACITY_MINUTES
