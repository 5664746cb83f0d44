"""
FILE: stabilizer/core/review.py
PURPOSE: Wins grouping and weekly-review summaries
EXPORTS:
  - WinGroup (dataclass)
  - EstimateMismatch (dataclass)
  - WeekSummary (dataclass)
  - period_start(day, period) -> date
  - period_label(start, period) -> str
  - filter_wins(wins, search) -> List[Win]
  - group_wins_by_period(wins, period) -> List[WinGroup]
  - get_estimate_mismatches(tasks, limit) -> List[EstimateMismatch]
  - summarize_week(tasks, wins, now, lookback_days) -> WeekSummary
DEPENDENCIES:
  - stabilizer.core.models (Task, Win)
  - stabilizer.core.constants (periods, review limits)
  - stabilizer.core.dates
NOTES:
  - Pure functions - no I/O
  - Weeks start on Sunday, matching the habit engine's weekday numbering
  - Groups and the wins inside them are newest first
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from .constants import (
    CLOSED_STATUSES,
    MAX_ESTIMATE_MISMATCHES,
    PERIOD_MONTH,
    PERIOD_QUARTER,
    PERIOD_WEEK,
    REVIEW_LOOKBACK_DAYS,
)
from .dates import UTC, format_day, parse_day, parse_timestamp
from .models import Task, Win


@dataclass
class WinGroup:
    label: str
    start: str
    wins: List[Win] = field(default_factory=list)


@dataclass
class EstimateMismatch:
    """How far a finished task's tracked time drifted from its estimate."""

    task_id: int
    title: str
    estimate_minutes: int
    actual_minutes: int
    ratio: float


@dataclass
class WeekSummary:
    """Everything the weekly review shows before the questions."""

    since: str
    completed: List[Task]
    total_minutes: int
    total_money: float
    other_wins: List[Win]
    mismatches: List[EstimateMismatch]
    open_friction: List[Task]


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def period_start(day: date, period: str) -> date:
    """First day of the week (Sunday), month, quarter or year containing day."""
    if period == PERIOD_WEEK:
        return day - timedelta(days=(day.weekday() + 1) % 7)
    if period == PERIOD_MONTH:
        return day.replace(day=1)
    if period == PERIOD_QUARTER:
        return date(day.year, (day.month - 1) // 3 * 3 + 1, 1)
    return date(day.year, 1, 1)


def period_label(start: date, period: str) -> str:
    if period == PERIOD_WEEK:
        return f"Week of {start:%b} {start.day}, {start.year}"
    if period == PERIOD_MONTH:
        return f"{start:%B} {start.year}"
    if period == PERIOD_QUARTER:
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    return str(start.year)


def filter_wins(wins: Iterable[Win], search: Optional[str]) -> List[Win]:
    """Case-insensitive match on the win text or any of its tags."""
    wins = list(wins)
    query = (search or "").strip().lower()
    if not query:
        return wins
    return [
        w for w in wins
        if query in w.text.lower() or any(query in tag.lower() for tag in w.tags)
    ]


def group_wins_by_period(wins: Iterable[Win], period: str) -> List[WinGroup]:
    groups: Dict[date, WinGroup] = {}
    for win in wins:
        start = period_start(parse_day(win.date), period)
        if start not in groups:
            groups[start] = WinGroup(label=period_label(start, period), start=format_day(start))
        groups[start].wins.append(win)

    for group in groups.values():
        group.wins.sort(key=lambda w: w.date, reverse=True)

    return [groups[start] for start in sorted(groups, reverse=True)]


def get_estimate_mismatches(
    tasks: Iterable[Task],
    limit: int = MAX_ESTIMATE_MISMATCHES,
) -> List[EstimateMismatch]:
    """
    Finished tasks with both an estimate and tracked time, ordered by how
    far actual/estimate is from 1 (worst first).
    """
    mismatches = [
        EstimateMismatch(
            task_id=t.id,
            title=t.title,
            estimate_minutes=t.estimate_minutes,
            actual_minutes=_round_half_up(t.actual_seconds_total / 60),
            ratio=t.actual_seconds_total / 60 / t.estimate_minutes,
        )
        for t in tasks
        if t.status in CLOSED_STATUSES and t.estimate_minutes and t.actual_seconds_total > 0
    ]
    mismatches.sort(key=lambda m: abs(m.ratio - 1), reverse=True)
    return mismatches[:limit]


def summarize_week(
    tasks: List[Task],
    wins: Iterable[Win],
    now: datetime,
    lookback_days: int = REVIEW_LOOKBACK_DAYS,
) -> WeekSummary:
    """Tasks finished and wins logged in the lookback window ending at now."""
    since = now - timedelta(days=lookback_days)

    completed = []
    for task in tasks:
        finished = parse_timestamp(task.completed_at)
        if task.status in CLOSED_STATUSES and finished is not None and finished >= since:
            completed.append(task)
    completed.sort(key=lambda t: parse_timestamp(t.completed_at), reverse=True)

    other_wins = [w for w in wins if parse_timestamp(w.date) >= since]
    other_wins.sort(key=lambda w: w.date, reverse=True)

    return WeekSummary(
        since=since.astimezone(UTC).isoformat(),
        completed=completed,
        total_minutes=_round_half_up(sum(t.actual_seconds_total for t in completed) / 60),
        total_money=sum(
            (t.money_impact for t in completed if t.money_impact and t.money_impact > 0), 0.0
        ),
        other_wins=other_wins,
        mismatches=get_estimate_mismatches(tasks),
        open_friction=[
            t for t in tasks if t.friction_note and t.status not in CLOSED_STATUSES
        ],
    )
