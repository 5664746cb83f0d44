"""
FILE: stabilizer/core/habits.py
PURPOSE: Habit engine - schedules, consistency percentages and streaks
EXPORTS:
  - HabitRangeStats (dataclass)
  - start_of_week_monday(day) -> str
  - get_range_dates(range_name, anchor_date) -> List[str]
  - is_habit_scheduled_on_date(habit, day) -> bool
  - done_equivalent(habit, log) -> float
  - is_log_done(habit, log) -> bool
  - get_consistency_stats(habit, logs_by_date, range_dates) -> HabitRangeStats
  - get_current_streak(habit, logs_by_date, today, lookback_days) -> int
  - index_logs_by_date(logs) -> Dict[str, HabitLog]
DEPENDENCIES:
  - stabilizer.core.models (Habit, HabitLog)
  - stabilizer.core.constants (schedule types, log statuses, ranges)
  - stabilizer.core.dates (calendar-day parsing)
NOTES:
  - Pure functions - no I/O
  - Dates are YYYY-MM-DD strings; weekdays use 0 = Sunday
  - Consistency gives partial numeric credit, streaks require the full goal
  - SKIP logs are neutral: out of the denominator, never break a streak
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .constants import (
    DEFAULT_STREAK_LOOKBACK_DAYS,
    HABIT_CHECK,
    LOG_DONE,
    LOG_PARTIAL,
    LOG_SKIP,
    MAX_STREAK_WEEKS,
    RANGE_MONTH,
    RANGE_THREE_MONTHS,
    RANGE_WEEK,
    SCHEDULE_DAILY,
    SCHEDULE_EVERY_N_DAYS,
    SCHEDULE_TIMES_PER_WEEK,
    SCHEDULE_WEEKDAYS,
    THREE_MONTHS_DAYS,
)
from .dates import format_day, parse_day
from .models import Habit, HabitLog

DayLike = Union[str, date]


@dataclass
class HabitRangeStats:
    """Consistency over a range of dates."""

    consistency_pct: int
    numerator: int
    denominator: int
    skips: int


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _weekday_sunday_zero(day: date) -> int:
    # date.weekday() is Monday = 0; habits use Sunday = 0
    return (day.weekday() + 1) % 7


def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def start_of_week_monday(day: DayLike) -> str:
    """The Monday that starts the week containing day."""
    return format_day(_week_start(parse_day(day)))


def get_range_dates(range_name: str, anchor_date: DayLike) -> List[str]:
    """
    Ordered dates for a reporting range around an anchor day.

    WEEK is the Monday-start week containing the anchor, MONTH is its
    calendar month and THREE_MONTHS is the 90 days ending on the anchor.
    """
    anchor = parse_day(anchor_date)

    if range_name == RANGE_WEEK:
        start = _week_start(anchor)
        return [format_day(start + timedelta(days=i)) for i in range(7)]

    if range_name == RANGE_MONTH:
        first = anchor.replace(day=1)
        if first.month == 12:
            next_first = first.replace(year=first.year + 1, month=1)
        else:
            next_first = first.replace(month=first.month + 1)
        days_in_month = (next_first - first).days
        return [format_day(first + timedelta(days=i)) for i in range(days_in_month)]

    if range_name == RANGE_THREE_MONTHS:
        return [
            format_day(anchor - timedelta(days=i))
            for i in range(THREE_MONTHS_DAYS - 1, -1, -1)
        ]

    raise ValueError(f"Unknown habit range '{range_name}'")


def is_habit_scheduled_on_date(habit: Habit, day: DayLike) -> bool:
    """
    Whether the habit is expected (or, for weekly targets, loggable) on day.

    Nothing is scheduled before the start date. TIMES_PER_WEEK habits are
    eligible every day; their weekly target only matters for the metrics.
    """
    target = parse_day(day)
    start = parse_day(habit.start_date)
    if target < start:
        return False

    if habit.schedule_type == SCHEDULE_DAILY:
        return True

    if habit.schedule_type == SCHEDULE_WEEKDAYS:
        return _weekday_sunday_zero(target) in (habit.weekdays or [])

    if habit.schedule_type == SCHEDULE_EVERY_N_DAYS:
        n = max(1, habit.every_n_days or 1)
        return (target - start).days % n == 0

    return True


def done_equivalent(habit: Habit, log: Optional[HabitLog]) -> float:
    """
    Fractional credit for a log, between 0 and 1.

    DONE, or PARTIAL on a habit that allows it, is full credit. Numeric
    habits with a goal earn value / goal, capped at 1.
    """
    if log is None:
        return 0.0
    if log.status == LOG_DONE:
        return 1.0
    if log.status == LOG_PARTIAL and habit.allow_partial:
        return 1.0
    if habit.type != HABIT_CHECK and log.value is not None and (habit.goal_target or 0) > 0:
        return min(1.0, log.value / habit.goal_target)
    return 0.0


def is_log_done(habit: Habit, log: Optional[HabitLog]) -> bool:
    """Boolean done-ness: full credit only, partial numeric progress is not done."""
    return done_equivalent(habit, log) >= 1


def index_logs_by_date(logs: Iterable[HabitLog]) -> Dict[str, HabitLog]:
    return {log.date: log for log in logs}


def get_consistency_stats(
    habit: Habit,
    logs_by_date: Mapping[str, HabitLog],
    range_dates: Iterable[str],
) -> HabitRangeStats:
    """
    Consistency of a habit over the given dates.

    For TIMES_PER_WEEK habits every Monday-start week in the range adds its
    target to the denominator and the number of done days (capped at the
    target) to the numerator. For all other schedules each scheduled,
    non-skipped date adds one to the denominator.
    """
    numerator = 0
    denominator = 0
    skips = 0

    if habit.schedule_type == SCHEDULE_TIMES_PER_WEEK:
        weeks: Dict[str, List[str]] = {}
        for day in range_dates:
            if not is_habit_scheduled_on_date(habit, day):
                continue
            weeks.setdefault(start_of_week_monday(day), []).append(day)

        target = max(1, habit.times_per_week or 1)
        for days in weeks.values():
            done_count = 0
            for day in days:
                log = logs_by_date.get(day)
                if log is not None and log.status == LOG_SKIP:
                    skips += 1
                if is_log_done(habit, log):
                    done_count += 1
            denominator += target
            numerator += min(target, done_count)
    else:
        for day in range_dates:
            if not is_habit_scheduled_on_date(habit, day):
                continue
            log = logs_by_date.get(day)
            if log is not None and log.status == LOG_SKIP:
                skips += 1
                continue
            denominator += 1
            if done_equivalent(habit, log) >= 1:
                numerator += 1

    pct = 0 if denominator == 0 else _round_half_up(numerator / denominator * 100)
    return HabitRangeStats(
        consistency_pct=pct,
        numerator=numerator,
        denominator=denominator,
        skips=skips,
    )


def get_current_streak(
    habit: Habit,
    logs_by_date: Mapping[str, HabitLog],
    today: DayLike,
    lookback_days: int = DEFAULT_STREAK_LOOKBACK_DAYS,
) -> int:
    """
    Length of the current run of completed days (or weeks).

    Daily-style schedules walk backwards from today: unscheduled and skipped
    days are passed over, the first scheduled miss ends the streak.
    TIMES_PER_WEEK habits walk back week by week and count weeks whose
    done days (within start_date..today) reach the target.
    """
    today_day = parse_day(today)
    start = parse_day(habit.start_date)

    if habit.schedule_type == SCHEDULE_TIMES_PER_WEEK:
        target = max(1, habit.times_per_week or 1)
        streak = 0
        cursor = _week_start(today_day)
        for _ in range(MAX_STREAK_WEEKS):
            week = [cursor + timedelta(days=i) for i in range(7)]
            in_range = [d for d in week if start <= d <= today_day]
            if not in_range:
                break
            done_count = sum(
                1 for d in in_range if is_log_done(habit, logs_by_date.get(format_day(d)))
            )
            if done_count < target:
                break
            streak += 1
            cursor -= timedelta(days=7)
        return streak

    streak = 0
    for offset in range(lookback_days):
        day = today_day - timedelta(days=offset)
        if day < start:
            break
        if not is_habit_scheduled_on_date(habit, day):
            continue
        log = logs_by_date.get(format_day(day))
        if log is not None and log.status == LOG_SKIP:
            continue
        if is_log_done(habit, log):
            streak += 1
            continue
        break
    return streak
