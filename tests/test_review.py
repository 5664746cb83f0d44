"""
Tests for wins grouping and the weekly-review summary helpers.
"""

from datetime import date, datetime, timezone

import pytest

from stabilizer.core.dates import parse_day
from stabilizer.core.models import Task, Win
from stabilizer.core.review import (
    filter_wins,
    get_estimate_mismatches,
    period_label,
    period_start,
    summarize_week,
)

NOW = datetime(2026, 2, 2, 9, 0, tzinfo=timezone.utc)


def make_task(task_id, **fields):
    fields.setdefault("title", f"Task {task_id}")
    return Task(id=task_id, **fields)


def test_period_start_and_label():
    expected = {
        "WEEK": (date(2026, 2, 1), "Week of Feb 1, 2026"),
        "MONTH": (date(2026, 2, 1), "February 2026"),
        "QUARTER": (date(2026, 1, 1), "Q1 2026"),
        "YEAR": (date(2026, 1, 1), "2026"),
    }
    for period, (start, label) in expected.items():
        # 2026-02-04 is a Wednesday
        assert period_start(date(2026, 2, 4), period) == start
        assert period_label(start, period) == label


def test_week_starts_on_sunday():
    assert period_start(date(2026, 2, 1), "WEEK") == date(2026, 2, 1)
    assert period_start(date(2026, 1, 31), "WEEK") == date(2026, 1, 25)
    assert period_start(date(2026, 11, 30), "QUARTER") == date(2026, 10, 1)


def test_filter_wins_matches_text_or_tag():
    wins = [
        Win(id=1, text="Walked to work", date="2026-02-01", tags=["vitality"]),
        Win(id=2, text="Sent invoices", date="2026-02-01", tags=["biz"]),
    ]
    assert [w.id for w in filter_wins(wins, "WALK")] == [1]
    assert [w.id for w in filter_wins(wins, "biz")] == [2]
    assert [w.id for w in filter_wins(wins, "  ")] == [1, 2]


def test_mismatches_skip_untracked_and_open_tasks():
    tasks = [
        make_task(1, status="DONE", estimate_minutes=30, actual_seconds_total=0),
        make_task(2, status="IN_PROGRESS", estimate_minutes=30, actual_seconds_total=3600),
        make_task(3, status="ARCHIVED", estimate_minutes=None, actual_seconds_total=3600),
        make_task(4, status="ARCHIVED", estimate_minutes=20, actual_seconds_total=1530),
    ]
    [only] = get_estimate_mismatches(tasks)
    assert only.task_id == 4
    # 25.5 minutes rounds half up
    assert only.actual_minutes == 26


def test_mismatches_keep_worst_five():
    tasks = [
        make_task(i, status="DONE", estimate_minutes=10, actual_seconds_total=i * 600)
        for i in range(1, 8)
    ]
    assert [m.task_id for m in get_estimate_mismatches(tasks)] == [7, 6, 5, 4, 3]


def test_summarize_week_with_nothing_logged():
    summary = summarize_week([], [], NOW)
    assert summary.since == "2026-01-26T09:00:00+00:00"
    assert summary.completed == []
    assert (summary.total_minutes, summary.total_money) == (0, 0)


# --- Calendar days ---


def test_parse_day_accepts_dates_and_timestamps():
    assert parse_day("2026-02-01") == date(2026, 2, 1)
    assert parse_day(" 2026-02-01 ") == date(2026, 2, 1)
    assert parse_day("2026-02-01T23:30:00Z") == date(2026, 2, 1)
    assert parse_day(datetime(2026, 2, 1, 5, tzinfo=timezone.utc)) == date(2026, 2, 1)


def test_parse_day_rejects_junk():
    for value in ("2026-02-01garbage", "02/01/2026", ""):
        with pytest.raises(ValueError):
            parse_day(value)
