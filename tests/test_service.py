"""
Tests for the service layer: validation, task lifecycle, capacity, habits,
wins and the weekly review.
"""

# Path setup handled by conftest.py
from dataclasses import asdict
from datetime import date, datetime, timedelta, timezone

import pytest

from stabilizer.core import repository, service
from stabilizer.core.exceptions import (
    CategoryNotFoundError,
    HabitNotFoundError,
    InvalidInputError,
    TaskNotFoundError,
    WinNotFoundError,
)

NOW = datetime(2026, 2, 2, 9, 0, tzinfo=timezone.utc)
TODAY = date(2026, 2, 2)  # a Monday

LEGAL = 1
MONEY = 2


# --- Task creation ---


def test_create_task_validation():
    with pytest.raises(InvalidInputError):
        service.create_task("   ")
    with pytest.raises(InvalidInputError):
        service.create_task("Task", domain="HOBBY")
    with pytest.raises(InvalidInputError):
        service.create_task("Task", priority=5)
    with pytest.raises(InvalidInputError):
        service.create_task("Task", estimate_minutes=0)
    with pytest.raises(InvalidInputError):
        service.create_task("Task", money_impact=-10)
    with pytest.raises(InvalidInputError):
        service.create_task("Task", due_date="next tuesday")
    with pytest.raises(CategoryNotFoundError):
        service.create_task("Task", category_id=99)
    with pytest.raises(TaskNotFoundError):
        service.create_task("Task", blocked_by_task_ids=[99])

    assert service.list_tasks() == []


def test_create_task_normalizes_fields():
    task = service.create_task(
        "  Renew passport  ",
        domain="business",
        category_id=LEGAL,
        due_date="2026-02-10",
        notes="   ",
        pinned=True,
        now=NOW,
    )

    assert task.title == "Renew passport"
    assert task.domain == "BUSINESS"
    assert task.status == "TODAY"
    assert task.due_date == "2026-02-10T00:00:00+00:00"
    assert task.notes is None


def test_list_tasks_hides_closed_by_default():
    open_task = service.create_task("Open")
    closed = service.create_task("Closed")
    service.mark_task_done(closed.id, now=NOW)

    assert [t.id for t in service.list_tasks()] == [open_task.id]
    assert len(service.list_tasks(include_closed=True)) == 2
    assert [t.id for t in service.list_tasks(status="done")] == [closed.id]

    with pytest.raises(InvalidInputError):
        service.list_tasks(status="SOMEDAY")


# --- Lifecycle ---


def test_done_then_undo_returns_to_backlog():
    task = service.create_task("Call the bank", pinned=True)

    done = service.mark_task_done(task.id, now=NOW)
    assert done.status == "DONE"
    assert done.completed_at == "2026-02-02T09:00:00+00:00"

    undone = service.unmark_task_done(task.id, now=NOW)
    assert undone.status == "BACKLOG"
    assert undone.completed_at is None

    with pytest.raises(InvalidInputError):
        service.unmark_task_done(task.id)


def test_mark_done_changes_only_completion_fields():
    blocker = service.create_task("Blocker")
    task = service.create_task(
        "Fix roof",
        category_id=MONEY,
        priority=1,
        estimate_minutes=45,
        money_impact=300,
        blocked_by_task_ids=[blocker.id],
        notes="Ask the neighbour",
    )
    service.add_subtask(task.id, "Buy shingles")
    before = asdict(service.get_task(task.id))

    service.mark_task_done(task.id, now=NOW + timedelta(hours=1))
    after = asdict(service.get_task(task.id))

    changed = {key for key in before if before[key] != after[key]}
    assert changed == {"status", "completed_at", "updated_at"}


def test_archive_keeps_completion_time():
    task = service.create_task("Shred papers")
    service.mark_task_done(task.id, now=NOW)

    archived = service.mark_task_archived(task.id, now=NOW + timedelta(days=3))
    assert archived.status == "ARCHIVED"
    assert archived.completed_at == "2026-02-02T09:00:00+00:00"

    fresh = service.create_task("Old idea")
    assert service.mark_task_archived(fresh.id, now=NOW).completed_at is not None


def test_undo_after_archive_lands_in_backlog():
    """Pinned or waiting, a done-then-archived task reopens into BACKLOG."""
    pinned = service.create_task("Renew licence", pinned=True)
    waiting = service.create_task("Collect photos")
    service.set_task_pending(waiting.id, "2026-02-10", reason="Photo booth closed")

    for task in (pinned, waiting):
        service.mark_task_done(task.id, now=NOW)
        archived = service.mark_task_archived(task.id, now=NOW + timedelta(days=2))
        assert archived.completed_at == "2026-02-02T09:00:00+00:00"

        reopened = service.unmark_task_done(task.id, now=NOW + timedelta(days=3))
        assert reopened.status == "BACKLOG"
        assert reopened.completed_at is None
        assert service.get_task(task.id).status == "BACKLOG"


def test_pin_and_unpin():
    task = service.create_task("Pay bill")

    assert service.pin_task(task.id).status == "TODAY"
    assert service.pin_task(task.id).status == "TODAY"
    assert service.unpin_task(task.id).status == "BACKLOG"

    service.start_task(task.id)
    with pytest.raises(InvalidInputError):
        service.pin_task(task.id)
    with pytest.raises(InvalidInputError):
        service.unpin_task(task.id)
    with pytest.raises(TaskNotFoundError):
        service.pin_task(999)


def test_start_clears_pending_fields():
    task = service.create_task("Follow up with clinic")
    service.set_task_pending(task.id, "2026-02-05T10:00:00Z", reason="Waiting on callback")

    started = service.start_task(task.id, now=NOW)
    assert started.status == "IN_PROGRESS"
    assert started.next_action_at is None
    assert started.pending_reason is None

    service.mark_task_done(task.id)
    with pytest.raises(InvalidInputError):
        service.start_task(task.id)


def test_pending_requires_valid_time():
    task = service.create_task("Chase invoice")
    with pytest.raises(InvalidInputError):
        service.set_task_pending(task.id, "")
    with pytest.raises(InvalidInputError):
        service.set_task_pending(task.id, "whenever")


def test_make_actionable_now():
    task = service.create_task("Insurance claim")
    pending = service.set_task_pending(task.id, "2026-03-01", reason="Adjuster visit")
    assert pending.status == "PENDING"
    assert pending.next_action_at == "2026-03-01T00:00:00+00:00"

    ready = service.make_actionable_now(task.id, now=NOW)
    assert ready.status == "BACKLOG"
    assert ready.next_action_at is None
    assert ready.pending_reason is None

    with pytest.raises(InvalidInputError):
        service.make_actionable_now(task.id)


def test_sweep_moves_only_elapsed_pending_tasks():
    due = service.create_task("Due")
    later = service.create_task("Later")
    service.set_task_pending(due.id, "2026-02-02T08:00:00Z")
    service.set_task_pending(later.id, "2026-02-02T10:00:00Z")

    assert service.transition_due_pending_tasks(now=NOW) == 1
    assert service.get_task(due.id).status == "BACKLOG"
    # reason and follow-up time are left for the record
    assert service.get_task(due.id).next_action_at == "2026-02-02T08:00:00+00:00"
    assert service.get_task(later.id).status == "PENDING"

    assert service.transition_due_pending_tasks(now=NOW) == 0


# --- Subtasks ---


def test_completing_all_subtasks_completes_task():
    task = service.create_task("Move house")
    service.add_subtask(task.id, "Pack")
    service.add_subtask(task.id, "Book van")

    first = service.toggle_subtask(task.id, 1, now=NOW)
    assert first.status == "BACKLOG"

    second = service.toggle_subtask(task.id, 2, now=NOW)
    assert second.status == "DONE"
    assert second.completed_at == "2026-02-02T09:00:00+00:00"

    reopened = service.toggle_subtask(task.id, 2)
    assert reopened.subtasks[1].done is False
    assert reopened.status == "DONE"


def test_subtask_ids_and_removal():
    task = service.create_task("Taxes")
    service.add_subtask(task.id, "Gather receipts")
    service.add_subtask(task.id, "Fill form")
    service.remove_subtask(task.id, 1)
    updated = service.add_subtask(task.id, "Submit")

    assert [(s.id, s.title) for s in updated.subtasks] == [(2, "Fill form"), (3, "Submit")]

    with pytest.raises(InvalidInputError):
        service.toggle_subtask(task.id, 1)
    with pytest.raises(InvalidInputError):
        service.add_subtask(task.id, " ")


# --- Logging past work ---


def test_log_task_records_finished_work():
    task = service.log_task("Sorted mail", 45, day="2026-02-01", category_id=MONEY, now=NOW)

    assert task.status == "DONE"
    assert task.estimate_minutes == 45
    assert task.actual_seconds_total == 45 * 60
    assert task.completed_at == "2026-02-01T12:45:00+00:00"
    assert task.created_at == "2026-02-02T09:00:00+00:00"


def test_log_task_clamps_duration():
    long_task = service.log_task("Marathon admin", 600, day="2026-02-01")
    short_task = service.log_task("Quick call", 0, day="2026-02-01")

    assert long_task.estimate_minutes == 480
    assert long_task.completed_at == "2026-02-01T20:00:00+00:00"
    assert short_task.estimate_minutes == 1

    with pytest.raises(InvalidInputError):
        service.log_task("Bad day", 30, day="yesterday")


def test_completed_tasks_most_recent_first():
    older = service.log_task("Older", 30, day="2026-01-30")
    newer = service.log_task("Newer", 60, day="2026-02-01")
    latest = service.create_task("Latest")
    service.mark_task_done(latest.id, now=NOW)
    service.create_task("Still open")

    assert [t.id for t in service.list_completed_tasks()] == [latest.id, newer.id, older.id]
    assert [t.id for t in service.list_completed_tasks(since="2026-02-01")] == [latest.id, newer.id]

    with pytest.raises(InvalidInputError):
        service.list_completed_tasks(since="last week")


def test_delete_task():
    task = service.create_task("Temp")
    service.delete_task(task.id)
    with pytest.raises(TaskNotFoundError):
        service.get_task(task.id)
    with pytest.raises(TaskNotFoundError):
        service.delete_task(task.id)


# --- Stack ---


def test_today_stack_sweeps_pending_first():
    task = service.create_task("Call lawyer", category_id=LEGAL, estimate_minutes=30)
    service.set_task_pending(task.id, "2026-02-02T08:00:00Z")

    split = service.get_today_stack(now=NOW)

    assert [t.id for t in split.suggested] == [task.id]
    assert service.get_task(task.id).status == "BACKLOG"


def test_today_stack_uses_capacity_and_domain():
    pinned = service.create_task("Pinned", category_id=LEGAL, estimate_minutes=20, pinned=True)
    big = service.create_task("Big", category_id=LEGAL, estimate_minutes=40)
    small = service.create_task("Small", category_id=MONEY, estimate_minutes=10)
    service.create_task("Business", domain="BUSINESS", estimate_minutes=5)
    service.set_daily_capacity("LIFE_ADMIN", 35, today=TODAY)

    split = service.get_today_stack(now=NOW, today=TODAY)

    assert [t.id for t in split.pinned] == [pinned.id]
    # big is over the 35 minute capacity, small fits in the 15 left after pinning
    assert [t.id for t in split.suggested] == [small.id]
    assert big.id not in [t.id for t in split.suggested]

    with pytest.raises(InvalidInputError):
        service.get_today_stack(max_tasks=0)


def test_today_stack_reads_override_for_local_day():
    for title in ("A", "B", "C"):
        service.create_task(title, estimate_minutes=30)
    service.set_daily_capacity("LIFE_ADMIN", 30, today=TODAY)

    # 01:00 UTC on the next calendar day, still TODAY on the local clock
    next_utc_day = datetime(2026, 2, 3, 1, 0, tzinfo=timezone.utc)
    split = service.get_today_stack(now=next_utc_day, today=TODAY)

    assert len(split.suggested) == 1
    assert service.get_capacity(today=TODAY) == 30


def test_today_stack_defaults_to_the_same_day_as_capacity(monkeypatch):
    monkeypatch.setattr(service, "_today", lambda today: today or TODAY)
    for title in ("A", "B", "C"):
        service.create_task(title, estimate_minutes=30)
    service.set_daily_capacity("LIFE_ADMIN", 30)

    split = service.get_today_stack(now=datetime(2026, 2, 3, 1, 0, tzinfo=timezone.utc))
    assert len(split.suggested) == 1


def test_waiting_and_builder_lists():
    a = service.create_task("Await refund")
    b = service.create_task("Await reply")
    service.set_task_pending(a.id, "2026-02-09")
    service.set_task_pending(b.id, "2026-02-03")
    build = service.create_task("Ship landing page", domain="BUSINESS")
    blocked = service.create_task("Launch", domain="BUSINESS")
    service.mark_task_done(blocked.id)

    assert [t.id for t in service.get_waiting(now=NOW)] == [b.id, a.id]
    assert service.get_waiting("BUSINESS", now=NOW) == []
    assert [t.id for t in service.list_builder_tasks(now=NOW)] == [build.id]


# --- Categories & capacity ---


def test_seeded_categories_and_duplicates():
    names = [c.name for c in service.list_categories()]
    assert names == ["LEGAL", "MONEY", "MAINTENANCE", "CAREGIVER"]

    custom = service.create_category("Clients", "client", domain="BUSINESS")
    assert custom.kind == "CLIENT"
    assert [c.id for c in service.get_categories_by_domain("BUSINESS")] == [custom.id]

    with pytest.raises(InvalidInputError):
        service.create_category("LEGAL", "LEGAL")
    with pytest.raises(InvalidInputError):
        service.create_category("Empty", " ")


def test_find_category_by_name_or_id():
    assert service.find_category("money").id == MONEY
    assert service.find_category("1").name == "LEGAL"
    with pytest.raises(CategoryNotFoundError):
        service.find_category("hobbies")


def test_capacity_resolution():
    assert service.get_capacity(today=TODAY) == 120

    service.set_default_minutes("business", 60)
    assert service.get_capacity("BUSINESS", today=TODAY) == 60

    service.set_daily_capacity("LIFE_ADMIN", 30, today=TODAY)
    assert service.get_capacity("LIFE_ADMIN", today=TODAY) == 30
    assert service.get_capacity("LIFE_ADMIN", today=TODAY + timedelta(days=1)) == 120

    service.clear_daily_capacity("LIFE_ADMIN", today=TODAY)
    assert service.get_capacity("LIFE_ADMIN", today=TODAY) == 120

    with pytest.raises(InvalidInputError):
        service.set_daily_capacity("LIFE_ADMIN", -5)


# --- Habits ---


def test_create_habit_validation():
    with pytest.raises(InvalidInputError):
        service.create_habit("")
    with pytest.raises(InvalidInputError):
        service.create_habit("Run", type="distance")
    with pytest.raises(InvalidInputError):
        service.create_habit("Run", schedule_type="monthly")
    with pytest.raises(InvalidInputError):
        service.create_habit("Run", schedule_type="WEEKDAYS")
    with pytest.raises(InvalidInputError):
        service.create_habit("Run", schedule_type="WEEKDAYS", weekdays=[7])
    with pytest.raises(InvalidInputError):
        service.create_habit("Run", schedule_type="EVERY_N_DAYS", every_n_days=0)
    with pytest.raises(InvalidInputError):
        service.create_habit("Run", schedule_type="TIMES_PER_WEEK", times_per_week=8)
    with pytest.raises(InvalidInputError):
        service.create_habit("Run", type="COUNT", goal_target=0)
    with pytest.raises(InvalidInputError):
        service.create_habit("Run", start_date="soon")

    assert service.list_habits() == []


def test_create_habit_defaults():
    habit = service.create_habit("Meditate", today=TODAY)
    second = service.create_habit(
        "Gym", schedule_type="weekdays", weekdays=[5, 1, 3, 1], start_date="2026-01-05"
    )

    assert habit.start_date == "2026-02-02"
    assert habit.type == "CHECK"
    assert habit.schedule_type == "DAILY"
    assert second.weekdays == [1, 3, 5]
    assert second.sort_order > habit.sort_order


def test_habit_log_rules():
    strict = service.create_habit("Pills", allow_skip=False, start_date="2026-02-01")
    water = service.create_habit("Water", type="count", goal_target=8, unit="glasses",
                                 start_date="2026-02-01")

    with pytest.raises(InvalidInputError):
        service.upsert_habit_log(strict.id, "2026-02-02", "SKIP")
    with pytest.raises(InvalidInputError):
        service.upsert_habit_log(strict.id, "2026-02-02", "PARTIAL")
    with pytest.raises(InvalidInputError):
        service.upsert_habit_log(strict.id, "2026-02-02", "MAYBE")
    with pytest.raises(InvalidInputError):
        service.upsert_habit_log(strict.id, "02/02/2026", "DONE")
    with pytest.raises(InvalidInputError):
        service.upsert_habit_log(water.id, "2026-02-02", "PARTIAL", value=-1)
    with pytest.raises(HabitNotFoundError):
        service.upsert_habit_log(999, "2026-02-02", "DONE")

    log = service.upsert_habit_log(water.id, "2026-02-02", "partial", value=3)
    assert log.status == "PARTIAL"
    assert log.value == 3

    again = service.upsert_habit_log(water.id, "2026-02-02", "DONE", value=8, note="hit it")
    assert again.id == log.id
    assert service.get_habit_log(water.id, "2026-02-02").note == "hit it"
    assert service.get_habit_log(water.id, "2026-02-03") is None


def test_today_habits_respect_schedule_and_visibility():
    daily = service.create_habit("Journal", start_date="2026-01-01")
    service.create_habit("Secret", show_in_today=False, start_date="2026-01-01")
    service.create_habit("Tuesdays", schedule_type="WEEKDAYS", weekdays=[2], start_date="2026-01-01")
    service.create_habit("Future", start_date="2026-03-01")
    archived = service.create_habit("Old", start_date="2026-01-01")
    service.archive_habit(archived.id, now=NOW)

    assert [h.id for h in service.list_today_habits(today=TODAY)] == [daily.id]


def test_archive_and_restore_habit():
    zebra = service.create_habit("Zebra")
    apple = service.create_habit("apple")
    service.archive_habit(zebra.id, now=NOW)
    service.archive_habit(apple.id, now=NOW)

    assert service.list_habits() == []
    assert [h.name for h in service.list_habits(archived=True)] == ["apple", "Zebra"]

    restored = service.unarchive_habit(zebra.id)
    assert restored.archived_at is None
    assert [h.id for h in service.list_habits()] == [zebra.id]

    with pytest.raises(HabitNotFoundError):
        service.archive_habit(999)


def test_habit_summary():
    habit = service.create_habit("Walk", start_date="2026-02-02")
    for day, status in (
        ("2026-02-02", "DONE"),
        ("2026-02-03", "SKIP"),
        ("2026-02-06", "DONE"),
        ("2026-02-07", "DONE"),
        ("2026-02-08", "DONE"),
    ):
        service.upsert_habit_log(habit.id, day, status)

    summary = service.get_habit_summary(habit.id, "week", today=date(2026, 2, 8))

    assert summary.range_name == "WEEK"
    assert summary.range_dates[0] == "2026-02-02"
    assert (summary.stats.numerator, summary.stats.denominator) == (4, 6)
    assert summary.stats.skips == 1
    assert summary.stats.consistency_pct == 67
    assert summary.streak == 3

    with pytest.raises(InvalidInputError):
        service.get_habit_summary(habit.id, "YEAR")


# --- Friction ---


def test_friction_note_set_and_clear():
    task = service.create_task("Call insurer", friction_note="  Hate phone calls ")
    assert task.friction_note == "Hate phone calls"

    service.set_friction_note(task.id, "Need the policy number", now=NOW)
    assert service.get_task(task.id).friction_note == "Need the policy number"

    assert service.set_friction_note(task.id, "  ").friction_note is None

    with pytest.raises(TaskNotFoundError):
        service.set_friction_note(999, "Anything")


# --- Wins ---


def test_add_win_validation():
    with pytest.raises(InvalidInputError):
        service.add_win("   ")
    with pytest.raises(InvalidInputError):
        service.add_win("Ran 5k", tags=["fitness"])
    with pytest.raises(InvalidInputError):
        service.add_win("Ran 5k", day="2026-02-01garbage")


def test_add_win_defaults_and_tags():
    win = service.add_win(" Closed first client ", tags=["BIZ", "life", "biz"], today=TODAY)
    assert win.text == "Closed first client"
    assert win.date == "2026-02-02"
    assert win.tags == ["biz", "life"]

    dated = service.add_win("Fixed the gate", day="2026-01-30")
    assert dated.date == "2026-01-30"
    assert [w.id for w in service.list_wins()] == [win.id, dated.id]


def test_wins_grouped_by_period():
    service.add_win("Paid off card", day="2025-12-30", tags=["life"])
    service.add_win("Slept 8 hours", day="2026-01-31", tags=["vitality"])
    service.add_win("Launched site", day="2026-02-01", tags=["biz"])
    service.add_win("Helped at food bank", day="2026-02-03", tags=["community"])

    weeks = service.get_wins_by_period("week")
    assert [g.label for g in weeks] == [
        "Week of Feb 1, 2026",
        "Week of Jan 25, 2026",
        "Week of Dec 28, 2025",
    ]
    assert [w.text for w in weeks[0].wins] == ["Helped at food bank", "Launched site"]

    months = service.get_wins_by_period("MONTH")
    assert [g.label for g in months] == ["February 2026", "January 2026", "December 2025"]

    quarters = service.get_wins_by_period("QUARTER")
    assert [(g.label, len(g.wins)) for g in quarters] == [("Q1 2026", 3), ("Q4 2025", 1)]

    years = service.get_wins_by_period("YEAR")
    assert [g.start for g in years] == ["2026-01-01", "2025-01-01"]

    searched = service.get_wins_by_period("YEAR", search="BIZ")
    assert [w.text for g in searched for w in g.wins] == ["Launched site"]

    with pytest.raises(InvalidInputError):
        service.get_wins_by_period("DECADE")


def test_delete_win():
    win = service.add_win("Cleared inbox")
    service.delete_win(win.id)
    assert service.list_wins() == []
    with pytest.raises(WinNotFoundError):
        service.delete_win(win.id)


# --- Weekly review ---


def test_weekly_review_summary():
    logged = service.log_task("Filed claim", 45, day="2026-01-30")
    old = service.log_task("Old filing", 20, day="2026-01-10")
    slow = service.create_task("Tax form", estimate_minutes=30, money_impact=150)
    quick = service.create_task("Sell bike", estimate_minutes=60, money_impact=80)
    for task, seconds, hours_ago in ((slow, 5400, 1), (quick, 1800, 2)):
        task.actual_seconds_total = seconds
        repository.update_task(task)
        service.mark_task_done(task.id, now=NOW - timedelta(hours=hours_ago))

    stuck = service.create_task("Call insurer", friction_note="Hate phone calls")
    service.set_friction_note(slow.id, "Confusing form")

    service.add_win("Fixed the gate", day="2026-01-27")
    service.add_win("Too long ago", day="2026-01-26")

    summary = service.get_weekly_review(now=NOW)

    assert summary.since == "2026-01-26T09:00:00+00:00"
    assert [t.id for t in summary.completed] == [slow.id, quick.id, logged.id]
    assert summary.total_minutes == 165
    assert summary.total_money == 230
    assert [w.text for w in summary.other_wins] == ["Fixed the gate"]
    # worst drift first; the two exact logs tie at the end in id order
    assert [m.task_id for m in summary.mismatches] == [slow.id, quick.id, logged.id, old.id]
    assert (summary.mismatches[0].actual_minutes, summary.mismatches[0].ratio) == (90, 3.0)
    assert [t.id for t in summary.open_friction] == [stuck.id]


def test_save_weekly_review():
    with pytest.raises(InvalidInputError):
        service.save_weekly_review(" ", "", "")

    first = service.save_weekly_review(
        friction="Phone calls", today=TODAY, now=NOW - timedelta(days=7)
    )
    assert first.week_start == "2026-02-01"
    assert (first.category_focus, first.scariest_next_step) == ("", "")

    second = service.save_weekly_review(
        category_focus="LEGAL", scariest_next_step="Find the form", today=TODAY, now=NOW
    )
    assert [r.id for r in service.list_weekly_reviews()] == [second.id, first.id]
