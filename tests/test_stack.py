"""
Tests for the daily stack builder: actionability, scoring and selection.

All tests pin "now" so deadlines are deterministic.
"""

from datetime import date, datetime, timedelta, timezone

from stabilizer.core.models import AppSettings, Category, DailyCapacity, Task
from stabilizer.core.stack import (
    build_stabilizer_stack,
    build_stabilizer_stack_split,
    get_effective_minutes,
    get_waiting_tasks,
    is_actionable,
    is_waiting,
    score_task,
)

NOW = datetime(2026, 2, 2, 9, 0, tzinfo=timezone.utc)

CATEGORIES = [
    Category(id=1, name="Legal", kind="LEGAL"),
    Category(id=2, name="Money", kind="MONEY"),
    Category(id=3, name="Home", kind="MAINTENANCE"),
    Category(id=4, name="Family", kind="CAREGIVER"),
]
LEGAL, MONEY, MAINTENANCE, CAREGIVER = 1, 2, 3, 4


def make_task(task_id, **fields):
    fields.setdefault("title", f"Task {task_id}")
    return Task(id=task_id, **fields)


def iso_in(days):
    return (NOW + timedelta(days=days)).isoformat()


# --- Actionability ---


def test_pending_with_future_action_is_waiting_not_actionable():
    task = make_task(1, status="PENDING", next_action_at=iso_in(2))
    assert is_waiting(task, NOW)
    assert not is_actionable(task, NOW)


def test_pending_with_elapsed_action_is_actionable():
    task = make_task(1, status="PENDING", next_action_at=iso_in(-1))
    assert not is_waiting(task, NOW)
    assert is_actionable(task, NOW)


def test_pending_without_action_time_is_actionable():
    task = make_task(1, status="PENDING")
    assert not is_waiting(task, NOW)
    assert is_actionable(task, NOW)


def test_non_pending_statuses_never_wait():
    for status in ("BACKLOG", "TODAY", "IN_PROGRESS", "DONE", "ARCHIVED"):
        task = make_task(1, status=status, next_action_at=iso_in(5))
        assert not is_waiting(task, NOW)


def test_closed_tasks_are_not_actionable():
    assert not is_actionable(make_task(1, status="DONE"), NOW)
    assert not is_actionable(make_task(2, status="ARCHIVED"), NOW)
    assert is_actionable(make_task(3, status="IN_PROGRESS"), NOW)


# --- Scoring ---


def test_closed_tasks_score_minus_one():
    assert score_task(make_task(1, status="DONE"), "LEGAL", 120, NOW) == -1
    assert score_task(make_task(2, status="ARCHIVED"), "LEGAL", 120, NOW) == -1


def test_blocked_task_scores_minus_one():
    task = make_task(1, blocked_by_task_ids=[7], due_date=iso_in(1), estimate_minutes=5)
    assert score_task(task, "LEGAL", 120, NOW) == -1


def test_estimate_over_remaining_budget_is_excluded():
    task = make_task(1, estimate_minutes=45)
    assert score_task(task, "LEGAL", 30, NOW) == -1


def test_zero_remaining_budget_does_not_exclude():
    task = make_task(1, estimate_minutes=45)
    assert score_task(task, "LEGAL", 0, NOW) == 40


def test_category_weight_ordering():
    task = make_task(1, estimate_minutes=60)
    legal = score_task(task, "LEGAL", 120, NOW)
    money = score_task(task, "MONEY", 120, NOW)
    maintenance = score_task(task, "MAINTENANCE", 120, NOW)
    assert legal > money > maintenance
    assert score_task(task, "SOMETHING_CUSTOM", 120, NOW) == 0
    assert score_task(task, None, 120, NOW) == 0


def test_due_soon_beats_due_later():
    soon = make_task(1, due_date=iso_in(2))
    later = make_task(2, due_date=iso_in(10))
    assert score_task(soon, None, 120, NOW) > score_task(later, None, 120, NOW)


def test_due_this_week_beats_undated():
    dated = make_task(1, due_date=iso_in(5))
    undated = make_task(2)
    assert score_task(dated, None, 120, NOW) > score_task(undated, None, 120, NOW)


def test_overdue_counts_as_due_soon():
    overdue = make_task(1, due_date=iso_in(-4), estimate_minutes=60)
    assert score_task(overdue, None, 120, NOW) == 35


def test_soft_deadline_bonus():
    task = make_task(1, soft_deadline=iso_in(6), estimate_minutes=60)
    assert score_task(task, None, 120, NOW) == 15


def test_status_and_size_bonuses():
    # Missing estimate is treated as 30 minutes when scoring: +8
    assert score_task(make_task(1), "LEGAL", 120, NOW) == 48
    assert score_task(make_task(2, status="IN_PROGRESS"), "LEGAL", 120, NOW) == 68
    assert score_task(make_task(3, status="TODAY"), "LEGAL", 120, NOW) == 98
    assert score_task(make_task(4, estimate_minutes=15), None, 120, NOW) == 12


def test_money_impact_is_capped():
    assert score_task(make_task(1, estimate_minutes=60, money_impact=100), None, 120, NOW) == 5
    assert score_task(make_task(2, estimate_minutes=60, money_impact=5000), None, 120, NOW) == 20
    assert score_task(make_task(3, estimate_minutes=60, money_impact=-50), None, 120, NOW) == 0


def test_date_only_due_date_is_midnight_utc():
    # 2026-02-05T00:00Z is 2.625 days after NOW
    task = make_task(1, due_date="2026-02-05", estimate_minutes=60)
    assert score_task(task, None, 120, NOW) == 35


# --- Selection ---


def end_to_end_tasks():
    return [
        make_task(1, title="Legal", category_id=LEGAL, estimate_minutes=10, due_date=iso_in(2)),
        make_task(2, title="Money", category_id=MONEY, estimate_minutes=10),
        make_task(3, title="Home", category_id=MAINTENANCE, estimate_minutes=10),
    ]


def test_end_to_end_ordering_with_room_for_all():
    split = build_stabilizer_stack_split(end_to_end_tasks(), CATEGORIES, 30, now=NOW)
    assert split.pinned == []
    assert [t.title for t in split.suggested] == ["Legal", "Money", "Home"]


def test_end_to_end_tight_budget_keeps_only_top_task():
    split = build_stabilizer_stack_split(end_to_end_tasks(), CATEGORIES, 15, now=NOW)
    assert [t.title for t in split.suggested] == ["Legal"]


def test_first_suggestion_is_admitted_even_over_budget():
    pinned = make_task(1, status="TODAY", estimate_minutes=30)
    candidate = make_task(2, estimate_minutes=20, category_id=LEGAL)
    split = build_stabilizer_stack_split([pinned, candidate], CATEGORIES, 30, now=NOW)
    # Budget after pins is 0, but the first suggestion always gets in
    assert [t.id for t in split.suggested] == [2]


def test_pinned_minutes_shrink_the_suggestion_budget():
    tasks = [
        make_task(1, status="TODAY", estimate_minutes=45),
        make_task(2, category_id=LEGAL, estimate_minutes=10),
        make_task(3, category_id=MONEY, estimate_minutes=10),
    ]
    split = build_stabilizer_stack_split(tasks, CATEGORIES, 60, now=NOW)
    assert [t.id for t in split.pinned] == [1]
    assert [t.id for t in split.suggested] == [2]


def test_missing_estimate_uses_fifteen_minutes_in_selection():
    tasks = [
        make_task(1, category_id=LEGAL),
        make_task(2, category_id=MONEY),
        make_task(3, category_id=MAINTENANCE),
    ]
    split = build_stabilizer_stack_split(tasks, CATEGORIES, 30, now=NOW)
    assert [t.id for t in split.suggested] == [1, 2]


def test_pinned_tasks_bypass_blocking_capacity_and_diversity():
    tasks = [
        make_task(i, status="TODAY", category_id=LEGAL, estimate_minutes=90, blocked_by_task_ids=[99])
        for i in (1, 2, 3)
    ]
    split = build_stabilizer_stack_split(tasks, CATEGORIES, 30, now=NOW)
    assert [t.id for t in split.pinned] == [1, 2, 3]


def test_pinned_tier_is_capped_at_max_tasks():
    tasks = [make_task(i, status="TODAY") for i in range(1, 8)]
    tasks.append(make_task(20, category_id=LEGAL))
    split = build_stabilizer_stack_split(tasks, CATEGORIES, 600, max_tasks=5, now=NOW)
    assert [t.id for t in split.pinned] == [1, 2, 3, 4, 5]
    assert split.suggested == []


def test_output_never_exceeds_max_tasks():
    tasks = [make_task(i, status="TODAY") for i in (1, 2)]
    tasks += [make_task(i, category_id=(i % 4) + 1, estimate_minutes=5) for i in range(10, 20)]
    merged = build_stabilizer_stack(tasks, CATEGORIES, 600, max_tasks=4, now=NOW)
    assert len(merged) == 4
    assert [t.id for t in merged[:2]] == [1, 2]


def test_suggested_tier_stays_within_budget():
    tasks = [make_task(i, category_id=(i % 4) + 1, estimate_minutes=20) for i in range(1, 9)]
    split = build_stabilizer_stack_split(tasks, CATEGORIES, 50, now=NOW)
    assert sum(t.estimate_minutes for t in split.suggested) <= 50
    assert len(split.suggested) == 2


def test_diversity_cap_limits_two_per_kind():
    tasks = [make_task(i, category_id=LEGAL, estimate_minutes=10) for i in (1, 2, 3)]
    tasks += [make_task(i, category_id=CAREGIVER, estimate_minutes=10) for i in (4, 5, 6)]
    split = build_stabilizer_stack_split(tasks, CATEGORIES, 600, max_tasks=5, now=NOW)
    assert [t.id for t in split.suggested] == [1, 2, 4, 5]


def test_diversity_cap_waived_for_small_pool():
    tasks = [make_task(i, category_id=LEGAL, estimate_minutes=10) for i in (1, 2, 3)]
    split = build_stabilizer_stack_split(tasks, CATEGORIES, 600, max_tasks=5, now=NOW)
    assert [t.id for t in split.suggested] == [1, 2, 3]


def test_ties_keep_original_order():
    tasks = [make_task(i, category_id=MONEY, estimate_minutes=60) for i in (5, 3, 9)]
    split = build_stabilizer_stack_split(tasks, CATEGORIES, 600, max_tasks=2, now=NOW)
    assert [t.id for t in split.suggested] == [5, 3]


def test_selection_filters_domain_and_actionability():
    tasks = [
        make_task(1, domain="BUSINESS", category_id=LEGAL),
        make_task(2, status="DONE", category_id=LEGAL),
        make_task(3, status="PENDING", next_action_at=iso_in(1), category_id=LEGAL),
        make_task(4, status="PENDING", next_action_at=iso_in(-1), category_id=MONEY),
    ]
    split = build_stabilizer_stack_split(tasks, CATEGORIES, 120, now=NOW)
    assert [t.id for t in split.suggested] == [4]

    business = build_stabilizer_stack(tasks, CATEGORIES, 120, domain="BUSINESS", now=NOW)
    assert [t.id for t in business] == [1]


def test_unknown_category_counts_as_zero_weight():
    tasks = [make_task(1, category_id=42, estimate_minutes=60), make_task(2, category_id=LEGAL, estimate_minutes=60)]
    merged = build_stabilizer_stack(tasks, CATEGORIES, 600, now=NOW)
    assert [t.id for t in merged] == [2, 1]


# --- Waiting & capacity ---


def test_waiting_tasks_sorted_by_next_action():
    tasks = [
        make_task(1, status="PENDING", next_action_at=iso_in(5)),
        make_task(2, status="PENDING", next_action_at=iso_in(1)),
        make_task(3, status="PENDING", next_action_at=iso_in(-1)),
        make_task(4, status="PENDING", next_action_at=iso_in(3), domain="BUSINESS"),
        make_task(5, status="BACKLOG"),
    ]
    assert [t.id for t in get_waiting_tasks(tasks, "LIFE_ADMIN", NOW)] == [2, 1]
    assert [t.id for t in get_waiting_tasks(tasks, "BUSINESS", NOW)] == [4]


def test_effective_minutes_prefers_todays_override():
    today = date(2026, 2, 2)
    settings = AppSettings(default_minutes={"LIFE_ADMIN": 90, "BUSINESS": 200})
    override = DailyCapacity(date="2026-02-02", domain="LIFE_ADMIN", minutes=45)
    assert get_effective_minutes(settings, override, "LIFE_ADMIN", today) == 45


def test_effective_minutes_ignores_stale_override():
    today = date(2026, 2, 2)
    settings = AppSettings(default_minutes={"LIFE_ADMIN": 90})
    stale = DailyCapacity(date="2026-02-01", domain="LIFE_ADMIN", minutes=45)
    assert get_effective_minutes(settings, stale, "LIFE_ADMIN", today) == 90


def test_effective_minutes_falls_back_to_120():
    today = date(2026, 2, 2)
    assert get_effective_minutes(None, None, "LIFE_ADMIN", today) == 120
    assert get_effective_minutes(AppSettings(default_minutes={}), None, "BUSINESS", today) == 120
