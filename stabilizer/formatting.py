"""
FILE: stabilizer/formatting.py
PURPOSE: Shared formatting utilities for CLI and REPL output
EXPORTS:
  - TaskFormatter: Class for formatting tasks
  - HabitFormatter: Class for formatting habits and habit summaries
  - parse_ids: Parse comma-separated IDs
  - parse_weekdays: Parse weekday lists ("1,3,5" or "mon,wed,fri")
DEPENDENCIES:
  - rich (for table formatting)
  - json (for JSON serialization)
  - stabilizer.core.models (Task, Habit)
NOTES:
  - Centralized formatting logic for consistency
  - Used by both CLI and REPL
"""

import json
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional

from rich.table import Table

from .core.constants import CLOSED_STATUSES
from .core.models import Habit, HabitLog, Task

STATUS_STYLES = {
    "BACKLOG": "dim",
    "TODAY": "bright_magenta",
    "IN_PROGRESS": "yellow",
    "PENDING": "blue",
    "DONE": "green",
    "ARCHIVED": "green",
}

WEEKDAY_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


def _short_date(value: Optional[str]) -> str:
    return value[:10] if value else "-"


class TaskFormatter:
    """Centralized task display formatting."""

    @staticmethod
    def create_table(
        tasks: List[Task],
        title: str = "Tasks",
        category_names: Optional[Mapping[int, str]] = None,
        show_status: bool = True,
        show_due: bool = True,
        show_waiting: bool = False,
    ) -> Table:
        """
        Create Rich table for tasks.

        Args:
            tasks: List of tasks to display
            title: Table title
            category_names: id -> name lookup for the category column
            show_status: Whether to show status column
            show_due: Whether to show due/estimate columns
            show_waiting: Whether to show next-action and reason columns

        Returns:
            Rich Table object ready for display
        """
        category_names = category_names or {}

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan", width=6, no_wrap=True)
        table.add_column("Title", style="white")
        if show_status:
            table.add_column("Status", width=12)
        table.add_column("Category", style="yellow", width=12)
        if show_due:
            table.add_column("Due", width=10)
            table.add_column("Est", justify="right", width=5)
        if show_waiting:
            table.add_column("Until", style="blue", width=10)
            table.add_column("Reason", style="dim")

        for task in tasks:
            row = [str(task.id), task.title]
            if show_status:
                style = STATUS_STYLES.get(task.status, "white")
                row.append(f"[{style}]{task.status}[/{style}]")
            row.append(category_names.get(task.category_id, "-") if task.category_id else "-")
            if show_due:
                row.append(_short_date(task.due_date))
                row.append(str(task.estimate_minutes) if task.estimate_minutes else "-")
            if show_waiting:
                row.append(_short_date(task.next_action_at))
                row.append(task.pending_reason or "-")
            table.add_row(*row)

        return table

    @staticmethod
    def to_json_dict(task: Task) -> Dict[str, Any]:
        return asdict(task)

    @staticmethod
    def to_json_array(tasks: List[Task]) -> str:
        """Convert task list to JSON array string."""
        return json.dumps([asdict(t) for t in tasks], indent=2)

    @staticmethod
    def to_raw_lines(tasks: List[Task]) -> List[str]:
        """Convert task list to plain text lines, one per task."""
        lines = []
        for task in tasks:
            marker = "✓" if task.status in CLOSED_STATUSES else " "
            lines.append(f"{task.id}: [{marker}] {task.title}")
        return lines


class HabitFormatter:
    """Habit listings and consistency summaries."""

    @staticmethod
    def describe_schedule(habit: Habit) -> str:
        if habit.schedule_type == "WEEKDAYS":
            return ",".join(WEEKDAY_NAMES[d] for d in habit.weekdays if 0 <= d <= 6)
        if habit.schedule_type == "EVERY_N_DAYS":
            return f"every {habit.every_n_days or 1}d"
        if habit.schedule_type == "TIMES_PER_WEEK":
            return f"{habit.times_per_week or 1}x/week"
        return "daily"

    @staticmethod
    def create_table(
        habits: List[Habit],
        title: str = "Habits",
        logs: Optional[Mapping[int, HabitLog]] = None,
    ) -> Table:
        """
        Create Rich table for habits.

        When logs (habit id -> log) is given, a column shows each habit's
        log status for the day.
        """
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan", width=6, no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Type", style="magenta", width=6)
        table.add_column("Schedule", style="yellow")
        table.add_column("Goal", justify="right")
        if logs is not None:
            table.add_column("Today", width=8)

        for habit in habits:
            goal = "-"
            if habit.goal_target:
                goal = f"{habit.goal_target:g} {habit.unit or ''}".strip()
            row = [
                str(habit.id),
                habit.name,
                habit.type,
                HabitFormatter.describe_schedule(habit),
                goal,
            ]
            if logs is not None:
                log = logs.get(habit.id)
                row.append(log.status if log else "[dim]-[/dim]")
            table.add_row(*row)

        return table

    @staticmethod
    def to_json_array(habits: List[Habit]) -> str:
        return json.dumps([asdict(h) for h in habits], indent=2)

    @staticmethod
    def to_raw_lines(habits: List[Habit]) -> List[str]:
        return [
            f"{h.id}: {h.name} ({HabitFormatter.describe_schedule(h)})" for h in habits
        ]

    @staticmethod
    def summary_dict(summary) -> Dict[str, Any]:
        """JSON-ready view of a service HabitSummary."""
        return {
            "habit_id": summary.habit.id,
            "name": summary.habit.name,
            "range": summary.range_name,
            "start": summary.range_dates[0] if summary.range_dates else None,
            "end": summary.range_dates[-1] if summary.range_dates else None,
            "consistency_pct": summary.stats.consistency_pct,
            "numerator": summary.stats.numerator,
            "denominator": summary.stats.denominator,
            "skips": summary.stats.skips,
            "streak": summary.streak,
        }


def parse_ids(id_string: str) -> List[int]:
    """
    Parse comma-separated IDs.

    Args:
        id_string: Comma-separated string of IDs (e.g., "1,2,3")

    Raises:
        ValueError: If any ID is not a valid integer
    """
    ids = [part.strip() for part in id_string.split(",")]
    return [int(part) for part in ids if part]


def parse_weekdays(value: str) -> List[int]:
    """
    Parse weekdays given as numbers (0 = Sunday) or three-letter names.

    Raises:
        ValueError: On an unknown day
    """
    days = []
    for part in value.split(","):
        part = part.strip().lower()
        if not part:
            continue
        if part.isdigit():
            days.append(int(part))
        elif part[:3] in WEEKDAY_NAMES:
            days.append(WEEKDAY_NAMES.index(part[:3]))
        else:
            raise ValueError(f"Unknown weekday '{part}'")
    return days
