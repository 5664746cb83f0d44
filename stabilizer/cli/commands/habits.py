"""
FILE: stabilizer/cli/commands/habits.py
PURPOSE: Habit commands (habit add, ls, log, stats, archive, unarchive)
"""

import json
from datetime import date
from typing import Optional

import typer

from ..main import console, error_console, habit_app, print_json
from ...core import service
from ...core.constants import HABIT_CHECK, LOG_DONE, RANGE_WEEK, SCHEDULE_DAILY
from ...core.dates import format_day
from ...core.exceptions import HabitNotFoundError, InvalidInputError, StabilizerError
from ...formatting import HabitFormatter, parse_weekdays


@habit_app.command("add")
def habit_add(
    name: str = typer.Argument(..., help="Habit name"),
    habit_type: str = typer.Option(HABIT_CHECK, "--type", "-t", help="CHECK, COUNT or TIME"),
    schedule: str = typer.Option(
        SCHEDULE_DAILY, "--schedule", "-s", help="DAILY, WEEKDAYS, EVERY_N_DAYS or TIMES_PER_WEEK"
    ),
    days: Optional[str] = typer.Option(None, "--days", help="Weekdays, e.g. 'mon,wed,fri' or '1,3,5' (0 = Sunday)"),
    every: Optional[int] = typer.Option(None, "--every", help="Interval in days for EVERY_N_DAYS"),
    per_week: Optional[int] = typer.Option(None, "--per-week", help="Target for TIMES_PER_WEEK"),
    goal: Optional[float] = typer.Option(None, "--goal", help="Daily goal for COUNT/TIME habits"),
    unit: Optional[str] = typer.Option(None, "--unit", help="Unit label for the goal"),
    start: Optional[str] = typer.Option(None, "--start", help="Start date (YYYY-MM-DD, default today)"),
    partial: bool = typer.Option(False, "--partial", help="Allow partial check-ins"),
    no_skip: bool = typer.Option(False, "--no-skip", help="Disallow skipping"),
    hidden: bool = typer.Option(False, "--hidden", help="Keep out of the Today view"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Create a habit.

    Example:
        stabilizer habit add "Walk" --schedule WEEKDAYS --days mon,wed,fri
        stabilizer habit add "Read" --type COUNT --goal 20 --unit pages
        stabilizer habit add "Gym" --schedule TIMES_PER_WEEK --per-week 3
    """
    try:
        try:
            weekdays = parse_weekdays(days) if days else None
        except ValueError as e:
            raise InvalidInputError(str(e))

        habit = service.create_habit(
            name,
            type=habit_type,
            schedule_type=schedule,
            weekdays=weekdays,
            every_n_days=every,
            times_per_week=per_week,
            goal_target=goal,
            unit=unit,
            start_date=start,
            show_in_today=not hidden,
            allow_partial=partial,
            allow_skip=not no_skip,
        )

        if json_output:
            print_json(habit.to_json())
        else:
            console.print(
                f"[green]✓ Created habit [bold]#{habit.id}[/bold]:[/green] {habit.name} "
                f"[dim]({HabitFormatter.describe_schedule(habit)})[/dim]"
            )

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@habit_app.command("ls")
def habit_ls(
    archived: bool = typer.Option(False, "--archived", help="Show archived habits instead"),
    today_only: bool = typer.Option(False, "--today", help="Only habits due today"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List habits (active by default, in their display order).

    Example:
        stabilizer habit ls --today
    """
    try:
        if today_only:
            habits = service.list_today_habits()
        else:
            habits = service.list_habits(archived=archived)

        if json_output:
            print_json(HabitFormatter.to_json_array(habits))
        elif raw:
            for line in HabitFormatter.to_raw_lines(habits):
                console.print(line, markup=False)
        else:
            if not habits:
                console.print("[dim]No habits found[/dim]")
                return
            logs = None
            if today_only:
                day = format_day(date.today())
                logs = {}
                for habit in habits:
                    log = service.get_habit_log(habit.id, day)
                    if log:
                        logs[habit.id] = log
            title = "Archived habits" if archived else "Habits"
            console.print(HabitFormatter.create_table(habits, title=title, logs=logs))

    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@habit_app.command("log")
def habit_log(
    habit_id: int = typer.Argument(..., help="Habit ID"),
    status: str = typer.Option(LOG_DONE, "--status", "-s", help="DONE, PARTIAL, SKIP or NONE"),
    value: Optional[float] = typer.Option(None, "--value", "-v", help="Amount for COUNT/TIME habits"),
    day: Optional[str] = typer.Option(None, "--date", help="Day to log (YYYY-MM-DD, default today)"),
    note: Optional[str] = typer.Option(None, "--note", help="Optional note"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Record a habit for a day (logging the same day again overwrites it).

    Example:
        stabilizer habit log 1
        stabilizer habit log 2 --status PARTIAL --value 12
        stabilizer habit log 1 --status SKIP --date 2026-02-03
    """
    try:
        log = service.upsert_habit_log(
            habit_id,
            day or format_day(date.today()),
            status,
            value=value,
            note=note,
        )
        if json_output:
            print_json(log.to_json())
        else:
            console.print(f"[green]✓[/green] Habit {habit_id}: {log.status} on {log.date}")

    except (HabitNotFoundError, InvalidInputError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@habit_app.command("stats")
def habit_stats(
    habit_id: int = typer.Argument(..., help="Habit ID"),
    range_name: str = typer.Option(RANGE_WEEK, "--range", "-r", help="WEEK, MONTH or THREE_MONTHS"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show consistency and current streak for a habit.

    Example:
        stabilizer habit stats 1 --range MONTH
    """
    try:
        summary = service.get_habit_summary(habit_id, range_name)
        data = HabitFormatter.summary_dict(summary)

        if json_output:
            print_json(json.dumps(data, indent=2))
            return

        stats = summary.stats
        console.print(f"[bold]{summary.habit.name}[/bold] [dim]({data['start']} → {data['end']})[/dim]")
        console.print(
            f"  Consistency: [cyan]{stats.consistency_pct}%[/cyan] "
            f"[dim]({stats.numerator}/{stats.denominator}, {stats.skips} skipped)[/dim]"
        )
        unit = "week(s)" if summary.habit.schedule_type == "TIMES_PER_WEEK" else "day(s)"
        console.print(f"  Streak: [green]{summary.streak}[/green] {unit}")

    except (HabitNotFoundError, InvalidInputError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@habit_app.command("archive")
def habit_archive(habit_id: int = typer.Argument(..., help="Habit ID")):
    """Archive a habit (its history is kept)."""
    try:
        habit = service.archive_habit(habit_id)
        console.print(f"[yellow]Archived habit {habit.id}:[/yellow] {habit.name}")
    except HabitNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@habit_app.command("unarchive")
def habit_unarchive(habit_id: int = typer.Argument(..., help="Habit ID")):
    """Bring an archived habit back."""
    try:
        habit = service.unarchive_habit(habit_id)
        console.print(f"[green]Restored habit {habit.id}:[/green] {habit.name}")
    except HabitNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
