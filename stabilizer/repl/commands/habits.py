"""
FILE: stabilizer/repl/commands/habits.py
PURPOSE: Habit command handlers for REPL (habits, check, stats)
"""

from datetime import date

from ..main import console
from ..parser import ParseResult
from ...core import service
from ...core.constants import LOG_DONE, RANGE_WEEK
from ...core.dates import format_day
from ...core.exceptions import StabilizerError
from ...formatting import HabitFormatter


def handle_habits_command(result: ParseResult) -> None:
    """
    Handle 'habits' - habits due today with today's log status.

    Usage:
        habits
    """
    try:
        habits = service.list_today_habits()
        if not habits:
            console.print("[dim]No habits due today[/dim]")
            return

        day = format_day(date.today())
        logs = {}
        for habit in habits:
            log = service.get_habit_log(habit.id, day)
            if log:
                logs[habit.id] = log
        console.print(HabitFormatter.create_table(habits, title="Habits today", logs=logs))
    except StabilizerError as e:
        console.print(f"[red]Error:[/red] {e}")


def handle_check_command(result: ParseResult) -> None:
    """
    Handle 'check' - log a habit (today unless --date is given).

    Usage:
        check <habit_id> [DONE|PARTIAL|SKIP|NONE] [--value N] [--date YYYY-MM-DD] [--note TEXT]
    """
    if not result.args:
        console.print("[red]Usage:[/red] check <habit_id> [status] [--value N] [--date DATE]")
        return

    try:
        habit_id = int(result.args[0])
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid habit ID: {result.args[0]}")
        return

    status = result.args[1] if len(result.args) > 1 else LOG_DONE
    value = result.flags.get("value")
    day = result.flags.get("date")
    note = result.flags.get("note")

    try:
        try:
            numeric = float(value) if isinstance(value, str) else None
        except ValueError:
            console.print(f"[red]Error:[/red] --value expects a number, got '{value}'")
            return

        log = service.upsert_habit_log(
            habit_id,
            day if isinstance(day, str) else format_day(date.today()),
            status,
            value=numeric,
            note=note if isinstance(note, str) else None,
        )
        console.print(f"[green]✓[/green] Habit {habit_id}: {log.status} on {log.date}")
    except StabilizerError as e:
        console.print(f"[red]Error:[/red] {e}")


def handle_stats_command(result: ParseResult) -> None:
    """
    Handle 'stats' - consistency and streak for one habit.

    Usage:
        stats <habit_id> [WEEK|MONTH|THREE_MONTHS]
    """
    if not result.args:
        console.print("[red]Usage:[/red] stats <habit_id> [WEEK|MONTH|THREE_MONTHS]")
        return

    try:
        habit_id = int(result.args[0])
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid habit ID: {result.args[0]}")
        return

    range_name = result.args[1] if len(result.args) > 1 else RANGE_WEEK

    try:
        summary = service.get_habit_summary(habit_id, range_name)
        stats = summary.stats
        console.print(f"[bold]{summary.habit.name}[/bold] [dim]{summary.range_name}[/dim]")
        console.print(
            f"  Consistency: [cyan]{stats.consistency_pct}%[/cyan] "
            f"[dim]({stats.numerator}/{stats.denominator}, {stats.skips} skipped)[/dim]"
        )
        console.print(f"  Streak: [green]{summary.streak}[/green]")
    except StabilizerError as e:
        console.print(f"[red]Error:[/red] {e}")
