"""
FILE: stabilizer/repl/commands/tasks.py
PURPOSE: Task and stack command handlers for REPL
"""

from typing import Callable

from ..main import console, repl_context
from ..parser import ParseResult
from ...core import service
from ...core.constants import DEFAULT_MAX_TASKS
from ...core.exceptions import (
    CategoryNotFoundError,
    InvalidInputError,
    StabilizerError,
    TaskNotFoundError,
)
from ...core.models import Task
from ...formatting import TaskFormatter, parse_ids


def _category_names():
    return {c.id: c.name for c in service.list_categories()}


def _int_flag(result: ParseResult, name: str):
    value = result.flags.get(name)
    if value is None or value is True:
        return None
    try:
        return int(value)
    except ValueError:
        raise InvalidInputError(f"--{name} expects a number, got '{value}'")


def handle_today_command(result: ParseResult) -> None:
    """
    Handle 'today' - build the stack for the working domain.

    Usage:
        today [--max N]
    """
    try:
        max_tasks = _int_flag(result, "max") or DEFAULT_MAX_TASKS
        split = service.get_today_stack(domain=repl_context.domain, max_tasks=max_tasks)
        minutes = service.get_capacity(repl_context.domain)

        console.print(f"[bold cyan]Today[/bold cyan] [dim]({minutes} min available)[/dim]")
        if not split.pinned and not split.suggested:
            console.print("[dim]Nothing actionable right now[/dim]")
            return

        names = _category_names()
        if split.pinned:
            console.print(TaskFormatter.create_table(split.pinned, title="Pinned", category_names=names))
        if split.suggested:
            console.print(TaskFormatter.create_table(split.suggested, title="Suggested", category_names=names))
    except StabilizerError as e:
        console.print(f"[red]Error:[/red] {e}")


def handle_waiting_command(result: ParseResult) -> None:
    """Handle 'waiting' - list parked tasks, soonest follow-up first."""
    try:
        tasks = service.get_waiting(repl_context.domain)
        if not tasks:
            console.print("[dim]Nothing waiting[/dim]")
            return
        console.print(TaskFormatter.create_table(
            tasks,
            title="Waiting",
            category_names=_category_names(),
            show_status=False,
            show_due=False,
            show_waiting=True,
        ))
    except StabilizerError as e:
        console.print(f"[red]Error:[/red] {e}")


def handle_ls_command(result: ParseResult) -> None:
    """
    Handle 'ls' - list tasks in the working domain.

    Usage:
        ls [--all] [--status STATUS] [--domain DOMAIN]
    """
    try:
        domain = result.flags.get("domain") or repl_context.domain
        status = result.flags.get("status")
        tasks = service.list_tasks(
            domain=domain if isinstance(domain, str) else repl_context.domain,
            status=status if isinstance(status, str) else None,
            include_closed=bool(result.flags.get("all")),
        )
        if not tasks:
            console.print("[dim]No tasks found[/dim]")
            return
        console.print(TaskFormatter.create_table(tasks, category_names=_category_names()))
    except StabilizerError as e:
        console.print(f"[red]Error:[/red] {e}")


def handle_add_command(result: ParseResult) -> None:
    """
    Handle 'add' - create a task in the working domain.

    Usage:
        add "Title" [--category NAME] [--due DATE] [--soft DATE]
            [--estimate MIN] [--money AMOUNT] [--pin]
    """
    if not result.args:
        console.print('[red]Usage:[/red] add "Task title" [--category NAME] [--due DATE] [--estimate MIN]')
        return

    try:
        category = result.flags.get("category")
        category_id = service.find_category(category).id if isinstance(category, str) else None

        money = result.flags.get("money")
        try:
            money_value = float(money) if isinstance(money, str) else None
        except ValueError:
            raise InvalidInputError(f"--money expects a number, got '{money}'")

        domain = result.flags.get("domain")
        task = service.create_task(
            title=" ".join(result.args),
            domain=domain if isinstance(domain, str) else repl_context.domain,
            category_id=category_id,
            due_date=result.flags.get("due") if isinstance(result.flags.get("due"), str) else None,
            soft_deadline=result.flags.get("soft") if isinstance(result.flags.get("soft"), str) else None,
            estimate_minutes=_int_flag(result, "estimate"),
            money_impact=money_value,
            pinned=bool(result.flags.get("pin")),
        )
        console.print(f"[green]✓ Created task [bold]#{task.id}[/bold]:[/green] {task.title}")
    except (InvalidInputError, CategoryNotFoundError, TaskNotFoundError) as e:
        console.print(f"[red]Error:[/red] {e}")
    except StabilizerError as e:
        console.print(f"[red]Unexpected error:[/red] {e}")


def _transition(result: ParseResult, action: Callable[[int], Task], verb: str) -> None:
    """Apply a status transition to comma-separated ids, reporting each outcome."""
    if not result.args:
        console.print(f"[red]Usage:[/red] {result.command} <task_id(s)>")
        return

    try:
        ids = parse_ids(",".join(result.args))
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid task ID(s): {' '.join(result.args)}")
        return

    for task_id in ids:
        try:
            task = action(task_id)
            console.print(f"[green]✓[/green] {verb}: {task.title}")
        except StabilizerError as e:
            console.print(f"[red]Error:[/red] {e}")


def handle_done_command(result: ParseResult) -> None:
    _transition(result, service.mark_task_done, "Completed")


def handle_undo_command(result: ParseResult) -> None:
    _transition(result, service.unmark_task_done, "Reopened")


def handle_pin_command(result: ParseResult) -> None:
    _transition(result, service.pin_task, "Pinned")


def handle_unpin_command(result: ParseResult) -> None:
    _transition(result, service.unpin_task, "Unpinned")


def handle_start_command(result: ParseResult) -> None:
    _transition(result, service.start_task, "Started")
