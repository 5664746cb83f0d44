"""
FILE: stabilizer/cli/commands/tasks.py
PURPOSE: Task commands (add, ls, show, done, undo, archive, pin, unpin,
         start, wait, now, friction, rm, log, subtask add/done/rm)
"""

import json
from typing import Callable, List, Optional

import typer
from rich.panel import Panel
from rich.text import Text

from ..main import app, console, error_console, print_json, subtask_app
from ...core import service
from ...core.constants import DEFAULT_DOMAIN, DEFAULT_PRIORITY
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


def _print_task_result(task: Task, message: str, json_output: bool, raw: bool) -> None:
    if json_output:
        print_json(task.to_json())
    elif raw:
        console.print(f"{task.id}: {task.title}", markup=False)
    else:
        console.print(message)


def _apply_to_ids(
    task_ids: str,
    action: Callable[[int], Task],
    verb: str,
    json_output: bool,
    raw: bool,
) -> None:
    """
    Run a per-task transition over comma-separated ids.

    Reports each failure on stderr; exits 1 only when nothing succeeded.
    """
    changed: List[Task] = []
    errors: List[str] = []

    try:
        ids = parse_ids(task_ids)
    except ValueError:
        error_console.print(f"[red]Error:[/red] Invalid task ID(s): {task_ids}")
        raise typer.Exit(1)

    for task_id in ids:
        try:
            changed.append(action(task_id))
        except (TaskNotFoundError, InvalidInputError) as e:
            errors.append(str(e))
        except StabilizerError as e:
            errors.append(f"Error with task {task_id}: {e}")

    if json_output:
        print_json(TaskFormatter.to_json_array(changed))
    elif raw:
        for task in changed:
            console.print(f"{verb}: {task.title}", markup=False)
    else:
        for task in changed:
            console.print(f"[green]✓[/green] {verb}: {task.title}")

    if errors:
        for error in errors:
            error_console.print(f"[red]Error:[/red] {error}")
        if not changed:
            raise typer.Exit(1)


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    domain: str = typer.Option(DEFAULT_DOMAIN, "--domain", "-d", help="LIFE_ADMIN or BUSINESS"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category name or ID"),
    priority: int = typer.Option(DEFAULT_PRIORITY, "--priority", "-p", help="Priority 1-4 (1 = highest)"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    soft: Optional[str] = typer.Option(None, "--soft", help="Soft deadline (YYYY-MM-DD)"),
    estimate: Optional[int] = typer.Option(None, "--estimate", "-e", help="Estimate in minutes"),
    money: Optional[float] = typer.Option(None, "--money", help="Money at stake"),
    blocked_by: Optional[str] = typer.Option(None, "--blocked-by", help="Blocking task ID(s), comma-separated"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Free-form notes"),
    friction: Optional[str] = typer.Option(None, "--friction", help="What makes this hard to start"),
    pin: bool = typer.Option(False, "--pin", help="Pin straight into today's stack"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new task.

    Example:
        stabilizer add "Renew passport" --category LEGAL --due 2026-03-01 -e 30
        stabilizer add "Ship landing page" --domain BUSINESS --pin
    """
    try:
        category_id = service.find_category(category).id if category else None
        try:
            blockers = parse_ids(blocked_by) if blocked_by else []
        except ValueError:
            raise InvalidInputError(f"Invalid task ID(s): {blocked_by}")

        task = service.create_task(
            title=title,
            domain=domain,
            category_id=category_id,
            priority=priority,
            due_date=due,
            soft_deadline=soft,
            estimate_minutes=estimate,
            money_impact=money,
            blocked_by_task_ids=blockers,
            notes=notes,
            friction_note=friction,
            pinned=pin,
        )

        _print_task_result(
            task,
            f"[green]✓ Created task [bold]#{task.id}[/bold]:[/green] {task.title}",
            json_output,
            raw,
        )

    except (InvalidInputError, CategoryNotFoundError, TaskNotFoundError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def ls(
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Filter by domain"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status"),
    include_closed: bool = typer.Option(False, "--all", "-a", help="Include done/archived tasks"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List tasks (excluding done/archived by default).

    Example:
        stabilizer ls
        stabilizer ls --domain BUSINESS
        stabilizer ls --status PENDING --json
    """
    try:
        tasks = service.list_tasks(domain=domain, status=status, include_closed=include_closed)

        if json_output:
            print_json(TaskFormatter.to_json_array(tasks))
        elif raw:
            for line in TaskFormatter.to_raw_lines(tasks):
                console.print(line, markup=False)
        else:
            if not tasks:
                console.print("[dim]No tasks found[/dim]")
                return
            console.print(TaskFormatter.create_table(tasks, category_names=_category_names()))
            console.print(f"\n[dim]Total: {len(tasks)} task(s)[/dim]")

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def show(
    task_id: int = typer.Argument(..., help="Task ID to view"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Show full details for a task, including subtasks and its category card.

    Example:
        stabilizer show 5
    """
    try:
        task = service.get_task(task_id)

        if json_output:
            print_json(task.to_json())
            return

        category = service.find_category(str(task.category_id)) if task.category_id else None

        if raw:
            console.print(f"Task #{task.id}", markup=False)
            console.print(f"Title: {task.title}", markup=False)
            console.print(f"Status: {task.status}", markup=False)
            console.print(f"Domain: {task.domain}", markup=False)
            if category:
                console.print(f"Category: {category.name}", markup=False)
            if task.due_date:
                console.print(f"Due: {task.due_date}", markup=False)
            if task.next_action_at:
                console.print(f"Waiting until: {task.next_action_at}", markup=False)
            if task.friction_note:
                console.print(f"Friction: {task.friction_note}", markup=False)
            for subtask in task.subtasks:
                marker = "x" if subtask.done else " "
                console.print(f"  [{marker}] {subtask.id}. {subtask.title}", markup=False)
            return

        details = Text()
        details.append(f"Task #{task.id}\n", style="bold cyan")
        details.append(f"{task.title}\n\n", style="bold white")

        details.append("Status: ", style="dim")
        details.append(f"{task.status}\n", style="yellow")
        details.append("Domain: ", style="dim")
        details.append(f"{task.domain}\n")
        details.append("Priority: ", style="dim")
        details.append(f"P{task.priority}\n")

        if category:
            details.append("Category: ", style="dim")
            details.append(f"{category.name} ({category.kind})\n", style="cyan")
        if task.due_date:
            details.append("Due: ", style="dim")
            details.append(f"{task.due_date[:10]}\n", style="red")
        if task.soft_deadline:
            details.append("Soft deadline: ", style="dim")
            details.append(f"{task.soft_deadline[:10]}\n")
        if task.estimate_minutes:
            details.append("Estimate: ", style="dim")
            details.append(f"{task.estimate_minutes} min\n")
        if task.blocked_by_task_ids:
            details.append("Blocked by: ", style="dim")
            details.append(", ".join(f"#{i}" for i in task.blocked_by_task_ids) + "\n", style="red")
        if task.next_action_at:
            details.append("Waiting until: ", style="dim")
            details.append(f"{task.next_action_at}\n", style="blue")
            if task.pending_reason:
                details.append("Reason: ", style="dim")
                details.append(f"{task.pending_reason}\n")
        if task.notes:
            details.append("\nNotes:\n", style="dim")
            details.append(f"{task.notes}\n")
        if task.friction_note:
            details.append("\nFriction:\n", style="dim")
            details.append(f"{task.friction_note}\n", style="yellow")
        if task.subtasks:
            details.append("\nSubtasks:\n", style="dim")
            for subtask in task.subtasks:
                marker = "✓" if subtask.done else "○"
                details.append(f"  {marker} {subtask.id}. {subtask.title}\n",
                               style="green" if subtask.done else "white")
        if category and category.script:
            details.append(f"\n{category.script}\n", style="italic magenta")
        if task.completed_at:
            details.append("\nCompleted: ", style="dim")
            details.append(f"{task.completed_at}\n", style="green")

        console.print(Panel(details, border_style="blue", padding=(1, 2)))

    except TaskNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def done(
    task_ids: str = typer.Argument(..., help="Task ID(s) to complete (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Mark one or more tasks as done.

    Example:
        stabilizer done 5
        stabilizer done 3,5,7
    """
    _apply_to_ids(task_ids, service.mark_task_done, "Completed", json_output, raw)


@app.command()
def undo(
    task_ids: str = typer.Argument(..., help="Task ID(s) to reopen (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Reopen done or archived tasks (they return to the backlog).

    Example:
        stabilizer undo 5
    """
    _apply_to_ids(task_ids, service.unmark_task_done, "Reopened", json_output, raw)


@app.command()
def archive(
    task_ids: str = typer.Argument(..., help="Task ID(s) to archive (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Archive tasks, keeping their completion time.

    Example:
        stabilizer archive 3,4
    """
    _apply_to_ids(task_ids, service.mark_task_archived, "Archived", json_output, raw)


@app.command()
def pin(
    task_ids: str = typer.Argument(..., help="Task ID(s) to pin (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Pin backlog tasks into today's stack.

    Example:
        stabilizer pin 2,9
    """
    _apply_to_ids(task_ids, service.pin_task, "Pinned", json_output, raw)


@app.command()
def unpin(
    task_ids: str = typer.Argument(..., help="Task ID(s) to unpin (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """Return pinned tasks to the backlog."""
    _apply_to_ids(task_ids, service.unpin_task, "Unpinned", json_output, raw)


@app.command()
def start(
    task_ids: str = typer.Argument(..., help="Task ID(s) to start (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """Mark tasks as in progress."""
    _apply_to_ids(task_ids, service.start_task, "Started", json_output, raw)


@app.command()
def wait(
    task_id: int = typer.Argument(..., help="Task ID"),
    until: str = typer.Argument(..., help="Follow-up date or timestamp (YYYY-MM-DD or ISO-8601)"),
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="What you're waiting on"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Park a task until a follow-up time (it leaves the stack until then).

    Example:
        stabilizer wait 4 2026-03-10 --reason "Waiting on accountant"
    """
    try:
        task = service.set_task_pending(task_id, until, reason)
        _print_task_result(
            task,
            f"[blue]⏸[/blue] Task {task.id} waiting until {task.next_action_at[:10]}: {task.title}",
            json_output,
            raw,
        )
    except (TaskNotFoundError, InvalidInputError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def now(
    task_ids: str = typer.Argument(..., help="Waiting task ID(s) (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """Stop waiting: move tasks back to the backlog immediately."""
    _apply_to_ids(task_ids, service.make_actionable_now, "Actionable", json_output, raw)


@app.command()
def friction(
    task_id: int = typer.Argument(..., help="Task ID"),
    note: Optional[str] = typer.Argument(None, help="What is making it hard (omit to clear)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Note what is making a task hard to start, or clear the note.

    Example:
        stabilizer friction 4 "Need the account number first"
        stabilizer friction 4
    """
    try:
        task = service.set_friction_note(task_id, note)
        message = (
            f"[yellow]![/yellow] Friction noted on task {task.id}: {task.friction_note}"
            if task.friction_note
            else f"[green]✓[/green] Friction cleared on task {task.id}"
        )
        _print_task_result(task, message, json_output, raw)
    except TaskNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def rm(
    task_ids: str = typer.Argument(..., help="Task ID(s) to delete (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
):
    """
    Delete one or more tasks permanently.

    Confirms before deleting multiple tasks (use -y to skip).

    Example:
        stabilizer rm 5
        stabilizer rm 3,5,7 --yes
    """
    try:
        ids = parse_ids(task_ids)
    except ValueError:
        error_console.print(f"[red]Error:[/red] Invalid task ID(s): {task_ids}")
        raise typer.Exit(1)

    if not yes and len(ids) > 1:
        console.print(f"[yellow]About to delete {len(ids)} task(s)[/yellow]")
        if not typer.confirm("Continue?", default=False):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    def delete(task_id: int) -> Task:
        task = service.get_task(task_id)
        service.delete_task(task_id)
        return task

    _apply_to_ids(",".join(str(i) for i in ids), delete, "Deleted", json_output, raw)


@app.command()
def log(
    title: str = typer.Argument(..., help="What you did"),
    minutes: int = typer.Argument(..., help="How long it took (1-480 minutes)"),
    day: Optional[str] = typer.Option(None, "--date", help="Day it happened (YYYY-MM-DD, default today)"),
    domain: str = typer.Option(DEFAULT_DOMAIN, "--domain", "-d", help="LIFE_ADMIN or BUSINESS"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category name or ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Record work you already finished as a done task.

    Example:
        stabilizer log "Called the bank" 20 --category MONEY
    """
    try:
        category_id = service.find_category(category).id if category else None
        task = service.log_task(title, minutes, day=day, domain=domain, category_id=category_id)
        _print_task_result(
            task,
            f"[green]✓ Logged #{task.id}[/green] {task.title} ({task.estimate_minutes} min)",
            json_output,
            raw,
        )
    except (InvalidInputError, CategoryNotFoundError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@subtask_app.command("add")
def subtask_add(
    task_id: int = typer.Argument(..., help="Task ID"),
    title: str = typer.Argument(..., help="Subtask title"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Add a checklist item to a task."""
    try:
        task = service.add_subtask(task_id, title)
        if json_output:
            print_json(task.to_json())
        else:
            subtask = task.subtasks[-1]
            console.print(f"[green]✓[/green] Added subtask {subtask.id} to task {task.id}: {subtask.title}")
    except (TaskNotFoundError, InvalidInputError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@subtask_app.command("done")
def subtask_done(
    task_id: int = typer.Argument(..., help="Task ID"),
    subtask_id: int = typer.Argument(..., help="Subtask ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Toggle a checklist item (finishing the last one completes the task)."""
    try:
        task = service.toggle_subtask(task_id, subtask_id)
        if json_output:
            print_json(task.to_json())
            return
        console.print(f"[green]✓[/green] Toggled subtask {subtask_id} of task {task.id}")
        if task.status == "DONE":
            console.print(f"[green]All subtasks done, task {task.id} completed[/green]")
    except (TaskNotFoundError, InvalidInputError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@subtask_app.command("rm")
def subtask_rm(
    task_id: int = typer.Argument(..., help="Task ID"),
    subtask_id: int = typer.Argument(..., help="Subtask ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Remove a checklist item."""
    try:
        task = service.remove_subtask(task_id, subtask_id)
        if json_output:
            print_json(json.dumps(TaskFormatter.to_json_dict(task), indent=2))
        else:
            console.print(f"[red]✗[/red] Removed subtask {subtask_id} from task {task.id}")
    except (TaskNotFoundError, InvalidInputError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
