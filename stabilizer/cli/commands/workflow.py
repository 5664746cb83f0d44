"""
FILE: stabilizer/cli/commands/workflow.py
PURPOSE: Workflow commands (today, waiting, builder, wins, sweep, capacity,
         category add/ls)
"""

import json
from dataclasses import asdict
from typing import Optional

import typer
from rich.table import Table

from ..main import app, category_app, console, error_console, print_json
from ...core import service
from ...core.constants import DEFAULT_DOMAIN, DEFAULT_MAX_TASKS
from ...core.exceptions import InvalidInputError, StabilizerError
from ...formatting import TaskFormatter


def _category_names():
    return {c.id: c.name for c in service.list_categories()}


@app.command()
def today(
    domain: str = typer.Option(DEFAULT_DOMAIN, "--domain", "-d", help="LIFE_ADMIN or BUSINESS"),
    max_tasks: int = typer.Option(DEFAULT_MAX_TASKS, "--max", "-n", help="Stack size"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Build today's stack: your pinned tasks first, then the best suggestions
    that fit in today's capacity.

    Example:
        stabilizer today
        stabilizer today --domain BUSINESS --max 3
    """
    try:
        split = service.get_today_stack(domain=domain, max_tasks=max_tasks)
        minutes = service.get_capacity(domain)

        if json_output:
            print_json(json.dumps(
                {
                    "domain": domain.upper(),
                    "capacity_minutes": minutes,
                    "pinned": [asdict(t) for t in split.pinned],
                    "suggested": [asdict(t) for t in split.suggested],
                },
                indent=2,
            ))
            return

        if raw:
            for task in split.pinned:
                console.print(f"{task.id}: [pinned] {task.title}", markup=False)
            for task in split.suggested:
                console.print(f"{task.id}: {task.title}", markup=False)
            return

        console.print(f"[bold]Today[/bold] [dim]({domain.upper()}, {minutes} min available)[/dim]\n")

        if not split.pinned and not split.suggested:
            console.print("[dim]Nothing actionable right now[/dim]")
            console.print("[dim]Use 'stabilizer add \"title\"' to capture a task[/dim]")
            return

        names = _category_names()
        if split.pinned:
            console.print(TaskFormatter.create_table(split.pinned, title="Pinned", category_names=names))
        if split.suggested:
            console.print(TaskFormatter.create_table(split.suggested, title="Suggested", category_names=names))

        habits = service.list_today_habits()
        if habits:
            console.print("\n[bold]Habits today:[/bold] " + ", ".join(h.name for h in habits))

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def waiting(
    domain: str = typer.Option(DEFAULT_DOMAIN, "--domain", "-d", help="LIFE_ADMIN or BUSINESS"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List tasks parked until a follow-up time, soonest first.

    Example:
        stabilizer waiting
    """
    try:
        tasks = service.get_waiting(domain)

        if json_output:
            print_json(TaskFormatter.to_json_array(tasks))
        elif raw:
            for task in tasks:
                console.print(f"{task.id}: {task.title} (until {task.next_action_at})", markup=False)
        else:
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

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def builder(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """List every actionable BUSINESS task (no scoring, creation order)."""
    try:
        tasks = service.list_builder_tasks()

        if json_output:
            print_json(TaskFormatter.to_json_array(tasks))
        elif raw:
            for line in TaskFormatter.to_raw_lines(tasks):
                console.print(line, markup=False)
        else:
            if not tasks:
                console.print("[dim]No business tasks[/dim]")
                return
            console.print(TaskFormatter.create_table(tasks, title="Builder", category_names=_category_names()))

    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def wins(
    since: Optional[str] = typer.Option(None, "--since", help="Only tasks completed on/after this date"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List finished tasks, most recent first.

    Example:
        stabilizer wins --since 2026-02-01
    """
    try:
        tasks = service.list_completed_tasks(since)

        if json_output:
            print_json(TaskFormatter.to_json_array(tasks))
        elif raw:
            for task in tasks:
                console.print(f"{task.id}: {task.title} ({task.completed_at})", markup=False)
        else:
            if not tasks:
                console.print("[dim]No completed tasks yet[/dim]")
                return
            table = Table(title="Wins", show_header=True, header_style="bold cyan")
            table.add_column("ID", style="cyan", width=6, no_wrap=True)
            table.add_column("Title", style="white")
            table.add_column("Completed", style="green")
            for task in tasks:
                table.add_row(str(task.id), task.title, (task.completed_at or "-")[:16])
            console.print(table)
            console.print(f"\n[dim]Total: {len(tasks)} win(s)[/dim]")

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def sweep(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Move waiting tasks whose follow-up time has passed back to the backlog."""
    try:
        count = service.transition_due_pending_tasks()
        if json_output:
            print_json(json.dumps({"transitioned": count}))
        else:
            console.print(f"[green]✓[/green] {count} task(s) back in the backlog")
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def capacity(
    minutes: Optional[int] = typer.Argument(None, help="Minutes available (omit to show)"),
    domain: str = typer.Option(DEFAULT_DOMAIN, "--domain", "-d", help="LIFE_ADMIN or BUSINESS"),
    default: bool = typer.Option(False, "--default", help="Change the everyday default instead of today"),
    reset: bool = typer.Option(False, "--reset", help="Drop today's override"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show or set how many minutes you have for a domain.

    Example:
        stabilizer capacity            # show today's minutes
        stabilizer capacity 45         # only 45 minutes today
        stabilizer capacity 90 --default
        stabilizer capacity --reset
    """
    try:
        if reset:
            service.clear_daily_capacity(domain)
        elif minutes is not None and default:
            service.set_default_minutes(domain, minutes)
        elif minutes is not None:
            service.set_daily_capacity(domain, minutes)

        current = service.get_capacity(domain)
        if json_output:
            print_json(json.dumps({"domain": domain.upper(), "minutes": current}))
        else:
            console.print(f"[cyan]{domain.upper()}[/cyan]: {current} min available today")

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@category_app.command("add")
def category_add(
    name: str = typer.Argument(..., help="Category name"),
    kind: str = typer.Option(..., "--kind", "-k", help="LEGAL, MONEY, MAINTENANCE, CAREGIVER or custom"),
    domain: str = typer.Option(DEFAULT_DOMAIN, "--domain", "-d", help="LIFE_ADMIN or BUSINESS"),
    why: str = typer.Option("", "--why", help="Why this matters"),
    win: str = typer.Option("", "--win", help="What done looks like"),
    script: str = typer.Option("", "--script", help="Encouragement shown with its tasks"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Create a category.

    Example:
        stabilizer category add Clients --kind CLIENT --domain BUSINESS
    """
    try:
        category = service.create_category(name, kind, domain, why, win, script)
        if json_output:
            print_json(category.to_json())
        else:
            console.print(f"[green]✓ Created category [bold]#{category.id}[/bold]:[/green] {category.name}")
    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@category_app.command("ls")
def category_ls(
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Filter by domain"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """List categories."""
    try:
        categories = (
            service.get_categories_by_domain(domain) if domain else service.list_categories()
        )

        if json_output:
            print_json(json.dumps([asdict(c) for c in categories], indent=2))
        elif raw:
            for category in categories:
                console.print(f"{category.id}: {category.name} ({category.kind})", markup=False)
        else:
            if not categories:
                console.print("[dim]No categories[/dim]")
                return
            table = Table(title="Categories", show_header=True, header_style="bold cyan")
            table.add_column("ID", style="cyan", width=6, no_wrap=True)
            table.add_column("Name", style="white")
            table.add_column("Kind", style="magenta")
            table.add_column("Domain", style="yellow")
            table.add_column("Win condition", style="dim")
            for category in categories:
                table.add_row(
                    str(category.id),
                    category.name,
                    category.kind,
                    category.domain,
                    category.win_condition or "-",
                )
            console.print(table)

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
