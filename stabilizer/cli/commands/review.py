"""
FILE: stabilizer/cli/commands/review.py
PURPOSE: Wins log and weekly review commands (win add, ls, rm; review show,
         save, ls)
"""

import json
from dataclasses import asdict
from typing import Optional

import typer
from rich.table import Table

from ..main import console, error_console, print_json, review_app, win_app
from ...core import service
from ...core.constants import PERIOD_WEEK
from ...core.exceptions import InvalidInputError, StabilizerError, WinNotFoundError


@win_app.command("add")
def win_add(
    text: str = typer.Argument(..., help="What went well"),
    day: Optional[str] = typer.Option(None, "--date", help="Day it happened (YYYY-MM-DD, default today)"),
    tags: Optional[str] = typer.Option(None, "--tag", "-t", help="Tags: life, biz, vitality, community (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Log a win that isn't a task.

    Example:
        stabilizer win add "Walked 5k without stopping" --tag vitality
        stabilizer win add "Closed first client" --tag biz,life --date 2026-02-01
    """
    try:
        tag_list = [t for t in tags.split(",") if t.strip()] if tags else []
        win = service.add_win(text, day=day, tags=tag_list)
        if json_output:
            print_json(win.to_json())
        else:
            console.print(f"[green]✓ Logged win [bold]#{win.id}[/bold]:[/green] {win.text}")
    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@win_app.command("ls")
def win_ls(
    period: str = typer.Option(PERIOD_WEEK, "--period", "-p", help="WEEK, MONTH, QUARTER or YEAR"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match text or tag"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List wins grouped by week, month, quarter or year (newest first).

    Example:
        stabilizer win ls --period MONTH
        stabilizer win ls --search biz
    """
    try:
        groups = service.get_wins_by_period(period, search)

        if json_output:
            print_json(json.dumps([asdict(g) for g in groups], indent=2))
            return

        if raw:
            for group in groups:
                console.print(group.label, markup=False)
                for win in group.wins:
                    console.print(f"  {win.id}: {win.date} {win.text}", markup=False)
            return

        if not groups:
            message = "No wins match your search" if search else "No wins yet"
            console.print(f"[dim]{message}[/dim]")
            return

        for group in groups:
            table = Table(title=group.label, show_header=True, header_style="bold cyan")
            table.add_column("ID", style="cyan", width=6, no_wrap=True)
            table.add_column("Date", style="green", no_wrap=True)
            table.add_column("Win", style="white")
            table.add_column("Tags", style="magenta")
            for win in group.wins:
                table.add_row(str(win.id), win.date, win.text, ", ".join(win.tags) or "-")
            console.print(table)

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@win_app.command("rm")
def win_rm(
    win_id: int = typer.Argument(..., help="Win ID to delete"),
):
    """Delete a logged win."""
    try:
        service.delete_win(win_id)
        console.print(f"[green]✓[/green] Deleted win {win_id}")
    except WinNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@review_app.command("show")
def review_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Look back over the last 7 days: finished tasks, wins, estimate drift and
    open friction.
    """
    try:
        summary = service.get_weekly_review()

        if json_output:
            print_json(json.dumps(asdict(summary), indent=2))
            return

        console.print(
            f"[bold]Weekly review[/bold] [dim](since {summary.since[:10]})[/dim]\n"
            f"{len(summary.completed)} task(s) finished, "
            f"{summary.total_minutes} min tracked, "
            f"${summary.total_money:,.0f} moved\n"
        )

        if summary.completed:
            table = Table(title="Finished", show_header=True, header_style="bold cyan")
            table.add_column("ID", style="cyan", width=6, no_wrap=True)
            table.add_column("Title", style="white")
            table.add_column("Completed", style="green")
            for task in summary.completed:
                table.add_row(str(task.id), task.title, (task.completed_at or "-")[:16])
            console.print(table)

        if summary.other_wins:
            console.print("\n[bold]Other wins this week[/bold]")
            for win in summary.other_wins:
                tags = f" [dim]({', '.join(win.tags)})[/dim]" if win.tags else ""
                console.print(f"  • {win.date} {win.text}{tags}")
        elif not summary.completed:
            console.print("[dim]Nothing logged this week. Use 'stabilizer win add' for wins beyond tasks[/dim]")

        if summary.mismatches:
            table = Table(title="Estimate vs actual", show_header=True, header_style="bold cyan")
            table.add_column("Task", style="white")
            table.add_column("Est", justify="right")
            table.add_column("Actual", justify="right")
            table.add_column("Ratio", justify="right", style="yellow")
            for m in summary.mismatches:
                table.add_row(m.title, f"{m.estimate_minutes}m", f"{m.actual_minutes}m", f"{m.ratio:.1f}x")
            console.print()
            console.print(table)

        if summary.open_friction:
            console.print("\n[bold]Open friction[/bold]")
            for task in summary.open_friction:
                console.print(f"  ! #{task.id} {task.title}: {task.friction_note}")

    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@review_app.command("save")
def review_save(
    friction: str = typer.Option("", "--friction", help="What created the most friction?"),
    focus: str = typer.Option("", "--focus", help="Which category needs attention next week?"),
    next_step: str = typer.Option("", "--next-step", help="Smallest next step for the scariest task"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Save this week's review answers.

    Example:
        stabilizer review save --friction "Phone calls" --focus LEGAL --next-step "Find the form"
    """
    try:
        review = service.save_weekly_review(friction, focus, next_step)
        if json_output:
            print_json(review.to_json())
        else:
            console.print(f"[green]✓ Saved review for the week of {review.week_start}[/green]")
    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@review_app.command("ls")
def review_ls(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List saved weekly reviews, newest first."""
    try:
        reviews = service.list_weekly_reviews()

        if json_output:
            print_json(json.dumps([asdict(r) for r in reviews], indent=2))
            return

        if not reviews:
            console.print("[dim]No saved reviews yet[/dim]")
            return

        for review in reviews:
            console.print(f"[bold cyan]Week of {review.week_start}[/bold cyan]")
            if review.friction:
                console.print(f"  Friction: {review.friction}", markup=False)
            if review.category_focus:
                console.print(f"  Focus: {review.category_focus}", markup=False)
            if review.scariest_next_step:
                console.print(f"  Next step: {review.scariest_next_step}", markup=False)

    except StabilizerError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
