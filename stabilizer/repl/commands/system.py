"""
FILE: stabilizer/repl/commands/system.py
PURPOSE: System command handlers for REPL (help, domain)
"""

from ..main import console, repl_context
from ..parser import ParseResult
from ...core.constants import VALID_DOMAINS


def handle_help_command(result: ParseResult) -> None:
    """Show REPL commands."""
    console.print("\n[bold cyan]Stabilizer REPL Commands[/bold cyan]\n")

    commands = [
        ("today [--max N]", "Pinned tasks plus suggestions that fit today"),
        ("waiting", "Tasks parked until a follow-up date"),
        ("ls [--all] [--status S]", "List tasks in the working domain"),
        ('add "Title" [--due D] [--estimate M] [--pin]', "Create a task"),
        ("done <id(s)>", "Mark task(s) done"),
        ("undo <id(s)>", "Reopen task(s) into the backlog"),
        ("pin <id(s)> / unpin <id(s)>", "Pin into or out of today"),
        ("start <id(s)>", "Mark task(s) in progress"),
        ("habits", "Habits due today"),
        ("check <id> [STATUS] [--value N]", "Log a habit"),
        ("stats <id> [RANGE]", "Habit consistency and streak"),
        ("domain <LIFE_ADMIN|BUSINESS>", "Switch working domain"),
        ("exit / quit", "Leave the REPL"),
    ]
    for usage, desc in commands:
        console.print(f"  [green]{usage}[/green]", markup=True, highlight=False)
        console.print(f"      [dim]{desc}[/dim]")


def handle_domain_command(result: ParseResult) -> None:
    """
    Handle 'domain' - show or switch the working domain.

    Usage:
        domain
        domain BUSINESS
    """
    if not result.args:
        console.print(f"Working domain: [cyan]{repl_context.domain}[/cyan]")
        return

    domain = result.args[0].upper()
    if domain not in VALID_DOMAINS:
        console.print(f"[red]Error:[/red] Unknown domain '{domain}'. Use one of: {', '.join(VALID_DOMAINS)}")
        return

    repl_context.domain = domain
    console.print(f"[green]✓[/green] Working domain: [cyan]{domain}[/cyan]")
