"""
FILE: stabilizer/cli/commands/system.py
PURPOSE: System commands (version, help, repl)
"""

import typer

# Import shared objects from main module
# These will be available after main.py imports this module
from ..main import app, console, error_console, __version__


@app.command()
def version():
    """Show Stabilizer version."""
    console.print(f"Stabilizer v{__version__}")


@app.command()
def help():
    """Show available commands and usage."""
    console.print("\n[bold cyan]Stabilizer[/bold cyan] - Daily stack builder and habit tracker\n")
    console.print(f"[dim]Version {__version__}[/dim]\n")

    console.print("[bold]Usage:[/bold]")
    console.print("  stabilizer [command] [options]")
    console.print("  stabilizer                    [dim]# Launch interactive REPL (default)[/dim]\n")

    console.print("[bold]Commands:[/bold]")

    commands = [
        ("today", "Build today's stack (pinned + suggested)", "stabilizer today [--domain BUSINESS] [--max 5]"),
        ("add", "Create a new task", 'stabilizer add "Title" [-c LEGAL] [--due DATE] [-e MIN]'),
        ("ls", "List tasks", "stabilizer ls [--status S] [--domain D] [--all]"),
        ("show", "View full task details", "stabilizer show <task_id>"),
        ("done", "Mark task(s) as done", "stabilizer done <task_id(s)>"),
        ("undo", "Reopen done task(s) into the backlog", "stabilizer undo <task_id(s)>"),
        ("archive", "Archive task(s)", "stabilizer archive <task_id(s)>"),
        ("pin", "Pin task(s) into today", "stabilizer pin <task_id(s)>"),
        ("unpin", "Return pinned task(s) to the backlog", "stabilizer unpin <task_id(s)>"),
        ("start", "Mark task(s) in progress", "stabilizer start <task_id(s)>"),
        ("wait", "Park a task until a follow-up date", 'stabilizer wait <task_id> DATE [-r "reason"]'),
        ("now", "Stop waiting on task(s)", "stabilizer now <task_id(s)>"),
        ("friction", "Note what makes a task hard to start", 'stabilizer friction <task_id> ["note"]'),
        ("waiting", "List waiting tasks", "stabilizer waiting"),
        ("sweep", "Release waiting tasks that are due", "stabilizer sweep"),
        ("rm", "Delete task(s)", "stabilizer rm <task_id(s)> [-y]"),
        ("subtask", "Manage checklist items", "stabilizer subtask add|done|rm <task_id> ..."),
        ("log", "Record work already done", 'stabilizer log "Title" <minutes> [--date DATE]'),
        ("wins", "List finished tasks", "stabilizer wins [--since DATE]"),
        ("win", "Log and browse wins beyond tasks", 'stabilizer win add "text" [-t biz] | win ls [-p MONTH]'),
        ("review", "Weekly review and saved answers", "stabilizer review show|save|ls"),
        ("builder", "List actionable business tasks", "stabilizer builder"),
        ("capacity", "Show or set minutes available", "stabilizer capacity [MIN] [--default|--reset]"),
        ("category", "Manage categories", "stabilizer category add|ls"),
        ("habit", "Manage habits", "stabilizer habit add|ls|log|stats|archive|unarchive"),
        ("repl", "Launch interactive REPL", "stabilizer repl"),
        ("version", "Show version", "stabilizer version"),
        ("help", "Show this help message", "stabilizer help"),
    ]

    for cmd, desc, example in commands:
        console.print(f"  [green]{cmd:9}[/green] {desc}")
        console.print(f"            [dim]{example}[/dim]\n", markup=True)

    console.print("[bold]Global Options:[/bold]")
    console.print("  [yellow]--debug[/yellow]   Verbose logging (before the command)")
    console.print("  [yellow]--json[/yellow]    Output as JSON (for scripting)")
    console.print("  [yellow]--raw[/yellow]     Plain text output (no colors)")
    console.print("  [yellow]--help[/yellow]    Show detailed help for a command\n")


@app.command()
def repl():
    """
    Launch interactive REPL mode.

    The REPL provides:
    - Command history (up/down arrows)
    - Autocomplete (Tab key)
    - Today's stack, task transitions and habit check-ins
    - Exit with Ctrl+D or type 'exit'

    Example:
        stabilizer repl
    """
    # Import here to avoid loading REPL dependencies for one-shot commands
    from ...repl import main as repl_main

    try:
        repl_main()
    except Exception as e:
        error_console.print(f"[red]Error starting REPL:[/red] {e}")
        raise typer.Exit(1)
