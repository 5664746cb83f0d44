"""
FILE: stabilizer/cli/main.py
PURPOSE: Typer-based CLI for one-shot stack, task and habit commands
EXPORTS:
  - app (Typer application)
  - category_app, subtask_app, habit_app, win_app, review_app (sub-command groups)
  - console, error_console (rich consoles)
  - print_json(text) - Print JSON without markup or wrapping
  - main() (entry point)
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output)
  - stabilizer.cli.commands (command modules register themselves on app)
  - stabilizer.repl (interactive mode)
NOTES:
  - List commands support --json and --raw flags
  - Error messages go to stderr
  - Exit codes: 0=success, 1=error
  - --debug turns on DEBUG logging for every module
"""

import logging
import sys

# Fix Windows console encoding for Unicode characters
if sys.platform == "win32":
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding="utf-8")

import typer
from rich.console import Console

# Typer app setup
app = typer.Typer(
    name="stabilizer",
    help="Daily stack builder and habit tracker for the terminal",
    add_completion=False,
)

category_app = typer.Typer(name="category", help="Category management commands")
app.add_typer(category_app, name="category")

subtask_app = typer.Typer(name="subtask", help="Subtask checklist commands")
app.add_typer(subtask_app, name="subtask")

habit_app = typer.Typer(name="habit", help="Habit tracking commands")
app.add_typer(habit_app, name="habit")

win_app = typer.Typer(name="win", help="Wins log commands")
app.add_typer(win_app, name="win")

review_app = typer.Typer(name="review", help="Weekly review commands")
app.add_typer(review_app, name="review")

# Rich console for formatted output
console = Console()
error_console = Console(stderr=True)

# Version
__version__ = "0.1.0"


def print_json(text: str) -> None:
    """Emit machine-readable JSON exactly as serialized."""
    console.print(text, markup=False, emoji=False, highlight=False, soft_wrap=True)


@app.callback(invoke_without_command=True)
def default_command(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Default callback - configures logging and launches the REPL when no
    command is specified.
    """
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )

    if ctx.invoked_subcommand is None:
        from ..repl import main as repl_main
        try:
            repl_main()
        except Exception as e:
            error_console.print(f"[red]Error starting REPL:[/red] {e}")
            raise typer.Exit(1)


# Import command modules to register commands with app
from .commands import habits, review, system, tasks, workflow  # noqa: E402,F401


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    # Under `python -m` the command modules register on the importable
    # stabilizer.cli.main, not on this __main__ copy
    from stabilizer.cli.main import main as cli_main
    cli_main()
