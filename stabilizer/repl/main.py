"""
FILE: stabilizer/repl/main.py
PURPOSE: Interactive REPL for the daily stack and habits with prompt-toolkit
EXPORTS:
  - REPLContext, repl_context - Session state (working domain)
  - console - Shared rich console
  - execute_command(result) -> bool
  - run_repl() - Main REPL loop
  - main() - Entry point for REPL mode
DEPENDENCIES:
  - prompt_toolkit (REPL interface, history, completion)
  - rich (formatted output)
  - stabilizer.repl.parser / stabilizer.repl.completer
  - stabilizer.repl.commands (command handlers)
NOTES:
  - Command history is in-memory (PromptSession)
  - Falls back to plain input() when there is no TTY
  - Bottom toolbar shows today's capacity for the working domain
  - Ctrl+D or "exit"/"quit" to exit
  - Handlers catch StabilizerError; the loop never dies on a bad command
"""

import logging
import sys
from dataclasses import dataclass

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console

from ..core import service
from ..core.constants import DEFAULT_DOMAIN
from ..core.exceptions import StabilizerError
from .completer import create_completer
from .parser import ParseResult, parse_command

logger = logging.getLogger(__name__)

# Rich console for formatted output
console = Console()


@dataclass
class REPLContext:
    """
    Persistent context for the REPL session.

    Attributes:
        domain: Working domain used by today/waiting/ls/add unless overridden
    """
    domain: str = DEFAULT_DOMAIN

    def get_prompt(self) -> str:
        if self.domain == DEFAULT_DOMAIN:
            return "stabilizer> "
        return f"stabilizer:[{self.domain.lower()}]> "


# Global REPL context (persists during session, resets on restart)
repl_context = REPLContext()


def format_prompt() -> HTML:
    if repl_context.domain == DEFAULT_DOMAIN:
        return HTML("<b>stabilizer&gt; </b>")
    return HTML(f"<b>stabilizer:[<ansicyan>{repl_context.domain.lower()}</ansicyan>]&gt; </b>")


def get_bottom_toolbar() -> HTML:
    """Today's capacity and waiting count for the working domain."""
    try:
        minutes = service.get_capacity(repl_context.domain)
        waiting = len(service.get_waiting(repl_context.domain))
        text = f"{repl_context.domain} | {minutes} min today | {waiting} waiting | 'help' for commands"
        return HTML(f"<style bg='#444444' fg='#ffffff'> {text} </style>")
    except StabilizerError:
        return HTML("<style bg='#444444' fg='#ffffff'> Stabilizer </style>")


# Import command handlers after console/repl_context exist
from .commands import HANDLERS  # noqa: E402


def execute_command(result: ParseResult) -> bool:
    """
    Execute a parsed command.

    Returns:
        True to continue REPL loop, False to exit
    """
    command = result.command.lower()

    if command in ("exit", "quit"):
        console.print("[dim]Goodbye![/dim]")
        return False

    # Empty command (just Enter pressed)
    if not command:
        return True

    handler = HANDLERS.get(command)
    if handler:
        handler(result)
    else:
        console.print(f"[red]Unknown command:[/red] {command}")
        console.print("[dim]Type 'help' for available commands[/dim]")
    console.print()

    return True


def run_repl() -> None:
    """
    Main REPL loop.

    Exits on:
    - Ctrl+D (EOFError)
    - "exit" or "quit" commands
    Ctrl+C cancels the current line only.
    """
    has_tty = sys.stdin.isatty() and sys.stdout.isatty()

    session = None
    use_simple_input = not has_tty

    if has_tty:
        try:
            session = PromptSession(
                history=InMemoryHistory(),
                completer=create_completer(),
                complete_while_typing=True,
                bottom_toolbar=get_bottom_toolbar,
            )
        except Exception as e:
            console.print(f"[yellow]Warning:[/yellow] Running in simple input mode: {e}")
            use_simple_input = True

    console.print("[bold cyan]Stabilizer REPL[/bold cyan] - Type 'help' for commands, 'exit' to quit")
    if use_simple_input:
        console.print("[dim](Running in simple mode - no autocomplete)[/dim]")
    console.print()

    while True:
        try:
            if use_simple_input or session is None:
                user_input = input(repl_context.get_prompt())
            else:
                user_input = session.prompt(format_prompt())

            if not execute_command(parse_command(user_input)):
                break

        except KeyboardInterrupt:
            console.print("[dim]^C (Press Ctrl+D or type 'exit' to quit)[/dim]")
            continue
        except EOFError:
            console.print()
            console.print("[dim]Goodbye![/dim]")
            break
        except Exception as e:
            logger.exception("Unhandled error in REPL command")
            console.print(f"[red]Unexpected error:[/red] {e}")


def main() -> None:
    """
    Entry point for REPL mode.

    Called when user runs: stabilizer repl (or bare stabilizer)
    """
    try:
        run_repl()
    except Exception as e:
        console.print(f"[red]Fatal error:[/red] {e}")
        sys.exit(1)
