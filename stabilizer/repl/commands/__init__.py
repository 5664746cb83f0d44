"""
FILE: stabilizer/repl/commands/__init__.py
PURPOSE: REPL command handlers and the dispatch table
"""

from .habits import handle_check_command, handle_habits_command, handle_stats_command
from .system import handle_domain_command, handle_help_command
from .tasks import (
    handle_add_command,
    handle_done_command,
    handle_ls_command,
    handle_pin_command,
    handle_start_command,
    handle_today_command,
    handle_undo_command,
    handle_unpin_command,
    handle_waiting_command,
)

HANDLERS = {
    "today": handle_today_command,
    "waiting": handle_waiting_command,
    "ls": handle_ls_command,
    "add": handle_add_command,
    "done": handle_done_command,
    "undo": handle_undo_command,
    "pin": handle_pin_command,
    "unpin": handle_unpin_command,
    "start": handle_start_command,
    "habits": handle_habits_command,
    "check": handle_check_command,
    "stats": handle_stats_command,
    "domain": handle_domain_command,
    "help": handle_help_command,
}

__all__ = ["HANDLERS"]
