"""
FILE: stabilizer/repl/completer.py
PURPOSE: Autocomplete logic for REPL commands and arguments
EXPORTS:
  - StabilizerCompleter (Completer for command/arg completion)
  - create_completer() -> StabilizerCompleter
DEPENDENCIES:
  - prompt_toolkit.completion (Completer, Completion)
  - stabilizer.core.constants (statuses, domains, log statuses, ranges)
NOTES:
  - Suggests command names when at start of line
  - Suggests domains after "domain" and after --domain
  - Suggests statuses after --status
  - Suggests log statuses as the second argument of "check"
  - Suggests ranges as the second argument of "stats"
  - Case-insensitive matching
"""

from typing import Iterable, List

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from ..core.constants import VALID_DOMAINS, VALID_LOG_STATUSES, VALID_RANGES, VALID_STATUSES


class StabilizerCompleter(Completer):
    """
    Custom completer for the Stabilizer REPL.

    Provides context-aware autocomplete:
    - Command names at start of input
    - Flags after command names
    - Enumerated values (domains, statuses, log statuses, ranges)
    """

    COMMANDS = [
        "today", "waiting", "ls", "add", "done", "undo", "pin", "unpin",
        "start", "habits", "check", "stats", "domain", "help", "exit", "quit",
    ]

    COMMAND_DESCRIPTIONS = {
        "today": "Show today's stack",
        "waiting": "List waiting tasks",
        "ls": "List tasks",
        "add": "Create a task",
        "done": "Mark task(s) done",
        "undo": "Reopen task(s)",
        "pin": "Pin task(s) into today",
        "unpin": "Unpin task(s)",
        "start": "Start task(s)",
        "habits": "Habits due today",
        "check": "Log a habit for today",
        "stats": "Habit consistency and streak",
        "domain": "Switch working domain",
        "help": "Show help",
        "exit": "Exit REPL",
        "quit": "Exit REPL",
    }

    COMMAND_FLAGS = {
        "ls": ["--all", "--status", "--domain"],
        "add": ["--category", "--due", "--soft", "--estimate", "--money", "--pin", "--domain"],
        "today": ["--max"],
        "check": ["--value", "--date", "--note"],
    }

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on current input.

        Logic:
            1. If at start or only whitespace -> suggest commands
            2. After --domain / --status -> suggest values
            3. Positional enumerations for domain, check, stats
            4. Otherwise after a space or on a partial flag -> suggest flags
        """
        text_before_cursor = document.text_before_cursor
        words = text_before_cursor.split()
        at_new_word = text_before_cursor.endswith(" ")

        if not words or (not at_new_word and len(words) == 1):
            word = words[0] if words else ""
            yield from self._complete_commands(word)
            return

        command = words[0].lower()
        current = "" if at_new_word else words[-1]
        previous = words[-1] if at_new_word else (words[-2] if len(words) >= 2 else "")
        # Position of the argument being typed (1 = first after the command)
        position = len(words) if at_new_word else len(words) - 1

        if previous == "--domain":
            yield from self._complete_values(VALID_DOMAINS, current)
            return
        if previous == "--status":
            yield from self._complete_values(VALID_STATUSES, current)
            return

        if command == "domain" and position == 1:
            yield from self._complete_values(VALID_DOMAINS, current)
            return
        if command == "check" and position == 2:
            yield from self._complete_values(VALID_LOG_STATUSES, current)
            return
        if command == "stats" and position == 2:
            yield from self._complete_values(VALID_RANGES, current)
            return

        # Partial non-flag word: a title or id being typed
        if current and not current.startswith("--"):
            return

        yield from self._complete_flags(command, current)

    def _complete_commands(self, word: str) -> Iterable[Completion]:
        word_lower = word.lower()
        for command in self.COMMANDS:
            if command.startswith(word_lower):
                yield Completion(
                    command,
                    start_position=-len(word),
                    display=command,
                    display_meta=self.COMMAND_DESCRIPTIONS.get(command, ""),
                )

    def _complete_flags(self, command: str, word: str) -> Iterable[Completion]:
        word_lower = word.lower()
        for flag in self.COMMAND_FLAGS.get(command, []):
            if flag.startswith(word_lower):
                yield Completion(flag, start_position=-len(word), display=flag)

    def _complete_values(self, values: List[str], word: str) -> Iterable[Completion]:
        word_upper = word.upper()
        for value in values:
            if value.startswith(word_upper):
                yield Completion(value, start_position=-len(word), display=value)


def create_completer() -> StabilizerCompleter:
    """Factory function to create completer instance."""
    return StabilizerCompleter()
