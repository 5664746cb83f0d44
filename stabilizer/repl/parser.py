"""
FILE: stabilizer/repl/parser.py
PURPOSE: Parse user input into commands and arguments for REPL
EXPORTS:
  - ParseResult (dataclass for parsed commands)
  - parse_command(input_str) -> ParseResult
  - BOOLEAN_FLAGS
DEPENDENCIES:
  - shlex (for shell-like parsing with quotes)
NOTES:
  - Handles quoted strings: add "task with spaces"
  - Supports flags: --all, --due 2026-03-01, --estimate 30
  - Known boolean flags never swallow the following token
  - Case-insensitive command names
"""

import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Union

# Flags that never take a value
BOOLEAN_FLAGS = {"all", "pin", "json", "raw"}


@dataclass
class ParseResult:
    """
    Result of parsing a REPL command.

    Attributes:
        command: The command name (e.g., "add", "today", "check")
        args: Positional arguments (e.g., ["task title", "123"])
        flags: Flag arguments as dict (e.g., {"due": "2026-03-01", "pin": True})
        raw_input: Original input string
    """
    command: str
    args: List[str] = field(default_factory=list)
    flags: Dict[str, Union[str, bool]] = field(default_factory=dict)
    raw_input: str = ""


def parse_command(input_str: str) -> ParseResult:
    """
    Parse REPL input into command, args, and flags.

    Examples:
        >>> parse_command('add "Renew passport" --due 2026-03-01')
        ParseResult(command="add", args=["Renew passport"], flags={"due": "2026-03-01"})

        >>> parse_command("ls --all")
        ParseResult(command="ls", args=[], flags={"all": True})

        >>> parse_command("check 2 PARTIAL")
        ParseResult(command="check", args=["2", "PARTIAL"], flags={})

    Notes:
        - Command is always the first token (case-insensitive)
        - Value flags take the next token unless it is another flag
        - Unclosed quotes fall back to whitespace splitting
        - Empty input returns command="" with no args/flags
    """
    input_str = input_str.strip()
    if not input_str:
        return ParseResult(command="", raw_input=input_str)

    try:
        tokens = shlex.split(input_str)
    except ValueError:
        tokens = input_str.split()

    if not tokens:
        return ParseResult(command="", raw_input=input_str)

    command = tokens[0].lower()

    args: List[str] = []
    flags: Dict[str, Union[str, bool]] = {}
    i = 1

    while i < len(tokens):
        token = tokens[i]

        if token.startswith("--") and len(token) > 2:
            flag_name = token[2:].lower()
            has_value = i + 1 < len(tokens) and not tokens[i + 1].startswith("--")
            if flag_name not in BOOLEAN_FLAGS and has_value:
                flags[flag_name] = tokens[i + 1]
                i += 2
            else:
                flags[flag_name] = True
                i += 1
        else:
            args.append(token)
            i += 1

    return ParseResult(command=command, args=args, flags=flags, raw_input=input_str)
