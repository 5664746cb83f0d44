"""
FILE: stabilizer/repl/__init__.py
PURPOSE: REPL package for the interactive daily stack
EXPORTS:
  - main() (from repl.main)
DEPENDENCIES:
  - prompt_toolkit (REPL interface)
  - rich (formatted output)
  - stabilizer.core.service (business logic)
NOTES:
  - Entry point for interactive mode
  - Provides autocomplete and command history
"""

from .main import main

__all__ = ["main"]
