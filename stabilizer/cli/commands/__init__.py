"""
FILE: stabilizer/cli/commands/__init__.py
PURPOSE: CLI command modules
"""

# Importing a module registers its commands on the shared Typer apps
from . import habits, review, system, tasks, workflow

__all__ = [
    "habits",
    "review",
    "system",
    "tasks",
    "workflow",
]
