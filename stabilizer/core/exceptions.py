"""
FILE: stabilizer/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - StabilizerError (base exception)
  - TaskNotFoundError
  - CategoryNotFoundError
  - HabitNotFoundError
  - WinNotFoundError
  - InvalidInputError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from StabilizerError for easy catching
  - The pure stack/habit functions never raise; service layer raises these
  - UI layers (CLI, REPL) catch and display
"""


class StabilizerError(Exception):
    """Base exception for all Stabilizer errors."""
    pass


class TaskNotFoundError(StabilizerError):
    """Task with given ID doesn't exist."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class CategoryNotFoundError(StabilizerError):
    """Category with given ID doesn't exist."""

    def __init__(self, category_id: str):
        self.category_id = category_id
        super().__init__(f"Category {category_id} not found")


class HabitNotFoundError(StabilizerError):
    """Habit with given ID doesn't exist."""

    def __init__(self, habit_id: str):
        self.habit_id = habit_id
        super().__init__(f"Habit {habit_id} not found")


class WinNotFoundError(StabilizerError):
    """Win with given ID doesn't exist."""

    def __init__(self, win_id: str):
        self.win_id = win_id
        super().__init__(f"Win {win_id} not found")


class InvalidInputError(StabilizerError):
    """Input validation failed."""

    def __init__(self, message: str):
        super().__init__(message)
