"""Error taxonomy for command execution and automation.

Parse problems are 400s, resolution failures 404s. Storage errors are not
wrapped; they surface as 500s from the framework.
"""

from __future__ import annotations

from ..commands.resolver import ColumnNotFound, ResolutionError, TaskNotFound

__all__ = [
    "BoardNotFound",
    "ColumnNotFound",
    "CommandError",
    "CommandParseError",
    "ResolutionError",
    "TaskAlreadyArchived",
    "TaskNotArchived",
    "TaskNotFound",
]


class CommandError(ValueError):
    """A command or action that cannot be carried out as asked."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CommandParseError(CommandError):
    """Low confidence, unknown command, or a required fragment is missing."""


class TaskAlreadyArchived(CommandError):
    def __init__(self, title: str):
        super().__init__(f'Task "{title}" is already archived')


class TaskNotArchived(CommandError):
    def __init__(self, title: str):
        super().__init__(f'Task "{title}" is not archived')


class BoardNotFound(ResolutionError):
    def __init__(self, board_id: str | None):
        super().__init__(board_id, "Board not found" if board_id else "No board found")
