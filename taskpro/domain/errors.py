from __future__ import annotations

from datetime import date


class TaskManagerError(Exception):
    """Base class for task manager errors."""


class DuplicateOccurrenceError(TaskManagerError):
    """An instance for this series and day is already stored."""

    def __init__(self, parent_id: int, due_date: date) -> None:
        super().__init__(f"Task {parent_id} already has an instance due {due_date.isoformat()}")
        self.parent_id = parent_id
        self.due_date = due_date


class TaskValidationError(TaskManagerError):
    pass


class PermissionDeniedError(TaskManagerError):
    pass
