"""
Ports used by the recurrence engine and the task service.

Services depend on these Protocols instead of the SQLAlchemy repository or a
concrete delivery channel, so they can be exercised with in-memory fakes.
"""
from __future__ import annotations

from typing import Protocol

from .entities import TaskEntity
from .enums import NotificationKind
from .filters import TaskFilters


class TaskStore(Protocol):
    """Task persistence.

    ``create_task`` raises ``DuplicateOccurrenceError`` when an instance for
    the same parent and due date already exists.
    """

    def create_task(self, data: dict) -> TaskEntity: ...

    def get_task(self, task_id: int) -> TaskEntity | None: ...

    def find_tasks(self, filters: TaskFilters) -> list[TaskEntity]: ...

    def count_tasks(self, filters: TaskFilters) -> int: ...

    def update_task(self, task_id: int, data: dict) -> TaskEntity | None: ...

    def delete_task(self, task_id: int) -> None: ...

    def delete_tasks(self, filters: TaskFilters) -> int: ...


class NotificationSink(Protocol):
    """Best-effort delivery of a notice to a user."""

    def notify(
        self,
        user_id: int,
        message: str,
        kind: NotificationKind,
        related_task_id: int | None = None,
    ) -> None: ...
