"""
Materializes occurrences of recurring tasks.

Every generated instance is an ordinary, non-recurring task pointing back at
its root through ``parent_id``. Storage guarantees one instance per series and
day; inside the process, writers for the same series are serialized through
``series_lock``.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import timedelta
from typing import Iterator

from taskpro.domain.entities import TaskEntity
from taskpro.domain.enums import NotificationKind, TaskStatus
from taskpro.domain.errors import DuplicateOccurrenceError
from taskpro.domain.filters import TaskFilters
from taskpro.domain.ports import NotificationSink, TaskStore

from .recurrence import next_due_date

logger = logging.getLogger(__name__)


class InstanceFactory:
    def __init__(self, repo: TaskStore, notifier: NotificationSink) -> None:
        self._repo = repo
        self._notifier = notifier
        self._locks: dict[int, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def series_lock(self, root_id: int) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(root_id, threading.RLock())
        with lock:
            yield

    def forget_series(self, root_id: int) -> None:
        with self._locks_guard:
            self._locks.pop(root_id, None)

    def create_instance(self, parent: TaskEntity) -> TaskEntity | None:
        """Create the next occurrence of ``parent``.

        Returns ``None`` when the series has ended, when the occurrence is
        already stored, or when persisting failed. Never raises.
        """
        with self.series_lock(parent.id):
            return self._create(parent)

    def ensure_upcoming(self, root: TaskEntity) -> TaskEntity | None:
        """Create the root's next occurrence unless one is already due that day.

        Storage errors propagate to the caller.
        """
        with self.series_lock(root.id):
            root = self._roll_forward(root)
            next_due = next_due_date(root)
            existing = self._repo.count_tasks(
                TaskFilters(
                    parent_id=root.id,
                    due_from=next_due,
                    due_before=next_due + timedelta(days=1),
                )
            )
            if existing:
                logger.debug("Task %s already has an instance due %s", root.id, next_due)
                return None
            return self._create(root)

    def _roll_forward(self, root: TaskEntity) -> TaskEntity:
        completed = self._repo.find_tasks(
            TaskFilters(
                parent_id=root.id,
                status=TaskStatus.COMPLETED,
                due_from=root.due_date + timedelta(days=1),
            )
        )
        if not completed:
            return root
        latest = max(task.due_date for task in completed)
        updated = self._repo.update_task(root.id, {"due_date": latest})
        logger.info("Advanced recurring task %s to %s", root.id, latest)
        return updated or root

    def _create(self, parent: TaskEntity) -> TaskEntity | None:
        next_due = next_due_date(parent)
        if parent.recurrence_end_date and next_due > parent.recurrence_end_date:
            logger.debug("Recurring task %s ended on %s", parent.id, parent.recurrence_end_date)
            return None

        try:
            instance = self._repo.create_task({
                "title": parent.title,
                "description": parent.description,
                "status": TaskStatus.TODO.value,
                "priority": parent.priority,
                "due_date": next_due,
                "assigned_to": parent.assigned_to,
                "created_by": parent.created_by,
                "is_recurring": False,
                "parent_id": parent.id,
            })
        except DuplicateOccurrenceError:
            logger.info("Task %s already has an instance due %s", parent.id, next_due)
            return None
        except Exception:  # noqa: BLE001
            logger.exception("Failed to create instance of recurring task %s", parent.id)
            return None

        logger.info("Created task %s from recurring task %s due %s", instance.id, parent.id, next_due)
        if instance.assigned_to != instance.created_by:
            self._notify_assignee(instance)
        return instance

    def _notify_assignee(self, instance: TaskEntity) -> None:
        try:
            self._notifier.notify(
                instance.assigned_to,
                f"New recurring task: {instance.title}",
                NotificationKind.TASK_ASSIGNED,
                instance.id,
            )
        except Exception:  # noqa: BLE001
            logger.exception("Failed to notify user %s about task %s", instance.assigned_to, instance.id)
