from __future__ import annotations

import logging
from datetime import datetime

from taskpro.domain.entities import TaskEntity, UserRef
from taskpro.domain.enums import NotificationKind, RecurrenceType, TaskStatus
from taskpro.domain.errors import PermissionDeniedError, TaskValidationError
from taskpro.domain.filters import TaskFilters
from taskpro.domain.permissions import has_permission
from taskpro.domain.ports import NotificationSink, TaskStore

from .instance_factory import InstanceFactory

logger = logging.getLogger(__name__)

RECURRENCE_FIELDS = ("is_recurring", "recurrence_type")


class TaskService:
    def __init__(self, repo: TaskStore, factory: InstanceFactory, notifier: NotificationSink) -> None:
        self._repo = repo
        self._factory = factory
        self._notifier = notifier

    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        return self._repo.find_tasks(filters)

    def get_task(self, task_id: int) -> TaskEntity | None:
        return self._repo.get_task(task_id)

    def create_task(self, data: dict, actor: UserRef | None = None) -> TaskEntity:
        normalized = self._normalize_data(data)
        if actor is not None:
            normalized.setdefault("created_by", actor.id)
            normalized.setdefault("assigned_to", actor.id)
        self._validate_recurrence(normalized)
        if not normalized.get("is_recurring"):
            normalized["is_recurring"] = False

        task = self._repo.create_task(normalized)
        if task.is_root:
            self._generate(self._factory.create_instance, task)
        if task.assigned_to != task.created_by:
            self._notify(
                task.assigned_to,
                f"You have been assigned a new task: {task.title}",
                NotificationKind.TASK_ASSIGNED,
                task.id,
            )
        return task

    def update_task(self, task_id: int, data: dict, actor: UserRef | None = None) -> TaskEntity | None:
        task = self._repo.get_task(task_id)
        if not task:
            return None
        self._check_access(task, actor, "tasks:update-all")

        normalized = self._normalize_data(data)
        if task.parent_id is not None and normalized.get("is_recurring"):
            raise TaskValidationError("A recurring task instance cannot become recurring")
        if task.is_recurring or normalized.get("is_recurring"):
            self._validate_recurrence({**_recurrence_of(task), **normalized})

        status = normalized.get("status")
        if status == TaskStatus.COMPLETED.value and "completed_at" not in normalized:
            normalized["completed_at"] = datetime.utcnow()
        if status and status != TaskStatus.COMPLETED.value:
            normalized["completed_at"] = None

        updated = self._repo.update_task(task_id, normalized)
        if not updated:
            return None

        now_completed = status == TaskStatus.COMPLETED.value and task.status != TaskStatus.COMPLETED
        if now_completed:
            self._handle_completion(updated)

        recurrence_changed = any(
            key in normalized and normalized[key] != getattr(task, key) for key in RECURRENCE_FIELDS
        )
        if recurrence_changed and updated.is_root:
            self._reschedule(updated)

        self._notify_changes(task, updated, normalized, actor)
        return updated

    def mark_done(self, task_id: int, actor: UserRef | None = None) -> TaskEntity | None:
        return self.update_task(task_id, {"status": TaskStatus.COMPLETED}, actor)

    def delete_task(self, task_id: int, actor: UserRef | None = None) -> None:
        task = self._repo.get_task(task_id)
        if not task:
            return
        self._check_access(task, actor, "tasks:delete-all")
        if not task.is_root:
            self._repo.delete_task(task.id)
            logger.info("Deleted task %s", task_id)
            return
        # completed instances stay as history, detached from the series
        with self._factory.series_lock(task.id):
            self._repo.delete_tasks(TaskFilters(parent_id=task.id, exclude_status=TaskStatus.COMPLETED))
            self._repo.delete_task(task.id)
        self._factory.forget_series(task.id)
        logger.info("Deleted task %s", task_id)

    def _handle_completion(self, task: TaskEntity) -> None:
        if task.is_root:
            self._generate(self._factory.create_instance, task)
        elif task.parent_id is not None:
            root = self._repo.get_task(task.parent_id)
            if root and root.is_root:
                self._generate(self._factory.ensure_upcoming, root)

    def _reschedule(self, root: TaskEntity) -> None:
        with self._factory.series_lock(root.id):
            removed = self._repo.delete_tasks(
                TaskFilters(parent_id=root.id, exclude_status=TaskStatus.COMPLETED)
            )
            logger.info("Recurrence of task %s changed, removed %d pending instances", root.id, removed)
            self._generate(self._factory.create_instance, root)

    def _notify_changes(
        self,
        before: TaskEntity,
        after: TaskEntity,
        changes: dict,
        actor: UserRef | None,
    ) -> None:
        reassigned = "assigned_to" in changes and after.assigned_to != before.assigned_to
        if reassigned:
            self._notify(
                after.assigned_to,
                f"You have been assigned to task: {after.title}",
                NotificationKind.TASK_ASSIGNED,
                after.id,
            )
        completed = after.status == TaskStatus.COMPLETED and before.status != TaskStatus.COMPLETED
        if completed and actor is not None and actor.id != after.created_by:
            self._notify(
                after.created_by,
                f"Task completed: {after.title}",
                NotificationKind.TASK_COMPLETED,
                after.id,
            )
        if actor is not None and actor.id != before.assigned_to and not reassigned:
            self._notify(
                before.assigned_to,
                f"Task updated: {after.title}",
                NotificationKind.TASK_UPDATED,
                after.id,
            )

    def _generate(self, action, task: TaskEntity) -> TaskEntity | None:
        try:
            return action(task)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to generate next instance of recurring task %s", task.id)
            return None

    def _notify(self, user_id: int, message: str, kind: NotificationKind, task_id: int | None) -> None:
        try:
            self._notifier.notify(user_id, message, kind, task_id)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to notify user %s", user_id)

    @staticmethod
    def _check_access(task: TaskEntity, actor: UserRef | None, permission: str) -> None:
        if actor is None or actor.id == task.created_by or has_permission(actor, permission):
            return
        raise PermissionDeniedError(f"User {actor.id} may not modify task {task.id}")

    @staticmethod
    def _validate_recurrence(data: dict) -> None:
        if not data.get("is_recurring"):
            return
        if data.get("parent_id") is not None:
            raise TaskValidationError("A recurring task instance cannot become recurring")
        if not data.get("recurrence_type"):
            raise TaskValidationError("Recurring type is required for recurring tasks")
        try:
            RecurrenceType(data["recurrence_type"])
        except ValueError:
            raise TaskValidationError(
                "Recurring type must be daily, weekly, monthly, or custom"
            ) from None
        interval = data.get("recurrence_interval")
        if interval is not None and (not isinstance(interval, int) or interval < 1):
            raise TaskValidationError("Recurring interval must be a positive integer")
        if any(day not in range(7) for day in data.get("recurrence_days") or ()):
            raise TaskValidationError("Recurring days must be between 0 and 6")
        day_of_month = data.get("recurrence_day_of_month")
        if day_of_month is not None and day_of_month not in range(1, 32):
            raise TaskValidationError("Recurring date must be between 1 and 31")

    def _normalize_data(self, data: dict) -> dict:
        normalized = dict(data)
        for key in ("status", "priority", "recurrence_type"):
            value = normalized.get(key)
            if value is not None and hasattr(value, "value"):
                normalized[key] = value.value
        if "recurrence_days" in normalized:
            normalized["recurrence_days"] = tuple(sorted(set(normalized["recurrence_days"] or ())))
        return normalized


def _recurrence_of(task: TaskEntity) -> dict:
    return {
        "is_recurring": task.is_recurring,
        "parent_id": task.parent_id,
        "recurrence_type": task.recurrence_type,
        "recurrence_interval": task.recurrence_interval,
        "recurrence_days": task.recurrence_days,
        "recurrence_day_of_month": task.recurrence_day_of_month,
    }
