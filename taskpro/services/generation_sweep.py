from __future__ import annotations

import logging
from dataclasses import dataclass

from taskpro.domain.entities import TaskEntity
from taskpro.domain.enums import TaskStatus
from taskpro.domain.filters import TaskFilters
from taskpro.domain.ports import TaskStore

from .instance_factory import InstanceFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    processed: int = 0
    created: int = 0

    def __add__(self, other: SweepResult) -> SweepResult:
        return SweepResult(self.processed + other.processed, self.created + other.created)


class GenerationSweep:
    """Periodic generation of recurring task instances.

    Two independent passes run on every tick: completed roots regenerate
    their next instance, and every root gets an instance for its upcoming
    occurrence unless one is already stored for that day.
    """

    def __init__(self, repo: TaskStore, factory: InstanceFactory) -> None:
        self._repo = repo
        self._factory = factory

    def run(self) -> SweepResult:
        result = self.process_completed() + self.generate_upcoming()
        logger.info("Recurring sweep processed %d tasks, created %d", result.processed, result.created)
        return result

    def process_completed(self) -> SweepResult:
        tasks = self._fetch(TaskFilters(is_recurring=True, status=TaskStatus.COMPLETED))
        if tasks is None:
            return SweepResult()
        created = 0
        for task in tasks:
            if self._attempt(self._factory.create_instance, task):
                created += 1
        logger.info("Processed %d completed recurring tasks", len(tasks))
        return SweepResult(len(tasks), created)

    def generate_upcoming(self) -> SweepResult:
        roots = self._fetch(TaskFilters(is_recurring=True, roots_only=True))
        if roots is None:
            return SweepResult()
        created = 0
        for root in roots:
            if self._attempt(self._factory.ensure_upcoming, root):
                created += 1
        logger.info("Created %d new recurring task instances", created)
        return SweepResult(len(roots), created)

    def _fetch(self, filters: TaskFilters) -> list[TaskEntity] | None:
        try:
            return self._repo.find_tasks(filters)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to load recurring tasks for %s", filters)
            return None

    @staticmethod
    def _attempt(action, task: TaskEntity) -> TaskEntity | None:
        try:
            return action(task)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to generate instance for recurring task %s", task.id)
            return None
