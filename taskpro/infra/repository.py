from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from taskpro.domain.entities import TaskEntity
from taskpro.domain.enums import RecurrenceType, TaskPriority, TaskStatus
from taskpro.domain.errors import DuplicateOccurrenceError
from taskpro.domain.filters import TaskFilters

from .db import SessionLocal
from .models import OCCURRENCE_CONSTRAINT, TaskModel

logger = logging.getLogger(__name__)


def _join_days(days: Iterable[int] | None) -> str:
    return ",".join(str(day) for day in sorted(set(days or ())))


def _split_days(raw: str | None) -> tuple[int, ...]:
    if not raw:
        return ()
    return tuple(int(part) for part in raw.split(",") if part.strip())


def _is_duplicate_occurrence(exc: IntegrityError) -> bool:
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == OCCURRENCE_CONSTRAINT
    # sqlite names the columns instead of the constraint
    message = str(exc.orig)
    return OCCURRENCE_CONSTRAINT in message or "tasks.parent_id, tasks.due_date" in message


def _to_entity(model: TaskModel) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        title=model.title,
        description=model.description,
        status=TaskStatus(model.status),
        priority=TaskPriority(model.priority),
        due_date=model.due_date,
        assigned_to=model.assigned_to,
        created_by=model.created_by,
        is_recurring=model.is_recurring,
        recurrence_type=RecurrenceType(model.recurrence_type) if model.recurrence_type else None,
        recurrence_interval=model.recurrence_interval,
        recurrence_days=_split_days(model.recurrence_days),
        recurrence_day_of_month=model.recurrence_day_of_month,
        recurrence_end_date=model.recurrence_end_date,
        parent_id=model.parent_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
        completed_at=model.completed_at,
    )


def _to_columns(data: dict) -> dict:
    columns = dict(data)
    if "recurrence_days" in columns:
        columns["recurrence_days"] = _join_days(columns["recurrence_days"])
    return columns


def _apply_filters(stmt, filters: TaskFilters) -> object:
    if filters.is_recurring is not None:
        stmt = stmt.where(TaskModel.is_recurring.is_(filters.is_recurring))
    if filters.status is not None:
        stmt = stmt.where(TaskModel.status == filters.status.value)
    if filters.exclude_status is not None:
        stmt = stmt.where(TaskModel.status != filters.exclude_status.value)
    if filters.parent_id is not None:
        stmt = stmt.where(TaskModel.parent_id == filters.parent_id)
    if filters.roots_only:
        stmt = stmt.where(TaskModel.parent_id.is_(None))
    if filters.due_from is not None:
        stmt = stmt.where(TaskModel.due_date >= filters.due_from)
    if filters.due_before is not None:
        stmt = stmt.where(TaskModel.due_date < filters.due_before)
    if filters.assigned_to is not None:
        stmt = stmt.where(TaskModel.assigned_to == filters.assigned_to)

    if filters.search:
        pattern = f"%{filters.search}%"
        stmt = stmt.where(
            or_(
                TaskModel.title.ilike(pattern),
                TaskModel.description.ilike(pattern),
            )
        )

    return stmt


class TaskRepository:
    def __init__(self, session_factory: sessionmaker[Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def find_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        with self._session_factory() as session:
            stmt = select(TaskModel)
            stmt = _apply_filters(stmt, filters)
            stmt = stmt.order_by(TaskModel.due_date.asc(), TaskModel.id.asc())
            return [_to_entity(task) for task in session.scalars(stmt)]

    def count_tasks(self, filters: TaskFilters) -> int:
        with self._session_factory() as session:
            stmt = _apply_filters(select(func.count()).select_from(TaskModel), filters)
            return session.scalar(stmt) or 0

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            return _to_entity(task) if task else None

    def create_task(self, data: dict) -> TaskEntity:
        with self._session_factory() as session:
            task = TaskModel(**_to_columns(data))
            session.add(task)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if data.get("parent_id") is None or not _is_duplicate_occurrence(exc):
                    raise
                raise DuplicateOccurrenceError(data["parent_id"], data["due_date"]) from None
            session.refresh(task)
            return _to_entity(task)

    def update_task(self, task_id: int, data: dict) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return None

            for key, value in _to_columns(data).items():
                setattr(task, key, value)
            parent_id, due_date = task.parent_id, task.due_date
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if parent_id is None or not _is_duplicate_occurrence(exc):
                    raise
                raise DuplicateOccurrenceError(parent_id, due_date) from None
            session.refresh(task)
            return _to_entity(task)

    def delete_tasks(self, filters: TaskFilters) -> int:
        with self._session_factory() as session:
            tasks = session.scalars(_apply_filters(select(TaskModel), filters)).all()
            for task in tasks:
                session.delete(task)
            session.commit()
            logger.debug("Deleted %d tasks", len(tasks))
            return len(tasks)

    def delete_task(self, task_id: int) -> None:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return
            session.delete(task)
            session.commit()
