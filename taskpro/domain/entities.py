from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .enums import RecurrenceType, Role, TaskPriority, TaskStatus


@dataclass(frozen=True)
class TaskEntity:
    id: int | None
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    due_date: date
    assigned_to: int
    created_by: int
    is_recurring: bool = False
    recurrence_type: RecurrenceType | None = None
    recurrence_interval: int | None = None
    recurrence_days: tuple[int, ...] = ()
    recurrence_day_of_month: int | None = None
    recurrence_end_date: Optional[date] = None
    parent_id: int | None = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_root(self) -> bool:
        return self.is_recurring and self.parent_id is None


@dataclass(frozen=True)
class UserRef:
    id: int
    role: Role | str
