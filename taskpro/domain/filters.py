from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .enums import TaskStatus


@dataclass(frozen=True)
class TaskFilters:
    is_recurring: bool | None = None
    status: TaskStatus | None = None
    exclude_status: TaskStatus | None = None
    parent_id: int | None = None
    roots_only: bool = False
    due_from: Optional[date] = None
    due_before: Optional[date] = None
    assigned_to: int | None = None
    search: str | None = None
