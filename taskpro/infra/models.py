from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from .db import Base

OCCURRENCE_CONSTRAINT = "uq_tasks_parent_due_date"


def utcnow() -> datetime:
    return datetime.utcnow()


class TaskModel(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        # one generated instance per series per day; history outlives its root
        UniqueConstraint("parent_id", "due_date", name=OCCURRENCE_CONSTRAINT),
    )

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="todo", index=True)
    priority = Column(String(10), nullable=False, default="medium")
    due_date = Column(Date, nullable=False, index=True)
    assigned_to = Column(Integer, nullable=False, index=True)
    created_by = Column(Integer, nullable=False, index=True)
    is_recurring = Column(Boolean, nullable=False, default=False, index=True)
    recurrence_type = Column(String(20), nullable=True)
    recurrence_interval = Column(Integer, nullable=True)
    recurrence_days = Column(String(20), nullable=False, default="")
    recurrence_day_of_month = Column(Integer, nullable=True)
    recurrence_end_date = Column(Date, nullable=True)
    parent_id = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime, nullable=True)


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    message = Column(Text, nullable=False)
    kind = Column(String(30), nullable=False, default="system")
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
