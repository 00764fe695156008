from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from taskpro.domain.enums import NotificationKind

from .db import SessionLocal
from .models import NotificationModel

logger = logging.getLogger(__name__)


class DbNotifier:
    """Stores notifications for the user's notification center."""

    def __init__(self, session_factory: sessionmaker[Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def notify(
        self,
        user_id: int,
        message: str,
        kind: NotificationKind,
        related_task_id: int | None = None,
    ) -> None:
        with self._session_factory() as session:
            session.add(
                NotificationModel(
                    user_id=user_id,
                    message=message,
                    kind=NotificationKind(kind).value,
                    task_id=related_task_id,
                )
            )
            session.commit()


class LoggingNotifier:
    def notify(
        self,
        user_id: int,
        message: str,
        kind: NotificationKind,
        related_task_id: int | None = None,
    ) -> None:
        logger.info("Notify user %s [%s] %s (task %s)", user_id, kind, message, related_task_id)
