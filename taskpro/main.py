from __future__ import annotations

import logging

from taskpro.config import SETTINGS
from taskpro.domain.ports import NotificationSink
from taskpro.infra.db import init_db
from taskpro.infra.logging import setup_logging
from taskpro.infra.notifier import DbNotifier, LoggingNotifier
from taskpro.infra.repository import TaskRepository
from taskpro.services.generation_sweep import GenerationSweep
from taskpro.services.instance_factory import InstanceFactory
from taskpro.services.scheduler import build_scheduler

logger = logging.getLogger(__name__)


def _build_notifier() -> NotificationSink:
    if SETTINGS.notification_backend == "log":
        return LoggingNotifier()
    return DbNotifier()


def build_sweep() -> GenerationSweep:
    repo = TaskRepository()
    factory = InstanceFactory(repo, _build_notifier())
    return GenerationSweep(repo, factory)


def main() -> None:
    setup_logging()
    try:
        init_db()
    except Exception:  # noqa: BLE001
        logger.exception("Database is not reachable")
        raise SystemExit(1)

    sweep = build_sweep()
    if SETTINGS.sweep_on_startup:
        sweep.run()

    scheduler = build_scheduler(sweep, SETTINGS)
    logger.info(
        "Recurring task sweep scheduled daily at %02d:%02d",
        SETTINGS.sweep_hour,
        SETTINGS.sweep_minute,
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
