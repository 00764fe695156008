from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler

from taskpro.config import Settings

from .generation_sweep import GenerationSweep

SWEEP_JOB_ID = "recurring-task-sweep"


def build_scheduler(sweep: GenerationSweep, settings: Settings, background: bool = False) -> BaseScheduler:
    scheduler = BackgroundScheduler() if background else BlockingScheduler()
    scheduler.add_job(
        sweep.run,
        "cron",
        hour=settings.sweep_hour,
        minute=settings.sweep_minute,
        id=SWEEP_JOB_ID,
        name="Generate recurring task instances",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler
