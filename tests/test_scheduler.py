from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from taskpro.config import Settings
from taskpro.services.generation_sweep import GenerationSweep
from taskpro.services.instance_factory import InstanceFactory
from taskpro.services.scheduler import SWEEP_JOB_ID, build_scheduler

from fakes import FakeNotifier, FakeRepo


def make_sweep() -> GenerationSweep:
    repo = FakeRepo()
    return GenerationSweep(repo, InstanceFactory(repo, FakeNotifier()))


def test_sweep_runs_daily_at_configured_time() -> None:
    settings = Settings(database_url="sqlite://", sweep_hour=6, sweep_minute=30)

    scheduler = build_scheduler(make_sweep(), settings, background=True)

    assert isinstance(scheduler, BackgroundScheduler)
    job = scheduler.get_job(SWEEP_JOB_ID)
    assert isinstance(job.trigger, CronTrigger)
    fields = {field.name: str(field) for field in job.trigger.fields}
    assert fields["hour"] == "6"
    assert fields["minute"] == "30"
    assert job.max_instances == 1


def test_blocking_scheduler_by_default() -> None:
    settings = Settings(database_url="sqlite://")

    scheduler = build_scheduler(make_sweep(), settings)

    assert isinstance(scheduler, BlockingScheduler)
