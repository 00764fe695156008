from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from taskpro.config import PROJECT_ROOT, SETTINGS, Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
QUIET_LOGGERS = ("apscheduler", "sqlalchemy.engine")


def log_file_path(settings: Settings = SETTINGS) -> Path:
    log_dir = Path(settings.log_dir)
    if not log_dir.is_absolute():
        log_dir = PROJECT_ROOT / log_dir
    return log_dir / "taskpro.log"


def setup_logging(settings: Settings = SETTINGS) -> None:
    log_file = log_file_path(settings)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    file_handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=settings.log_level.upper(),
        handlers=[file_handler, console_handler],
    )
    # the scheduler logs every job run and the engine every statement at INFO
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
