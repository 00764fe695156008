from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()
NOTIFICATION_BACKENDS = ("db", "log")


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str = "INFO"
    log_dir: str = "logs"
    sweep_hour: int = 0
    sweep_minute: int = 0
    sweep_on_startup: bool = False
    notification_backend: str = "db"


def _env_int(name: str, default: int, upper: int) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None
    if not 0 <= value < upper:
        raise RuntimeError(f"{name} must be between 0 and {upper - 1}, got {value}")
    return value


def load_settings() -> Settings:
    load_env()
    database_url = os.getenv("DATABASE_URL", "").strip()
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Create a .env file with your connection string.")

    backend = os.getenv("NOTIFICATION_BACKEND", "db").strip().lower() or "db"
    if backend not in NOTIFICATION_BACKENDS:
        raise RuntimeError(f"NOTIFICATION_BACKEND must be one of {', '.join(NOTIFICATION_BACKENDS)}")

    return Settings(
        database_url=database_url,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
        sweep_hour=_env_int("SWEEP_HOUR", 0, 24),
        sweep_minute=_env_int("SWEEP_MINUTE", 0, 60),
        sweep_on_startup=_env_flag("SWEEP_ON_STARTUP"),
        notification_backend=backend,
    )


SETTINGS = load_settings()
