"""
Runtime settings for jobtracker.

Values come from environment variables (optionally seeded from a .env file
by :func:`jobtracker.env.load_env`). Malformed values fall back to defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_STORE_PATH = Path("data") / "jobs.json"
DEFAULT_LOG_DIR = Path("logs")

TRUTHY = {"true", "1", "yes", "on"}


def get_env_int(key: str, default: int, environ: Optional[Mapping[str, str]] = None) -> int:
    env = os.environ if environ is None else environ
    value = env.get(key, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_env_bool(key: str, default: bool, environ: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    value = env.get(key, "").strip()
    if not value:
        return default
    return value.lower() in TRUTHY


def get_env_str(key: str, default: str, environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return env.get(key, "").strip() or default


@dataclass(frozen=True)
class Settings:
    store_path: Path = DEFAULT_STORE_PATH
    log_level: str = "INFO"
    log_dir: Path = DEFAULT_LOG_DIR
    log_to_file: bool = True
    duplicate_detection: bool = True
    max_jobs_per_platform: int = 10


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from the environment.

    Args:
        environ: Mapping to read instead of os.environ (tests)

    Returns:
        Settings instance
    """
    return Settings(
        store_path=Path(get_env_str("JOBTRACKER_STORE", str(DEFAULT_STORE_PATH), environ)),
        log_level=get_env_str("LOG_LEVEL", "INFO", environ).upper(),
        log_dir=Path(get_env_str("JOBTRACKER_LOG_DIR", str(DEFAULT_LOG_DIR), environ)),
        log_to_file=get_env_bool("JOBTRACKER_LOG_FILE", True, environ),
        duplicate_detection=get_env_bool("DUPLICATE_DETECTION_ENABLED", True, environ),
        max_jobs_per_platform=get_env_int("MAX_JOBS_PER_PLATFORM", 10, environ),
    )
