# src/duetask/config.py

"""
Settings loaded from environment variables.

    DUETASK_STORE      task store file (default: ~/.duetask/tasks.yml)
    DUETASK_LOG_LEVEL  console log level (default: WARNING)
    DUETASK_LOG_FILE   optional log file

The --store CLI option overrides DUETASK_STORE.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "DUETASK"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return Path(raw).expanduser().resolve()


def _env_level(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip().upper()
    if not raw:
        return default
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else default


def default_store_path() -> Path:
    return (Path.home() / ".duetask" / "tasks.yml").resolve()


@dataclass(frozen=True, slots=True)
class Settings:
    store_path: Path
    log_level: int
    log_file: Optional[Path]


def get_settings(store: Optional[str] = None) -> Settings:
    """
    Resolve settings; `store` is the --store value, if given.
    """
    if store:
        store_path = Path(store).expanduser().resolve()
    else:
        store_path = _env_path(_k("STORE")) or default_store_path()

    return Settings(
        store_path=store_path,
        log_level=_env_level(_k("LOG_LEVEL"), logging.WARNING),
        log_file=_env_path(_k("LOG_FILE")),
    )
