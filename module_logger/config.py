"""
Runtime configuration and operator defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List


logger = logging.getLogger(__name__)

DEFAULT_EXPIRE_SECONDS = 300
DEFAULT_CACHE_FILE_PATH = "/gpfs/t2/module-logger/cache.json"
DEFAULT_LOG_FILE_PATH = "/gpfs/t2/module-logger/modules.log"
DEFAULT_COUNTS_FILE_PATH = "/gpfs/t2/module-logger/counts.json"

CACHE_FILE_ENV = "MODULE_LOGGER_CACHE_FILE"
LOG_FILE_ENV = "MODULE_LOGGER_LOG_FILE"
EXPIRE_SECONDS_ENV = "MODULE_LOGGER_EXPIRE_SECONDS"
COUNTS_FILE_ENV = "MODULE_COUNTER_FILE"


def default_cache_file_path() -> str:
    return os.getenv(CACHE_FILE_ENV) or DEFAULT_CACHE_FILE_PATH


def default_log_file_path() -> str:
    return os.getenv(LOG_FILE_ENV) or DEFAULT_LOG_FILE_PATH


def default_counts_file_path() -> str:
    return os.getenv(COUNTS_FILE_ENV) or DEFAULT_COUNTS_FILE_PATH


def default_expire_seconds() -> int:
    value = os.getenv(EXPIRE_SECONDS_ENV)
    if not value:
        return DEFAULT_EXPIRE_SECONDS
    try:
        return int(value)
    except ValueError:
        logger.warning(
            "Ignoring %s=%r, using %d", EXPIRE_SECONDS_ENV, value, DEFAULT_EXPIRE_SECONDS
        )
        return DEFAULT_EXPIRE_SECONDS


@dataclass(frozen=True)
class RunConfig:
    """Inputs for a single module-logger invocation."""

    user: str
    package: str
    version: str
    module_file_path: str = ""
    expire_seconds: int = DEFAULT_EXPIRE_SECONDS
    cache_file_path: Path = Path(DEFAULT_CACHE_FILE_PATH)
    log_file_path: Path = Path(DEFAULT_LOG_FILE_PATH)

    def missing_fields(self) -> List[str]:
        required = {"user": self.user, "package": self.package, "version": self.version}
        return [name for name, value in required.items() if not value]

    def is_valid(self) -> bool:
        return not self.missing_fields()
