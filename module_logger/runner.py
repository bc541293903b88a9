"""
One module-logger invocation: load, decide, log, sweep, save.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from .activity_log import append_activation
from .cache import ModuleCache
from .config import RunConfig
from .errors import UsageError
from .models import ModuleActivation
from .time_utils import utcnow


logger = logging.getLogger(__name__)


def run(config: RunConfig, now: Optional[datetime] = None) -> bool:
    """Record an activation unless it duplicates a recent one.

    Args:
        config: Invocation inputs
        now: Current instant, defaults to the wall clock

    Returns:
        True if a log record was written, False if it was suppressed

    Raises:
        UsageError: if a required field is empty, before any file is touched
        CacheCorruptError: if the cache file cannot be parsed
        StorageIOError: if the cache or log file cannot be read or written
    """
    missing = config.missing_fields()
    if missing:
        raise UsageError(f"missing required arguments: {', '.join(missing)}")

    now = now or utcnow()
    cache = ModuleCache(config.cache_file_path).load()

    activation = ModuleActivation.create(
        config.user,
        config.package,
        config.version,
        config.expire_seconds,
        module_file_path=config.module_file_path,
        now=now,
    )

    written = cache.ready_to_write(activation)
    if written:
        append_activation(config.log_file_path, activation)
        cache.add(activation)
        logger.debug("Logged activation %s", "/".join(activation.key))

    cache.clean(now)
    cache.save()
    return written
