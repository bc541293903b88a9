"""
Append-only JSON-lines log of accepted module activations.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from .errors import StorageIOError
from .models import ModuleActivation
from .time_utils import format_timestamp


ACTIVATION_LOGGER_NAME = "module_logger.activations"
ACTIVATION_MESSAGE = "loaded module"

# Attributes every LogRecord carries; anything else came in via ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """Format each record as one JSON object.

    Outputs ``time``, ``level`` and ``msg`` followed by any fields passed
    through ``extra``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": format_timestamp(
                datetime.fromtimestamp(record.created, tz=timezone.utc)
            ),
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value
        return json.dumps(entry, default=str)


class StrictFileHandler(logging.FileHandler):
    """File handler that re-raises write failures instead of printing them."""

    def handleError(self, record: logging.LogRecord) -> None:
        raise


def activation_fields(activation: ModuleActivation) -> dict:
    return {
        "user": activation.username,
        "package": activation.package_name,
        "version": activation.package_version,
        "path": activation.module_file_path,
    }


def log_activation(activity_logger: logging.Logger, activation: ModuleActivation) -> None:
    activity_logger.info(ACTIVATION_MESSAGE, extra=activation_fields(activation))


def get_activation_logger(handler: logging.Handler) -> logging.Logger:
    """Return the activation logger writing only to ``handler``."""
    handler.setFormatter(JsonLineFormatter())
    activity_logger = logging.getLogger(ACTIVATION_LOGGER_NAME)
    activity_logger.setLevel(logging.INFO)
    activity_logger.propagate = False
    for existing in list(activity_logger.handlers):
        activity_logger.removeHandler(existing)
    activity_logger.addHandler(handler)
    return activity_logger


def append_activation(log_file_path: Path, activation: ModuleActivation) -> None:
    """Append one activation record to the log file.

    The file is created if missing; its directory must already exist.

    Raises:
        StorageIOError: if the log file cannot be opened or written
    """
    try:
        handler = StrictFileHandler(log_file_path, mode="a", encoding="utf-8")
    except OSError as e:
        raise StorageIOError(log_file_path, f"error opening log file for appending: {e}") from e

    activity_logger = get_activation_logger(handler)
    try:
        log_activation(activity_logger, activation)
    except OSError as e:
        raise StorageIOError(log_file_path, f"error writing log file: {e}") from e
    finally:
        activity_logger.removeHandler(handler)
        handler.close()
