"""
Debounce cache of recent module activations.

The cache is a JSON array of activation records stored in a single file.
Every invocation loads the whole file, decides, sweeps expired records and
rewrites the file. There is no locking: two processes that load before
either saves will each write their own view, and the later save wins.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .errors import CacheCorruptError
from .models import ModuleActivation
from .storage import atomic_write_text, read_bytes_if_present
from .time_utils import ensure_utc, utcnow


logger = logging.getLogger(__name__)


class ModuleCache:
    """Recent activations used to suppress duplicate log records."""

    def __init__(self, path: Path):
        """Initialize an empty cache.

        Args:
            path: Location of the persisted cache file
        """
        self.path = Path(path)
        self.activations: List[ModuleActivation] = []

    def load(self) -> "ModuleCache":
        """Read the persisted activations from ``path``.

        A missing or empty file leaves the cache empty.

        Returns:
            This cache, for chaining

        Raises:
            CacheCorruptError: if the file has content that is not a list of records
            StorageIOError: if the file exists but cannot be read
        """
        raw = read_bytes_if_present(self.path)
        if raw is None:
            logger.debug("No cache file at %s, starting empty", self.path)
            return self
        if not raw.strip():
            logger.debug("Cache file %s is empty", self.path)
            return self

        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise CacheCorruptError(self.path, f"invalid content: {e}") from e

        if data is None:
            return self
        if not isinstance(data, list):
            raise CacheCorruptError(
                self.path, f"expected a list of records, got {type(data).__name__}"
            )

        loaded = []
        for index, item in enumerate(data):
            try:
                loaded.append(ModuleActivation.from_dict(item))
            except ValueError as e:
                raise CacheCorruptError(self.path, f"record {index}: {e}") from e

        self.activations.extend(loaded)
        logger.debug("Loaded %d activations from %s", len(loaded), self.path)
        return self

    def save(self) -> None:
        """Overwrite ``path`` with the current activations.

        Raises:
            StorageIOError: if the file cannot be written
        """
        payload = [activation.to_dict() for activation in self.activations]
        atomic_write_text(self.path, json.dumps(payload) + "\n")
        logger.debug("Saved %d activations to %s", len(payload), self.path)

    def ready_to_write(self, candidate: ModuleActivation) -> bool:
        """Return False while a matching activation's debounce window is open."""
        for existing in self.activations:
            if existing.key == candidate.key and candidate.timestamp < existing.expiration:
                logger.debug(
                    "Suppressing duplicate %s until %s",
                    "/".join(candidate.key),
                    existing.expiration.isoformat(),
                )
                return False
        return True

    def add(self, activation: ModuleActivation) -> None:
        self.activations.append(activation)

    def clean(self, now: Optional[datetime] = None) -> int:
        """Drop activations whose expiration is not after ``now``.

        Returns:
            Number of activations removed
        """
        now = ensure_utc(now) if now is not None else utcnow()
        kept = [a for a in self.activations if not a.is_expired(now)]
        removed = len(self.activations) - len(kept)
        self.activations = kept
        if removed:
            logger.debug("Swept %d expired activations", removed)
        return removed

    def __len__(self) -> int:
        return len(self.activations)
