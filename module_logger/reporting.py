"""
Reporting and export utilities.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Tuple

import pandas as pd
from packaging import version as pkg_version
from packaging.version import InvalidVersion

from .errors import StorageIOError
from .models import UserPackages


logger = logging.getLogger(__name__)

COUNT_COLUMNS = ["user", "package", "version", "count"]


def version_sort_key(value: str) -> Tuple[int, object]:
    """Order PEP 440 versions numerically, anything else after them as text."""
    try:
        return (0, pkg_version.parse(value))
    except InvalidVersion:
        return (1, value)


def counts_to_frame(users: Iterable[UserPackages]) -> pd.DataFrame:
    rows = [
        {"user": user.name, "package": pkg.name, "version": pkg.version, "count": pkg.count}
        for user in users
        for pkg in user.packages
    ]
    rows.sort(key=lambda r: (r["user"], r["package"], version_sort_key(r["version"])))
    return pd.DataFrame(rows, columns=COUNT_COLUMNS)


def export_counts_csv(users: Iterable[UserPackages], output_path: Path) -> Path:
    df = counts_to_frame(users)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False)
    except OSError as e:
        raise StorageIOError(output_path, f"unable to write CSV: {e}") from e
    logger.debug("Wrote %d count rows to %s", len(df), output_path)
    return output_path
