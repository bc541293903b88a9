"""
Helpers for reading and atomically replacing small JSON state files.
"""

from __future__ import annotations

import json
import os
import stat
import tempfile
from pathlib import Path
from typing import Any, Optional

from .errors import StorageIOError


def read_bytes_if_present(path: Path) -> Optional[bytes]:
    """Return the raw file contents, or None when the file does not exist.

    Decoding is left to the caller so that undecodable content can be
    reported as corruption rather than as a read failure.
    """
    try:
        with open(path, 'rb') as f:
            return f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StorageIOError(path, f"unable to read file: {e}") from e


def atomic_write_text(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` via a temporary file in the same directory.

    An existing file keeps its permission bits; a new file is owner-only.
    """
    path = Path(path)
    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            encoding="utf-8",
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        try:
            os.chmod(temp_path, stat.S_IMODE(os.stat(path).st_mode))
        except FileNotFoundError:
            pass
        os.replace(temp_path, path)
    except OSError as e:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()
        raise StorageIOError(path, f"unable to write file: {e}") from e


def write_json(path: Path, payload: Any) -> None:
    atomic_write_text(path, json.dumps(payload, indent=2) + "\n")
