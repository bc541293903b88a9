"""
Per-user package load counter.

Keeps a running count of how often each user loaded each package version.
This is independent of the activation cache and does no debouncing.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .cli import configure_diagnostics, print_error_and_exit
from .config import default_counts_file_path
from .errors import CountsCorruptError, ModuleLoggerError
from .models import PackageCount, UserPackages
from .reporting import export_counts_csv
from .storage import read_bytes_if_present, write_json


logger = logging.getLogger(__name__)

USAGE = "module-counter --user <username> --package <package> --version <version>"


def read_user_packages(path: Path) -> List[UserPackages]:
    """Load per-user package counts.

    Args:
        path: Counts file location

    Returns:
        List of users with their package counts, empty if the file is absent

    Raises:
        CountsCorruptError: if the file has content that does not parse
        StorageIOError: if the file exists but cannot be read
    """
    raw = read_bytes_if_present(path)
    if raw is None or not raw.strip():
        return []

    try:
        data = json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise CountsCorruptError(path, f"invalid content: {e}") from e

    if not isinstance(data, dict):
        raise CountsCorruptError(path, "expected an object with a 'users' list")
    users = data.get("users") or []
    if not isinstance(users, list):
        raise CountsCorruptError(path, "'users' must be a list")

    try:
        return [UserPackages.from_dict(user) for user in users]
    except ValueError as e:
        raise CountsCorruptError(path, str(e)) from e


def write_user_packages(users: List[UserPackages], path: Path) -> None:
    write_json(path, {"users": [user.to_dict() for user in users]})


def increment_package(
    users: List[UserPackages],
    username: str,
    package_name: str,
    package_version: str,
) -> List[UserPackages]:
    """Add one load of ``package_name``/``package_version`` for ``username``."""
    for user in users:
        if user.name != username:
            continue
        for pkg in user.packages:
            if pkg.name == package_name and pkg.version == package_version:
                pkg.count += 1
                logger.debug(
                    "Incremented count for %s %s/%s to %d",
                    username, package_name, package_version, pkg.count,
                )
                return users
        user.packages.append(PackageCount(name=package_name, version=package_version, count=1))
        logger.debug("Added package %s/%s for %s", package_name, package_version, username)
        return users

    users.append(
        UserPackages(
            name=username,
            packages=[PackageCount(name=package_name, version=package_version, count=1)],
        )
    )
    logger.debug("Added user %s with package %s/%s", username, package_name, package_version)
    return users


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="module-counter",
        usage=USAGE,
        description="Count module loads per user, package and version",
    )
    parser.add_argument("--user", default="", help="Username")
    parser.add_argument("--package", default="", help="Package name")
    parser.add_argument("--version", default="", help="Package version")
    parser.add_argument(
        "--counts-file-path",
        default=default_counts_file_path(),
        help="Path for the counts file. Default: %(default)s"
    )
    parser.add_argument(
        "--export-csv",
        default=None,
        help="Also write the updated counts as CSV to this path"
    )
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    return parser


def main(argv: Optional[List[str]] = None):
    """Entry point for the module-counter CLI."""
    args = build_parser().parse_args(argv)

    if not args.user or not args.package or not args.version:
        print(f"Usage: {USAGE}")
        sys.exit(1)

    configure_diagnostics(args.debug)

    counts_path = Path(args.counts_file_path)
    try:
        users = read_user_packages(counts_path)
        users = increment_package(users, args.user, args.package, args.version)
        write_user_packages(users, counts_path)
        if args.export_csv:
            csv_file = export_counts_csv(users, Path(args.export_csv))
            logger.info("Counts exported to %s", csv_file)
    except ModuleLoggerError as e:
        print_error_and_exit(e, prog="module-counter")


if __name__ == "__main__":
    main()
