"""
Command-line interface for the module logger.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import (
    RunConfig,
    default_cache_file_path,
    default_expire_seconds,
    default_log_file_path,
)
from .errors import ModuleLoggerError, UsageError
from .runner import run


USAGE = "module-logger --user <username> --package <package> --version <version> --modulefilepath <path>"


def configure_diagnostics(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def print_usage_and_exit() -> None:
    print(f"Usage: {USAGE}")
    sys.exit(1)


def print_error_and_exit(error: Exception, prog: str = "module-logger") -> None:
    print(f"{prog} error: {error}", file=sys.stderr)
    sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="module-logger",
        usage=USAGE,
        description="Record module activations, skipping repeats inside the debounce window",
    )

    parser.add_argument("--user", default="", help="Username")
    parser.add_argument("--package", default="", help="Package name")
    parser.add_argument("--version", default="", help="Package version")
    parser.add_argument(
        "--modulefilepath",
        dest="module_file_path",
        default="",
        help="Path to the module file"
    )

    parser.add_argument(
        "--expire-seconds", "--expireSeconds",
        dest="expire_seconds",
        type=int,
        default=default_expire_seconds(),
        help="Seconds during which duplicate activations are not logged. Default: %(default)s"
    )

    parser.add_argument(
        "--cache-file-path", "--cacheFilePath",
        dest="cache_file_path",
        default=default_cache_file_path(),
        help="Path for the module logger cache. Default: %(default)s"
    )

    parser.add_argument(
        "--log-file-path", "--logFilePath",
        dest="log_file_path",
        default=default_log_file_path(),
        help="Path for the module logger log file. Default: %(default)s"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Write diagnostic messages to stderr"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_diagnostics(args.debug)

    config = RunConfig(
        user=args.user,
        package=args.package,
        version=args.version,
        module_file_path=args.module_file_path,
        expire_seconds=args.expire_seconds,
        cache_file_path=Path(args.cache_file_path),
        log_file_path=Path(args.log_file_path),
    )

    try:
        run(config)
    except UsageError:
        print_usage_and_exit()
    except ModuleLoggerError as e:
        print_error_and_exit(e)


if __name__ == "__main__":
    main()
