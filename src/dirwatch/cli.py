#!/usr/bin/env python3
"""
CLI for the directory watcher.

Usage:
    dirwatch watch ./TestFolder
    dirwatch watch ./TestFolder --interval 1000 --ignore "*.tmp" --observers 1
    dirwatch snapshot ./TestFolder
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import WatcherConfig
from .exceptions import ConfigurationError
from .process import DirectoryWatcher
from .publisher import ConsoleListener
from .snapshot import SnapshotBuilder


logger = logging.getLogger("dirwatch.cli")


class GracefulShutdown:
    """Stop the watcher on SIGINT/SIGTERM."""

    def __init__(self, watcher: DirectoryWatcher):
        self.watcher = watcher
        signal.signal(signal.SIGINT, self._handler)
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        self.watcher.stop()


def build_config(args) -> WatcherConfig:
    """Merge environment configuration with command line overrides."""
    config = WatcherConfig.from_env()

    if args.directory:
        config.directory = Path(args.directory)
    if getattr(args, "interval", None) is not None:
        if args.interval <= 0:
            raise ConfigurationError(f"--interval must be positive: {args.interval}")
        config.poll_interval_ms = args.interval
    if getattr(args, "ignore", None):
        config.ignore_patterns = list(args.ignore)
    if getattr(args, "baseline", False):
        config.report_existing = False
    if getattr(args, "no_directories", False):
        config.include_directories = False

    return config


def cmd_watch(args) -> int:
    """Watch a directory and print changes to the console."""
    config = build_config(args)
    watcher = DirectoryWatcher(config=config)

    for i in range(1, args.observers + 1):
        watcher.subscribe(ConsoleListener(f"Observer {i}"))

    watcher.validate_directory()
    GracefulShutdown(watcher)
    watcher.start()

    logger.info("Watcher stopped")
    return 0


def cmd_snapshot(args) -> int:
    """Print the entries the watcher would see in one cycle."""
    config = build_config(args)
    directory = config.directory
    if directory is None or not directory.is_dir():
        logger.error(f"Not a directory: {directory}")
        return 1

    snapshot = SnapshotBuilder(config).build(directory)
    for name, entry in snapshot.entries.items():
        print(f"{name}\t{entry.size}\t{entry.last_modified}\t{entry.identity}")

    logger.info(f"{len(snapshot)} entries in {directory.resolve()}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dirwatch",
        description="Poll a directory and report added, deleted, modified and renamed entries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Watch a folder with three console observers, polling every 3 seconds
  dirwatch watch ./TestFolder

  # Poll every second, skip editor temp files
  dirwatch watch ./TestFolder --interval 1000 --ignore "*.swp" "*~"

  # Show what the watcher sees right now
  dirwatch snapshot ./TestFolder

Environment:
  DIRWATCH_DIRECTORY, DIRWATCH_POLL_INTERVAL_MS, DIRWATCH_IGNORE,
  DIRWATCH_REPORT_EXISTING (also read from a .env file)
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    watch_parser = subparsers.add_parser("watch", help="Watch a directory for changes")
    watch_parser.add_argument("directory", nargs="?", help="Directory to watch (or DIRWATCH_DIRECTORY)")
    watch_parser.add_argument("--interval", type=int, default=None, help="Poll interval in ms (default: 3000)")
    watch_parser.add_argument("--ignore", nargs="+", default=None, help="Glob patterns of entry names to ignore")
    watch_parser.add_argument("--observers", type=int, default=3, help="Number of console observers (default: 3)")
    watch_parser.add_argument("--baseline", action="store_true", help="Do not report entries present at start")
    watch_parser.add_argument("--no-directories", action="store_true", help="Ignore subdirectory entries")
    watch_parser.set_defaults(func=cmd_watch)

    snapshot_parser = subparsers.add_parser("snapshot", help="List entries with their size, mtime and identity")
    snapshot_parser.add_argument("directory", nargs="?", help="Directory to list (or DIRWATCH_DIRECTORY)")
    snapshot_parser.add_argument("--ignore", nargs="+", default=None, help="Glob patterns of entry names to ignore")
    snapshot_parser.add_argument("--no-directories", action="store_true", help="Ignore subdirectory entries")
    snapshot_parser.set_defaults(func=cmd_snapshot)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        return args.func(args)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
