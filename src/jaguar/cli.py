"""
Command-line interface for Jaguar.

Provides commands for running test files (once or in watch mode) and for
listing the tests they register.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import structlog

from jaguar import __version__
from jaguar.config import ReporterMode, RunConfig, load_run_config, set_config
from jaguar.errors import TestLoadError
from jaguar.harness import Jaguar, get_harness
from jaguar.loader import discover_test_files, load_test_file
from jaguar.watch import FileWatcher

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose if hasattr(args, "verbose") else False)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FAILED

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.error("Command failed", error=str(e))
        if hasattr(args, "verbose") and args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="jaguar",
        description="Jaguar - concurrent test runner with hooks, retries and snapshots",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"jaguar {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run test files")
    _add_path_arguments(run_parser)
    run_parser.add_argument(
        "--grep", "-g",
        default=None,
        metavar="PATTERN",
        help="Only run tests whose title matches this regular expression",
    )
    run_parser.add_argument(
        "--watch", "-w",
        action="store_true",
        default=None,
        help="Re-run tests when files change",
    )
    run_parser.add_argument(
        "--concurrency", "-c",
        type=int,
        default=None,
        help="Maximum tests running at once within a suite",
    )
    run_parser.add_argument(
        "--reporter", "-r",
        choices=[mode.value for mode in ReporterMode],
        default=None,
        help="Output style for results",
    )
    run_parser.add_argument(
        "--snapshot-dir",
        type=Path,
        default=None,
        help="Directory for snapshot files",
    )
    run_parser.add_argument(
        "--no-snapshots",
        action="store_true",
        default=None,
        dest="disable_snapshots",
        help="Disable snapshot reads and writes",
    )
    run_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        dest="default_timeout_ms",
        metavar="MS",
        help="Default per-attempt timeout in milliseconds",
    )
    run_parser.set_defaults(func=cmd_run)

    list_parser = subparsers.add_parser("list", help="List registered tests")
    _add_path_arguments(list_parser)
    list_parser.set_defaults(func=cmd_list)

    return parser


def _add_path_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "paths",
        nargs="+",
        help="Test files or directories to search for test_*.py / *_test.py",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file (defaults to .jaguar.yaml / jaguar.yaml if present)",
    )


def configure_logging(verbose: bool) -> None:
    """Configure structured logging."""
    level = "DEBUG" if verbose else "WARNING"
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer() if verbose else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=getattr(logging, level))


def resolve_config(args: argparse.Namespace) -> RunConfig:
    """Merge CLI flags over environment, config file and defaults."""
    config = load_run_config(args.config)

    overrides: dict[str, Any] = {}
    for key in ("grep", "watch", "concurrency", "reporter", "snapshot_dir",
                "disable_snapshots", "default_timeout_ms"):
        value = getattr(args, key, None)
        if value is not None:
            overrides[key] = value

    return config.with_overrides(**overrides) if overrides else config


def _load(paths: list[str], harness: Jaguar) -> list[Path]:
    files = discover_test_files(paths)
    if not files:
        raise TestLoadError("No test files found")
    for file_path in files:
        load_test_file(file_path, harness)
    return files


def cmd_run(args: argparse.Namespace) -> int:
    """Run test files."""
    config = resolve_config(args)
    harness = get_harness()
    # Test files may layer set_config() calls on top before the run starts
    set_config(config)
    harness.clear_config()

    if config.watch:
        return asyncio.run(_watch(args.paths, harness, config))

    _load(args.paths, harness)
    summary = harness.run_sync()
    return EXIT_OK if summary.is_success else EXIT_FAILED


async def _watch(paths: list[str], harness: Jaguar, config: RunConfig) -> int:
    """Run, then re-run on every file change until interrupted."""
    watcher = FileWatcher(paths)

    while True:
        harness.reset()
        set_config(config)
        try:
            _load(paths, harness)
            await harness.run()
        except Exception as e:
            logger.error("Run failed", error=str(e))
            print(f"Error: {e}", file=sys.stderr)

        print("Watch mode activated. Waiting for file changes...")
        changed = await watcher.wait_for_change()
        names = ", ".join(path.name for path in changed)
        print(f"File change detected: {names}. Re-running tests...")


def cmd_list(args: argparse.Namespace) -> int:
    """List the tests registered by test files."""
    harness = get_harness()
    set_config(load_run_config(args.config))
    harness.clear_config()
    _load(args.paths, harness)

    tree = harness.tree
    count = 0
    for case in tree.iter_tests():
        markers = []
        if case.only:
            markers.append("only")
        if case.skip:
            markers.append("skip")
        if case.options.tags:
            markers.extend(f"#{tag}" for tag in case.options.tags)
        suffix = f"  [{', '.join(markers)}]" if markers else ""
        print(f"{tree.full_title(case.id)}{suffix}")
        count += 1

    print(f"\n{count} test(s) in {tree.suite_count - 1} suite(s)")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
