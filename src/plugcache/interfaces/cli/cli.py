from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog

from plugcache.application.use_cases import FileStatus
from plugcache.domain.plugins import PlugcacheError
from plugcache.infrastructure.config import load_config
from plugcache.infrastructure.logging.setup import configure_logging
from plugcache.interfaces.composition import run_format

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="plugcache",
        description="Format files with dprint Wasm plugins cached on disk.",
    )

    # Run options
    parser.add_argument(
        "--root",
        default=None,
        help="Directory to format (default: current working directory).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run as usual but do not write any formatted file.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print longer output, including skipped files.",
    )

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--cache-dir",
        default=None,
        help="Override plugin cache directory.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    return parser.parse_args(argv)


def _print_status(status: FileStatus, path: Path) -> None:
    print(f"[{status.value.upper()}] {path}")


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, configures logging, then runs one format pass.
    Returns the process exit status.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None
    root = Path(args.root).resolve() if args.root else Path.cwd()

    cli_overrides: dict[str, Any] = {}
    if args.cache_dir:
        cli_overrides["cache_dir"] = args.cache_dir
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    config = load_config(
        config_path=config_path,
        dotenv_path=dotenv_path,
        cli_overrides=cli_overrides,
    )

    configure_logging(config)

    try:
        asyncio.run(
            run_format(
                config,
                root=root,
                dry_run=args.dry_run,
                verbose=args.verbose,
                reporter=_print_status,
            )
        )
    except (PlugcacheError, OSError) as e:
        log.error("run_failed", error_type=type(e).__name__, error=str(e))
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(start())
