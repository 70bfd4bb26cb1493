# src/main.py — v3
"""CLI entry point: serve, migrate, key commands.

Usage:
    bestthumb serve [--host HOST] [--port PORT]
    bestthumb migrate <directory> [--concurrency N] [--error-log PATH]
    bestthumb key <video_id>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from bestthumb.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="bestthumb",
        description=f"bestthumb v{__version__}: best available YouTube thumbnails",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the thumbnail HTTP server")
    p_serve.add_argument("--host", default=None, help="Bind address (default: HOST)")
    p_serve.add_argument(
        "--port", type=int, default=None, help="Listen port (default: PORT)",
    )
    p_serve.set_defaults(func=_cmd_serve)

    # --- migrate ---
    p_migrate = subparsers.add_parser(
        "migrate", help="Upload a local thumbnail tree into the configured cache",
    )
    p_migrate.add_argument(
        "directory", type=Path,
        help="Root holding <slug>/<encoding>/<video_id>.<encoding> files",
    )
    p_migrate.add_argument(
        "-c", "--concurrency", type=int, default=None,
        help="Concurrent uploads (default: MIGRATE_CONCURRENCY)",
    )
    p_migrate.add_argument(
        "--error-log", type=Path, default=None,
        help="File receiving one line per failed item (default: MIGRATE_ERROR_LOG)",
    )
    p_migrate.set_defaults(func=_cmd_migrate)

    # --- key ---
    p_key = subparsers.add_parser(
        "key", help="Print the cache key of every ladder variant for a video ID",
    )
    p_key.add_argument("video_id", help="YouTube video ID")
    p_key.set_defaults(func=_cmd_key)

    return parser


def _cmd_serve(args: argparse.Namespace) -> int:
    """Start the HTTP server."""
    from bestthumb.api.app import run_server

    settings = _load_settings(args.verbose)
    run_server(settings, host=args.host, port=args.port)
    return 0


def _cmd_migrate(args: argparse.Namespace) -> int:
    """Execute the bulk migration."""
    from bestthumb.batch.migrator import BulkMigrator
    from bestthumb.cache.cache_factory import create_cache_store, create_key_index

    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    settings = _load_settings(args.verbose)
    index = create_key_index(settings)
    migrator = BulkMigrator(
        store=create_cache_store(settings),
        index=index,
        concurrency=args.concurrency or settings.migrate_concurrency,
        error_log=args.error_log or settings.migrate_error_log,
        log_timings=settings.debug,
    )

    try:
        result = asyncio.run(migrator.migrate(directory))
    finally:
        if index is not None:
            index.close()

    print("\nMigration complete:")
    print(f"  Files found:  {result.total}")
    print(f"  Migrated:     {result.succeeded}")
    print(f"  Failed:       {result.failed}")
    print(f"  Duration:     {result.duration_seconds:.1f}s")
    return 1 if result.failed else 0


def _cmd_key(args: argparse.Namespace) -> int:
    """Print the cache keys for a video ID, in ladder order."""
    from bestthumb.core.quality import LADDER, cache_key
    from bestthumb.core.validator import validate_video_id

    if not validate_video_id(args.video_id):
        print(f"Invalid video id: {args.video_id}", file=sys.stderr)
        return 2

    for quality in LADDER:
        print(cache_key(args.video_id, quality))
    return 0


def _load_settings(verbose: bool):
    """Load settings and configure logging from them."""
    from bestthumb.config.settings import load_settings
    from bestthumb.logging.logger import setup_logging

    settings = load_settings()
    setup_logging(
        level="DEBUG" if verbose or settings.debug else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    return settings


if __name__ == "__main__":
    sys.exit(main())
