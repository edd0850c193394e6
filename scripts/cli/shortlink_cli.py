#!/usr/bin/env python3
"""
Command-line interface for the shortlink service.

Talks to the configured store directly, without going through HTTP.

Usage:
    python shortlink_cli.py shorten <url>
    python shortlink_cli.py get <short_code>
    python shortlink_cli.py update <short_code> <url>
    python shortlink_cli.py delete <short_code>
    python shortlink_cli.py stats <short_code>
    python shortlink_cli.py resolve <short_code>
    python shortlink_cli.py health
"""

import argparse
import asyncio
import json
import sys
import os
from typing import Optional

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from config import Config
from shortlink.database import create_store
from shortlink.errors import ConflictError, ShortenerError
from shortlink.service import URLShortenerService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.tasks import BackgroundTaskRunner
from shortlink.common.logging_config import setup_logging


def emit(payload: dict, error: bool = False) -> int:
    """Print a JSON document and return the matching exit code."""
    print(json.dumps(payload, indent=2), file=sys.stderr if error else sys.stdout)
    return 1 if error else 0


class ShortlinkCLI:
    """Command-line interface for the shortlink service."""

    def __init__(self, config: Config, verbose: bool = False, service: Optional[URLShortenerService] = None):
        """Initialize CLI.

        Args:
            config: Configuration used to build the store
            verbose: Log at DEBUG instead of WARNING
            service: Prebuilt service (skips store construction)
        """
        self.config = config
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.service = service

    def initialize(self) -> None:
        """Build the store and service from configuration."""
        if self.service is not None:
            return

        self.service = URLShortenerService(
            db=create_store(self.config, logger=self.logger),
            short_code_generator=ShortCodeGenerator(),
            task_runner=BackgroundTaskRunner(
                timeout_seconds=self.config.increment_timeout_seconds,
                logger=self.logger,
            ),
            logger=self.logger,
            max_collision_retries=self.config.max_collision_retries,
            request_timeout_seconds=self.config.request_timeout_seconds,
        )

    async def cleanup(self) -> None:
        """Flush background work and close the store."""
        if self.service:
            await self.service.close()

    async def shorten(self, url: str) -> int:
        try:
            mapping = await self.service.create(url)
        except ConflictError as e:
            return emit({
                "success": False,
                "error": str(e),
                "mapping": e.mapping.to_dict(),
            }, error=True)
        except ShortenerError as e:
            return emit({"success": False, "error": str(e)}, error=True)

        return emit({"success": True, "mapping": mapping.to_dict()})

    async def get(self, short_code: str) -> int:
        try:
            mapping = await self.service.get(short_code)
        except ShortenerError as e:
            return emit({"success": False, "error": str(e)}, error=True)

        return emit({"success": True, "mapping": mapping.to_dict()})

    async def update(self, short_code: str, url: str) -> int:
        try:
            mapping = await self.service.update(short_code, url)
        except ShortenerError as e:
            return emit({"success": False, "error": str(e)}, error=True)

        return emit({"success": True, "mapping": mapping.to_dict()})

    async def delete(self, short_code: str) -> int:
        try:
            await self.service.delete(short_code)
        except ShortenerError as e:
            return emit({"success": False, "error": str(e)}, error=True)

        return emit({"success": True, "deleted": short_code})

    async def stats(self, short_code: str) -> int:
        try:
            mapping = await self.service.get_stats(short_code)
        except ShortenerError as e:
            return emit({"success": False, "error": str(e)}, error=True)

        return emit({
            "success": True,
            "short_code": mapping.short_code,
            "long_url": mapping.long_url,
            "access_count": mapping.access_count,
            "created_at": mapping.created_at.isoformat(),
            "updated_at": mapping.updated_at.isoformat(),
        })

    async def resolve(self, short_code: str) -> int:
        """Resolve like a redirect would, counting the access."""
        try:
            long_url = await self.service.redirect(short_code)
        except ShortenerError as e:
            return emit({"success": False, "error": str(e)}, error=True)

        return emit({"success": True, "short_code": short_code, "long_url": long_url})

    async def health(self) -> int:
        health_status = await self.service.health_check()
        return emit({"success": health_status["overall"], "health": health_status},
                    error=not health_status["overall"])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Shortlink CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s shorten https://example.com/long/url
  %(prog)s get Ab3dE9
  %(prog)s update Ab3dE9 https://example.com/new/url
  %(prog)s stats Ab3dE9
  %(prog)s --backend redis --redis-url redis://localhost:6379/0 delete Ab3dE9
        """
    )

    parser.add_argument(
        "--backend",
        choices=["postgres", "redis"],
        help="Storage backend (default: from STORAGE_BACKEND env or postgres)"
    )
    parser.add_argument("--db-url", help="PostgreSQL connection URL (default: from DATABASE_URL env)")
    parser.add_argument("--redis-url", help="Redis connection URL (default: from REDIS_URL env)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")

    get_parser = subparsers.add_parser("get", help="Show the mapping for a short code")
    get_parser.add_argument("short_code")

    update_parser = subparsers.add_parser("update", help="Point a short code at a new URL")
    update_parser.add_argument("short_code")
    update_parser.add_argument("url", help="New destination URL")

    delete_parser = subparsers.add_parser("delete", help="Delete a short code")
    delete_parser.add_argument("short_code")

    stats_parser = subparsers.add_parser("stats", help="Show access statistics")
    stats_parser.add_argument("short_code")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a short code and count the access")
    resolve_parser.add_argument("short_code")

    subparsers.add_parser("health", help="Check storage health")

    return parser


async def run(cli: ShortlinkCLI, args: argparse.Namespace) -> int:
    """Execute one parsed command against an initialized CLI."""
    if args.command == "shorten":
        return await cli.shorten(args.url)
    if args.command == "get":
        return await cli.get(args.short_code)
    if args.command == "update":
        return await cli.update(args.short_code, args.url)
    if args.command == "delete":
        return await cli.delete(args.short_code)
    if args.command == "stats":
        return await cli.stats(args.short_code)
    if args.command == "resolve":
        return await cli.resolve(args.short_code)
    if args.command == "health":
        return await cli.health()
    return 1


async def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    overrides = {}
    if args.backend:
        overrides["storage_backend"] = args.backend
    if args.db_url:
        overrides["database_url"] = args.db_url
    if args.redis_url:
        overrides["redis_url"] = args.redis_url

    cli = ShortlinkCLI(Config(**overrides), verbose=args.verbose)

    try:
        cli.initialize()
        return await run(cli, args)
    finally:
        await cli.cleanup()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
