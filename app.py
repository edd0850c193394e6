#!/usr/bin/env python3
"""
Main entry point for the shortlink service.

Concurrency: requests are handled concurrently via async I/O (FastAPI +
asyncpg pool or redis.asyncio). Set WORKERS > 1 for multi-process scaling;
each worker owns its own store connections and background task runner.

Usage:
    python app.py

Environment variables:
    STORAGE_BACKEND - postgres (default), redis or memory
    DATABASE_URL - PostgreSQL connection URL
    DATABASE_CREATE_TABLES - Set to true to create the table on first use
    REDIS_URL - Redis connection URL (redis backend)
    BASE_URL - Base URL for short links
    PATH_PREFIX - Path prefix for redirects (e.g. /s)
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    REQUEST_TIMEOUT_SECONDS - Deadline for request-scoped storage calls
    INCREMENT_TIMEOUT_SECONDS - Deadline for background access-count updates
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager
from urllib.parse import urlsplit, urlunsplit

import uvicorn
from fastapi import FastAPI

from config import load_config
from shortlink.database import create_store
from shortlink.service import URLShortenerService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.tasks import BackgroundTaskRunner
from shortlink.common.logging_config import setup_logging, get_logger
from web_app import create_app


def build_service(config, logger) -> URLShortenerService:
    """Wire store, generator and task runner into a service."""
    db = create_store(config, logger=logger)
    task_runner = BackgroundTaskRunner(
        timeout_seconds=config.increment_timeout_seconds,
        logger=get_logger("tasks"),
    )
    return URLShortenerService(
        db=db,
        short_code_generator=ShortCodeGenerator(),
        task_runner=task_runner,
        logger=logger,
        max_collision_retries=config.max_collision_retries,
        request_timeout_seconds=config.request_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info(f"Starting shortlink service with {config.storage_backend} storage...")

    service = build_service(config, logger)
    app.state.db = service.db
    app.state.service = service

    if not await service.db.health_check():
        logger.warning("Storage backend is not reachable yet")

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down shortlink service...")
    await service.close()
    logger.info("Service stopped")


def redacted(url: str) -> str:
    """Hide the password in a connection URL before it reaches the logs."""
    parts = urlsplit(url)
    if not parts.password:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


def create_server_app() -> FastAPI:
    """Build the ASGI app with logging and the service lifespan attached.

    Also used as a uvicorn factory, so every worker process builds its own
    store connections and task runner.
    """
    config = load_config()
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    # Store and service are created inside the lifespan, on the server's loop
    app = create_app(db_instance=None, service_instance=None, config=config)
    app.state.logger = logger
    app.router.lifespan_context = lifespan
    return app


def main():
    """Run the HTTP server."""
    config = load_config()
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    settings = config.model_dump()
    settings["database_url"] = redacted(config.database_url)
    settings["redis_url"] = redacted(config.redis_url)
    logger.info(f"Shortlink configuration: {settings}")

    if config.workers > 1:
        # uvicorn only forks workers for an import string
        logger.info(f"Starting {config.workers} workers on {config.host}:{config.port}")
        uvicorn.run(
            "app:create_server_app",
            factory=True,
            host=config.host,
            port=config.port,
            workers=config.workers,
            log_level=config.log_level.lower(),
        )
        return

    server = uvicorn.Server(uvicorn.Config(
        create_server_app(),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    ))

    def request_shutdown(signum, frame):
        logger.info(f"Signal {signum} received, draining background jobs and stopping")
        server.should_exit = True

    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, request_shutdown)

    try:
        logger.info(f"Listening on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server stopped unexpectedly: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
