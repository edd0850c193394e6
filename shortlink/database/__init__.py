"""Storage layer for URL shortener."""

import logging
from typing import Optional

from .base import URLMappingStoreBase
from .memory import InMemoryURLMappingStore
from .models import URLMapping

__all__ = [
    "URLMappingStoreBase",
    "InMemoryURLMappingStore",
    "URLMapping",
    "create_store",
]


def create_store(config, logger: Optional[logging.Logger] = None) -> URLMappingStoreBase:
    """Build the store selected by ``config.storage_backend``.

    Driver-backed stores are imported lazily so the in-memory backend works
    without a database client configured.
    """
    backend = config.storage_backend

    if backend == "memory":
        return InMemoryURLMappingStore(logger=logger)

    if backend == "postgres":
        from .postgres import PostgresURLMappingStore

        return PostgresURLMappingStore(
            db_config=config.database_url,
            pool_max_size=config.database_pool_max_size,
            create_tables=config.database_create_tables,
            logger=logger,
        )

    if backend == "redis":
        from .redis_store import RedisURLMappingStore

        return RedisURLMappingStore(redis_url=config.redis_url, logger=logger)

    raise ValueError(f"Unknown storage backend: {backend}")
