"""Redis implementation of the URL mapping store."""

import logging
from datetime import datetime
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .base import URLMappingStoreBase
from .models import URLMapping, utcnow
from ..errors import StorageFailureError, UniqueConstraintViolation

# Each mutation runs as one Lua script so check and write cannot interleave.
INSERT_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
redis.call('HSET', KEYS[1],
    'id', ARGV[1], 'short_code', ARGV[2], 'long_url', ARGV[3],
    'created_at', ARGV[4], 'updated_at', ARGV[5], 'access_count', ARGV[6])
redis.call('SADD', KEYS[2], ARGV[2])
return 1
"""

UPDATE_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return nil
end
local before = redis.call('HGETALL', KEYS[1])
redis.call('SREM', ARGV[3] .. redis.call('HGET', KEYS[1], 'long_url'), ARGV[4])
redis.call('HSET', KEYS[1], 'long_url', ARGV[1], 'updated_at', ARGV[2])
redis.call('SADD', KEYS[2], ARGV[4])
return before
"""

INCREMENT_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
redis.call('HINCRBY', KEYS[1], 'access_count', 1)
redis.call('HSET', KEYS[1], 'updated_at', ARGV[1])
return 1
"""

DELETE_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
redis.call('SREM', ARGV[1] .. redis.call('HGET', KEYS[1], 'long_url'), ARGV[2])
redis.call('DEL', KEYS[1])
return 1
"""


class RedisURLMappingStore(URLMappingStoreBase):
    """redis.asyncio-backed store.

    A mapping is a hash under ``{prefix}code:{short_code}``. The set
    ``{prefix}url:{long_url}`` holds every code currently pointing at that
    URL, so updates and deletes never orphan a live mapping.

    Update and delete derive the previous URL's set key inside Lua, which
    assumes a single Redis node (or one where all keys share a slot). Redis
    Cluster is not supported.
    """

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "shortlink:",
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis store.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            key_prefix: Namespace for every key this store writes
            logger: Optional logger instance
        """
        super().__init__(redis_url)
        self.logger = logger or logging.getLogger(__name__)
        self.key_prefix = key_prefix
        self.client = redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        self._insert = self.client.register_script(INSERT_SCRIPT)
        self._update = self.client.register_script(UPDATE_SCRIPT)
        self._increment = self.client.register_script(INCREMENT_SCRIPT)
        self._delete = self.client.register_script(DELETE_SCRIPT)

    def code_key(self, short_code: str) -> str:
        return f"{self.key_prefix}code:{short_code}"

    def url_key(self, long_url: str) -> str:
        return f"{self.key_prefix}url:{long_url}"

    def _failure(self, operation: str, error: Exception) -> StorageFailureError:
        self.logger.error(f"Error during {operation}: {error}")
        return StorageFailureError(f"{operation} failed: {error}", operation=operation)

    async def find_by_code(self, short_code: str) -> Optional[URLMapping]:
        try:
            data = await self.client.hgetall(self.code_key(short_code))
        except (RedisError, OSError) as e:
            raise self._failure("find_by_code", e) from e
        return URLMapping.from_dict(data) if data else None

    async def find_by_url(self, long_url: str) -> Optional[URLMapping]:
        try:
            codes = await self.client.smembers(self.url_key(long_url))
            if not codes:
                return None
            async with self.client.pipeline(transaction=False) as pipe:
                for code in codes:
                    pipe.hgetall(self.code_key(code))
                rows = await pipe.execute()
        except (RedisError, OSError) as e:
            raise self._failure("find_by_url", e) from e

        # A code may be deleted or repointed between the two round trips
        mappings = [URLMapping.from_dict(row) for row in rows if row and row.get("long_url") == long_url]
        if not mappings:
            return None
        # Oldest mapping wins when the accepted create race produced several
        return min(mappings, key=lambda m: m.created_at)

    async def insert(self, mapping: URLMapping) -> URLMapping:
        try:
            inserted = await self._insert(
                keys=[self.code_key(mapping.short_code), self.url_key(mapping.long_url)],
                args=[
                    mapping.id,
                    mapping.short_code,
                    mapping.long_url,
                    mapping.created_at.isoformat(),
                    mapping.updated_at.isoformat(),
                    mapping.access_count,
                ],
            )
        except (RedisError, OSError) as e:
            raise self._failure("insert", e) from e

        if not inserted:
            raise UniqueConstraintViolation(mapping.short_code)
        return mapping

    async def update_url(
        self,
        short_code: str,
        new_url: str,
        updated_at: datetime,
    ) -> Optional[URLMapping]:
        try:
            before = await self._update(
                keys=[self.code_key(short_code), self.url_key(new_url)],
                args=[new_url, updated_at.isoformat(), f"{self.key_prefix}url:", short_code],
            )
        except (RedisError, OSError) as e:
            raise self._failure("update_url", e) from e

        if not before:
            return None
        # HGETALL inside Lua comes back as a flat [field, value, ...] list
        return URLMapping.from_dict(dict(zip(before[::2], before[1::2])))

    async def increment_access_count(self, short_code: str) -> bool:
        try:
            result = await self._increment(
                keys=[self.code_key(short_code)],
                args=[utcnow().isoformat()],
            )
        except (RedisError, OSError) as e:
            raise self._failure("increment_access_count", e) from e
        return bool(result)

    async def delete_by_code(self, short_code: str) -> bool:
        try:
            result = await self._delete(
                keys=[self.code_key(short_code)],
                args=[f"{self.key_prefix}url:", short_code],
            )
        except (RedisError, OSError) as e:
            raise self._failure("delete_by_code", e) from e
        return bool(result)

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError) as e:
            self.logger.error(f"Health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        await self.client.aclose()
        self.logger.info("Redis connection closed")
