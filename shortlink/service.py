"""Business logic service for URL shortener."""

import asyncio
import logging
from typing import Awaitable, Dict, Optional, TypeVar

from .shortcode import ShortCodeGenerator
from .tasks import BackgroundTaskRunner
from .database.base import URLMappingStoreBase
from .database.models import URLMapping, utcnow
from .common.validators import is_valid_url
from .errors import (
    ConflictError,
    ExhaustedRetriesError,
    InvalidInputError,
    NotFoundError,
    StorageFailureError,
    UniqueConstraintViolation,
)

T = TypeVar("T")


class URLShortenerService:
    """Service layer for URL shortening business logic.

    Holds no locks and no cached state. Short code uniqueness rests entirely
    on the store's atomic insert.

    Long URL uniqueness is only checked, not enforced: two concurrent creates
    for the same new URL can both pass the duplicate check and each persist a
    mapping. That relaxation is accepted.
    """

    def __init__(
        self,
        db: URLMappingStoreBase,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        task_runner: Optional[BackgroundTaskRunner] = None,
        logger: Optional[logging.Logger] = None,
        max_collision_retries: int = 5,
        request_timeout_seconds: float = 5.0,
    ):
        """Initialize URL shortener service.

        Args:
            db: Storage backend
            short_code_generator: Optional short code generator
            task_runner: Runner for detached access-count increments
            logger: Optional logger
            max_collision_retries: Insert attempts before giving up on create
            request_timeout_seconds: Deadline for each request-scoped storage call
        """
        self.db = db
        self.generator = short_code_generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.tasks = task_runner or BackgroundTaskRunner(logger=self.logger)
        self.max_collision_retries = max_collision_retries
        self.request_timeout_seconds = request_timeout_seconds

    async def create(self, long_url: str) -> URLMapping:
        """Create a new short URL.

        Args:
            long_url: The original long URL

        Returns:
            The newly persisted mapping

        Raises:
            InvalidInputError: If the URL is malformed
            ConflictError: If the URL is already shortened (carries the mapping)
            ExhaustedRetriesError: If every generated code collided
            StorageFailureError: On any other storage problem
        """
        self._validate_url(long_url)

        existing = await self._storage_call("find_by_url", self.db.find_by_url(long_url))
        if existing is not None:
            self.logger.warning(f"URL already shortened: {long_url} -> {existing.short_code}")
            raise ConflictError(existing)

        # No existence check before inserting: the store's unique constraint decides.
        for attempt in range(1, self.max_collision_retries + 1):
            candidate = URLMapping.new(self.generator.generate(), long_url)
            try:
                mapping = await self._storage_call("insert", self.db.insert(candidate))
            except UniqueConstraintViolation:
                self.logger.debug(
                    f"Short code collision on {candidate.short_code} "
                    f"(attempt {attempt}/{self.max_collision_retries})"
                )
                continue

            self.logger.info(f"Created short URL: {mapping.short_code} -> {long_url}")
            return mapping

        self.logger.warning(
            f"Exhausted {self.max_collision_retries} attempts creating short code for {long_url}"
        )
        raise ExhaustedRetriesError(self.max_collision_retries)

    async def get(self, short_code: str) -> URLMapping:
        """Get the mapping for a short code.

        Raises:
            NotFoundError: If no mapping has this code
        """
        self._require_code_format(short_code)

        mapping = await self._storage_call("find_by_code", self.db.find_by_code(short_code))
        if mapping is None:
            raise NotFoundError(short_code)
        return mapping

    async def update(self, short_code: str, new_long_url: str) -> URLMapping:
        """Point an existing short code at a new long URL.

        The short code itself never changes.

        Raises:
            InvalidInputError: If the new URL is malformed
            NotFoundError: If no mapping has this code
        """
        self._validate_url(new_long_url)
        self._require_code_format(short_code)

        requested_at = utcnow()
        snapshot = await self._storage_call(
            "update_url",
            self.db.update_url(short_code, new_long_url, requested_at),
        )
        if snapshot is None:
            raise NotFoundError(short_code)

        # Stores may return the document as it was before the write
        updated_at = max(snapshot.updated_at, requested_at)
        mapping = snapshot.with_url(new_long_url, updated_at)

        self.logger.info(f"Updated short URL: {short_code} -> {new_long_url}")
        return mapping

    async def delete(self, short_code: str) -> None:
        """Delete a short URL.

        Raises:
            NotFoundError: If no mapping has this code, including on a repeat delete
        """
        self._require_code_format(short_code)

        deleted = await self._storage_call("delete_by_code", self.db.delete_by_code(short_code))
        if not deleted:
            raise NotFoundError(short_code)

        self.logger.info(f"Deleted short URL: {short_code}")

    async def get_stats(self, short_code: str) -> URLMapping:
        """Get the mapping with its latest persisted access count.

        The count may not yet include redirects whose increment is in flight.
        """
        return await self.get(short_code)

    async def redirect(self, short_code: str) -> str:
        """Resolve a short code to its long URL and count the access.

        The increment is handed to the task runner and runs after this returns.
        Its outcome never affects the result.

        Raises:
            NotFoundError: If no mapping has this code
        """
        mapping = await self.get(short_code)

        self.tasks.submit(
            f"increment_access_count:{short_code}",
            lambda: self._increment_access_count(short_code),
        )

        self.logger.debug(f"Redirecting {short_code} -> {mapping.long_url}")
        return mapping.long_url

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        try:
            db_healthy = await self._storage_call("health_check", self.db.health_check())
        except StorageFailureError:
            db_healthy = False

        return {
            "database": db_healthy,
            "overall": db_healthy,
        }

    async def close(self) -> None:
        """Let background jobs finish, then close the store."""
        await self.tasks.close()
        await self.db.close()

    async def _increment_access_count(self, short_code: str) -> None:
        if not await self.db.increment_access_count(short_code):
            self.logger.warning(f"Access count not incremented, {short_code} no longer exists")

    async def _storage_call(self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.request_timeout_seconds)
        except asyncio.TimeoutError as e:
            self.logger.error(f"Storage {operation} timed out after {self.request_timeout_seconds}s")
            raise StorageFailureError(
                f"{operation} timed out after {self.request_timeout_seconds}s",
                operation=operation,
            ) from e

    def _validate_url(self, url: str) -> None:
        is_valid, error = is_valid_url(url)
        if not is_valid:
            raise InvalidInputError(f"Invalid URL: {error}")

    def _require_code_format(self, short_code: str) -> None:
        # Codes outside the generator's format can never have been stored
        if not self.generator.is_valid_format(short_code):
            raise NotFoundError(short_code)
