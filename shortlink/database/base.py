"""Abstract base class for URL mapping storage implementations."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import datetime

from .models import URLMapping


class URLMappingStoreBase(ABC):
    """Persistence contract the shortener service depends on.

    Absent records are reported as ``None`` / ``False``. Any other backend
    problem is raised as ``StorageFailureError``.
    """

    def __init__(self, db_config: str):
        """Initialize store.

        Args:
            db_config: Connection string (ignored by the in-memory store)
        """
        self.db_config = db_config

    @abstractmethod
    async def find_by_code(self, short_code: str) -> Optional[URLMapping]:
        """Get the mapping for a short code, or None."""
        pass

    @abstractmethod
    async def find_by_url(self, long_url: str) -> Optional[URLMapping]:
        """Get a mapping whose long URL equals ``long_url``, or None."""
        pass

    @abstractmethod
    async def insert(self, mapping: URLMapping) -> URLMapping:
        """Atomically insert a new mapping.

        Must never leave two persisted mappings with the same short code.

        Args:
            mapping: The mapping to persist

        Returns:
            The persisted mapping

        Raises:
            UniqueConstraintViolation: If the short code is already taken
            StorageFailureError: On any other backend error
        """
        pass

    @abstractmethod
    async def update_url(
        self,
        short_code: str,
        new_url: str,
        updated_at: datetime,
    ) -> Optional[URLMapping]:
        """Atomically replace the long URL of an existing mapping.

        The returned snapshot may be the document as it was before the write.

        Returns:
            A snapshot of the mapping, or None if the code is unknown
        """
        pass

    @abstractmethod
    async def increment_access_count(self, short_code: str) -> bool:
        """Atomically add one to the access count and refresh updated_at.

        Returns:
            True if incremented, False if the code is unknown
        """
        pass

    @abstractmethod
    async def delete_by_code(self, short_code: str) -> bool:
        """Delete a mapping.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the backend is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close backend connections."""
        pass
