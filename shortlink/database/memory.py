"""In-process implementation of the URL mapping store."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional, Set

from .base import URLMappingStoreBase
from .models import URLMapping, utcnow
from ..errors import UniqueConstraintViolation


class InMemoryURLMappingStore(URLMappingStoreBase):
    """Dictionary-backed store.

    No method awaits between reading and writing its dictionaries, so every
    operation is atomic with respect to other tasks on the event loop.
    Mappings are copied in and out so callers never share state with the store.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__("memory://")
        self.logger = logger or logging.getLogger(__name__)
        self._by_code: Dict[str, URLMapping] = {}
        self._codes_by_url: Dict[str, Set[str]] = {}

    async def find_by_code(self, short_code: str) -> Optional[URLMapping]:
        mapping = self._by_code.get(short_code)
        return replace(mapping) if mapping else None

    async def find_by_url(self, long_url: str) -> Optional[URLMapping]:
        codes = self._codes_by_url.get(long_url)
        if not codes:
            return None
        # Oldest mapping wins when the accepted create race produced several
        mapping = min((self._by_code[c] for c in codes), key=lambda m: m.created_at)
        return replace(mapping)

    async def insert(self, mapping: URLMapping) -> URLMapping:
        if mapping.short_code in self._by_code:
            raise UniqueConstraintViolation(mapping.short_code)

        stored = replace(mapping)
        self._by_code[stored.short_code] = stored
        self._codes_by_url.setdefault(stored.long_url, set()).add(stored.short_code)
        self.logger.debug(f"Inserted {stored.short_code} -> {stored.long_url}")
        return replace(stored)

    async def update_url(
        self,
        short_code: str,
        new_url: str,
        updated_at: datetime,
    ) -> Optional[URLMapping]:
        current = self._by_code.get(short_code)
        if current is None:
            return None

        self._unindex(current)
        updated = current.with_url(new_url, updated_at)
        self._by_code[short_code] = updated
        self._codes_by_url.setdefault(new_url, set()).add(short_code)
        return replace(updated)

    async def increment_access_count(self, short_code: str) -> bool:
        current = self._by_code.get(short_code)
        if current is None:
            return False

        self._by_code[short_code] = replace(
            current,
            access_count=current.access_count + 1,
            updated_at=utcnow(),
        )
        return True

    async def delete_by_code(self, short_code: str) -> bool:
        current = self._by_code.pop(short_code, None)
        if current is None:
            return False

        self._unindex(current)
        return True

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self.logger.debug("In-memory store closed")

    def __len__(self) -> int:
        return len(self._by_code)

    def _unindex(self, mapping: URLMapping) -> None:
        codes = self._codes_by_url.get(mapping.long_url)
        if codes is None:
            return
        codes.discard(mapping.short_code)
        if not codes:
            del self._codes_by_url[mapping.long_url]
