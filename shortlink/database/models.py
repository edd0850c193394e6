"""Data models for URL shortener."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class URLMapping:
    """Represents a short code to long URL mapping."""

    short_code: str
    long_url: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    access_count: int = 0
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def new(cls, short_code: str, long_url: str, now: Optional[datetime] = None) -> "URLMapping":
        """Build a fresh mapping with zero accesses and matching timestamps."""
        now = now or utcnow()
        return cls(
            short_code=short_code,
            long_url=long_url,
            created_at=now,
            updated_at=now,
            access_count=0,
        )

    def with_url(self, long_url: str, updated_at: datetime) -> "URLMapping":
        """Return a copy pointing at ``long_url``; the code is left alone."""
        return replace(self, long_url=long_url, updated_at=updated_at)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "short_code": self.short_code,
            "long_url": self.long_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "access_count": self.access_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "URLMapping":
        """Create from dictionary (database row, Redis hash or to_dict output)."""
        return cls(
            id=str(data["id"]),
            short_code=data["short_code"],
            long_url=data["long_url"],
            created_at=_as_utc(data["created_at"]),
            updated_at=_as_utc(data.get("updated_at") or data["created_at"]),
            access_count=int(data.get("access_count") or 0),
        )
