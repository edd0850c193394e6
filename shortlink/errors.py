"""Error kinds raised by the URL shortener core."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .database.models import URLMapping


class ShortenerError(Exception):
    """Base class for every error the service surfaces."""


class InvalidInputError(ShortenerError, ValueError):
    """The long URL is missing or malformed."""


class NotFoundError(ShortenerError):
    """No mapping exists for the given short code."""

    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' not found")
        self.short_code = short_code


class ConflictError(ShortenerError):
    """The long URL has already been shortened.

    Callers still receive the existing resource through ``mapping``.
    """

    def __init__(self, mapping: "URLMapping"):
        super().__init__(f"URL already shortened as '{mapping.short_code}'")
        self.mapping = mapping


class ExhaustedRetriesError(ShortenerError):
    """Every candidate code collided before the retry bound was reached."""

    def __init__(self, attempts: int):
        super().__init__(
            f"Failed to generate unique short code after {attempts} attempts"
        )
        self.attempts = attempts


class StorageFailureError(ShortenerError):
    """Opaque backend failure. The driver error is kept as ``__cause__``."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class UniqueConstraintViolation(ShortenerError):
    """Raised by storage when an insert hits an existing short code."""

    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' already exists")
        self.short_code = short_code
