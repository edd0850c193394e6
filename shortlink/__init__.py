"""Core business logic for URL shortener."""

from .shortcode import ShortCodeGenerator
from .service import URLShortenerService
from .tasks import BackgroundTaskRunner

__all__ = ["ShortCodeGenerator", "URLShortenerService", "BackgroundTaskRunner"]
