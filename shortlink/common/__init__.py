"""Common utilities for URL shortener."""

from .validators import is_valid_url, is_valid_short_code
from .urls import build_short_url, normalize_path_prefix, resolve_base_url
from .logging_config import setup_logging, get_logger

__all__ = [
    "is_valid_url",
    "is_valid_short_code",
    "build_short_url",
    "normalize_path_prefix",
    "resolve_base_url",
    "setup_logging",
    "get_logger",
]
