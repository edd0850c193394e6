"""Validation utilities for URL shortener."""

from urllib.parse import urlsplit
from typing import Tuple

from ..shortcode import ShortCodeGenerator

MAX_URL_LENGTH = 2048


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a long URL.

    Accepts absolute http/https URLs with a non-empty host.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    if any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url):
        return False, "URL must not contain whitespace or control characters"

    try:
        result = urlsplit(url)

        if result.scheme not in ("http", "https"):
            return False, "URL must use http or https protocol"

        if not result.hostname:
            return False, "URL must have a valid domain"

        # Raises ValueError for a non-numeric or out-of-range port
        result.port

        return True, ""

    except ValueError as e:
        return False, f"Invalid URL format: {e}"


def is_valid_short_code(short_code: str) -> Tuple[bool, str]:
    """Validate a short code against the generator's fixed format.

    Args:
        short_code: The short code to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not short_code or not isinstance(short_code, str):
        return False, "Short code is required"

    if not ShortCodeGenerator.is_valid_format(short_code):
        return False, "Short code must be 6 letters or digits"

    return True, ""
