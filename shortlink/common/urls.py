"""Public short URL construction."""

from typing import Mapping, Optional


def normalize_path_prefix(path_prefix: Optional[str]) -> str:
    """Return ``/prefix`` with a single leading slash, or '' when unset."""
    prefix = (path_prefix or "").strip().strip("/")
    return f"/{prefix}" if prefix else ""


def resolve_base_url(
    headers: Mapping[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Work out the scheme and host clients used to reach us.

    Priority:
    1. X-Forwarded-Proto + X-Forwarded-Host (set by a reverse proxy)
    2. Request scheme + Host header
    3. Configured base URL

    Args:
        headers: Request headers (any key case)
        fallback_base_url: Base URL from configuration
        request_scheme: Scheme the request arrived on
        request_host: Host header of the request

    Returns:
        Base URL without a trailing slash (e.g. https://sho.rt)
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    proto = lowered.get("x-forwarded-proto")
    host = lowered.get("x-forwarded-host")

    if proto and host:
        return f"{proto}://{host}"
    if request_scheme and request_host:
        return f"{request_scheme}://{request_host}"
    return fallback_base_url.rstrip("/")


def build_short_url(short_code: str, base_url: str, path_prefix: str = "") -> str:
    """Join base URL, redirect prefix and code into the public short link."""
    return f"{base_url.rstrip('/')}{normalize_path_prefix(path_prefix)}/{short_code}"
