"""Tests for common utilities."""

import json
import logging

from shortlink.common.validators import is_valid_url, is_valid_short_code
from shortlink.common.urls import build_short_url, normalize_path_prefix, resolve_base_url
from shortlink.common.logging_config import JsonLineFormatter, get_logger, setup_logging


class TestValidators:
    """Test validation utilities."""

    def test_valid_urls(self):
        """Test valid URL validation."""
        valid, _ = is_valid_url("https://example.com")
        assert valid

        valid, _ = is_valid_url("http://example.com/path")
        assert valid

        valid, _ = is_valid_url("https://sub.example.com:8080/path?query=value#frag")
        assert valid

        valid, _ = is_valid_url("http://127.0.0.1/")
        assert valid

    def test_invalid_urls(self):
        """Test invalid URL validation."""
        valid, error = is_valid_url("")
        assert not valid
        assert "required" in error.lower()

        valid, error = is_valid_url(None)
        assert not valid

        valid, error = is_valid_url("not-a-url")
        assert not valid

        valid, error = is_valid_url("/relative/path")
        assert not valid

        valid, error = is_valid_url("ftp://example.com")
        assert not valid
        assert "http" in error.lower()

        valid, error = is_valid_url("https://")
        assert not valid
        assert "domain" in error.lower()

        valid, error = is_valid_url("https://exa mple.com")
        assert not valid

    def test_invalid_port(self):
        """Ports must be numeric and in range."""
        valid, error = is_valid_url("https://example.com:99999/")
        assert not valid
        assert "invalid url format" in error.lower()

        valid, _ = is_valid_url("https://example.com:abc/")
        assert not valid

    def test_url_too_long(self):
        """URLs over 2048 characters are rejected."""
        valid, error = is_valid_url("https://example.com/" + "a" * 2048)
        assert not valid
        assert "too long" in error.lower()

    def test_short_codes(self):
        """Short codes must match the generator format."""
        valid, _ = is_valid_short_code("abc123")
        assert valid

        valid, error = is_valid_short_code("")
        assert not valid
        assert "required" in error.lower()

        valid, _ = is_valid_short_code("abc")
        assert not valid

        valid, _ = is_valid_short_code("abc@12")
        assert not valid


class TestURLs:
    """Test short URL building."""

    def test_resolve_base_url_from_forwarded_headers(self):
        """Proxy headers win, whatever their case."""
        headers = {
            "X-Forwarded-Proto": "https",
            "x-forwarded-host": "sho.rt",
        }

        base_url = resolve_base_url(
            headers=headers,
            fallback_base_url="http://localhost:9200",
            request_scheme="http",
            request_host="internal:9200",
        )

        assert base_url == "https://sho.rt"

    def test_resolve_base_url_from_request(self):
        base_url = resolve_base_url(
            headers={},
            fallback_base_url="http://localhost:9200",
            request_scheme="http",
            request_host="testserver",
        )

        assert base_url == "http://testserver"

    def test_resolve_base_url_fallback(self):
        base_url = resolve_base_url(headers={}, fallback_base_url="http://localhost:9200/")

        assert base_url == "http://localhost:9200"

    def test_build_short_url(self):
        assert build_short_url("Ab3dE9", "https://sho.rt") == "https://sho.rt/Ab3dE9"
        assert build_short_url("Ab3dE9", "https://sho.rt/", "/s/") == "https://sho.rt/s/Ab3dE9"
        assert build_short_url("Ab3dE9", "https://sho.rt", "s") == "https://sho.rt/s/Ab3dE9"

    def test_normalize_path_prefix(self):
        assert normalize_path_prefix("") == ""
        assert normalize_path_prefix(None) == ""
        assert normalize_path_prefix("/") == ""
        assert normalize_path_prefix("s") == "/s"
        assert normalize_path_prefix("/go/") == "/go"


class TestLogging:
    """Test logging configuration."""

    def test_setup_logging_level(self):
        logger = setup_logging(level="warning")

        assert logger.name == "shortlink"
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / "shortlink.log"
        logger = setup_logging(level="INFO", log_file=str(log_file))

        logger.info("written to file")
        for handler in logger.handlers:
            handler.flush()

        assert "written to file" in log_file.read_text()
        setup_logging(level="INFO")

    def test_json_formatter_escapes_quotes(self):
        record = logging.LogRecord(
            name="shortlink",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg='said "hello"',
            args=(),
            exc_info=None,
        )

        payload = json.loads(JsonLineFormatter().format(record))

        assert payload["message"] == 'said "hello"'
        assert payload["level"] == "INFO"
        assert payload["logger"] == "shortlink"

    def test_get_logger_namespaces_children(self):
        assert get_logger().name == "shortlink"
        assert get_logger("web").name == "shortlink.web"
        assert get_logger("shortlink.tasks").name == "shortlink.tasks"
