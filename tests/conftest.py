"""Pytest configuration and fixtures."""

import random
from typing import Iterable

import pytest

from shortlink.database.memory import InMemoryURLMappingStore
from shortlink.service import URLShortenerService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.tasks import BackgroundTaskRunner
from shortlink.common.logging_config import setup_logging


class ScriptedGenerator(ShortCodeGenerator):
    """Hands out a fixed sequence of codes and records every call."""

    def __init__(self, codes: Iterable[str]):
        super().__init__(rng=random.Random(0))
        self._codes = list(codes)
        self.calls = 0

    def generate(self) -> str:
        code = self._codes[min(self.calls, len(self._codes) - 1)]
        self.calls += 1
        return code


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def store(logger):
    """In-memory mapping store."""
    return InMemoryURLMappingStore(logger=logger)


@pytest.fixture
def short_code_generator():
    """Seeded short code generator."""
    return ShortCodeGenerator(rng=random.Random(1234))


@pytest.fixture
def scripted_generator():
    """Class building generators that return predetermined codes."""
    return ScriptedGenerator


@pytest.fixture
async def task_runner(logger):
    """Background runner, drained after each test."""
    runner = BackgroundTaskRunner(timeout_seconds=3.0, logger=logger)
    yield runner
    await runner.close()


@pytest.fixture
def make_service(store, short_code_generator, task_runner, logger):
    """Factory for services sharing the default fixtures unless overridden."""

    def _make(**overrides) -> URLShortenerService:
        kwargs = {
            "db": store,
            "short_code_generator": short_code_generator,
            "task_runner": task_runner,
            "logger": logger,
        }
        kwargs.update(overrides)
        return URLShortenerService(**kwargs)

    return _make


@pytest.fixture
def service(make_service) -> URLShortenerService:
    """Create service instance."""
    return make_service()


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "http://stackoverflow.com/questions/123456?tab=votes#answers",
    ]
