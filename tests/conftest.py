"""Global pytest configuration and fixtures."""
from concurrent.futures import Executor, Future
from unittest.mock import MagicMock

import pytest

from redactlog.core.logging import ConsoleConfig, ForwardingConfig, InitialConfig, LogService


class ImmediateExecutor(Executor):
    """Runs submitted work in the calling thread."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, /, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


@pytest.fixture
def immediate_executor() -> ImmediateExecutor:
    """Executor that makes forwarding synchronous for assertions."""
    return ImmediateExecutor()


@pytest.fixture
def search_client() -> MagicMock:
    """Stand-in for the search backend client."""
    return MagicMock(name="search_client")


@pytest.fixture
def forwarding_config():
    """Factory for forwarding settings."""
    def _forwarding_config(**kwargs):
        kwargs.setdefault("url", "http://search.test:9200")
        return ForwardingConfig(**kwargs)
    return _forwarding_config


@pytest.fixture
def make_service(search_client, immediate_executor):
    """Create a console-only service with a mocked search client."""
    services = []

    def _make_service(blacklist=None, mask="*", **config):
        config.setdefault("app_name", "test-app")
        config.setdefault("console", ConsoleConfig())
        service = LogService(
            blacklist, mask, client=search_client, executor=immediate_executor
        )
        service.init(InitialConfig(**config))
        services.append(service)
        return service

    yield _make_service

    for service in services:
        service.close()
