"""Shared test configuration and fixtures for all tests."""

import httpx
import pytest

from speed_benchmark.structs import RunConfig


@pytest.fixture
def run_config():
    """Small, fast, already-normalized run configuration."""
    return RunConfig(
        base_url="http://speed.test",
        duration=0.2,
        streams=2,
        chunk_size=1024,
        download_mb=1,
        ping_count=2,
        timeout=5.0,
    )


@pytest.fixture
def make_client():
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def factory(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def events():
    """Collecting progress sink."""

    class Collector(list):
        def __call__(self, event):
            self.append(event)

    return Collector()
