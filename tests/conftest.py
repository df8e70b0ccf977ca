"""Test configuration."""

import threading
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from url_fetcher.core.registry import JobRegistry, get_registry
from url_fetcher.main import app

from fakes import FakeFetcher


@pytest.fixture
def gate() -> Generator[threading.Event, None, None]:
    """Event that holds blocking fetches; always released at teardown."""
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def registry(fetcher: FakeFetcher, gate: threading.Event) -> Generator[JobRegistry, None, None]:
    """Fresh registry wired to the fake fetcher."""
    reg = JobRegistry(fetcher=fetcher, max_workers=8, error_max_chars=500)
    yield reg
    gate.set()
    reg.drain(timeout=5)
    reg.shutdown()


@pytest.fixture
def client(registry: JobRegistry) -> Generator[TestClient, None, None]:
    """Test client whose routes read from the per-test registry."""
    app.dependency_overrides[get_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_registry, None)
