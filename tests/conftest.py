"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any import that might load settings,
and every test runs against a fresh in-process fake Redis server (with the
Lua engine, so the real window script executes).
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import fakeredis
import pytest

from simple_throttle.adapters.store.default import default_store
from simple_throttle.core import registry as registry_module
from simple_throttle.core.throttle import window_script


class FakeClock:
    """Deterministic wall clock used to drive window expiry."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def fake_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest.fixture
def store(fake_server: fakeredis.FakeServer) -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(server=fake_server)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolated_process_state(store: fakeredis.FakeRedis):
    """Point the default store at the fake server and reset process-wide caches."""

    default_store.set(store)
    window_script.invalidate()
    registry_module._registry = None
    yield
    default_store.reset()
    window_script.invalidate()
    registry_module._registry = None
