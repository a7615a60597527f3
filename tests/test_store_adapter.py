"""Tests for store sources and the lazily-built default store."""

from __future__ import annotations

import threading

import fakeredis
import pytest

from simple_throttle import Throttle
from simple_throttle.adapters.store import default as default_module
from simple_throttle.adapters.store.base import FixedStore, StoreResolver, store_source
from simple_throttle.adapters.store.default import DefaultStoreProvider, build_redis_client
from simple_throttle.core.config import StoreSettings


class TestStoreSource:
    def test_none_means_no_override(self) -> None:
        assert store_source(None) is None

    def test_handle_becomes_fixed(self, store) -> None:
        source = store_source(store)
        assert isinstance(source, FixedStore)
        assert source.resolve() is store

    def test_callable_becomes_resolver(self, store) -> None:
        source = store_source(lambda: store)
        assert isinstance(source, StoreResolver)
        assert source.resolve() is store

    def test_explicit_sources_pass_through(self, store) -> None:
        fixed = FixedStore(store)
        resolver = StoreResolver(lambda: store)
        assert store_source(fixed) is fixed
        assert store_source(resolver) is resolver


class TestDefaultStoreProvider:
    def test_builds_default_once(self, store) -> None:
        calls = []

        def _factory():
            calls.append(1)
            return store

        provider = DefaultStoreProvider(factory=_factory)

        assert provider.resolve() is store
        assert provider.resolve() is store
        assert len(calls) == 1

    def test_concurrent_first_use_builds_once(self, store) -> None:
        calls = []
        barrier = threading.Barrier(8)

        def _factory():
            calls.append(1)
            return store

        provider = DefaultStoreProvider(factory=_factory)

        def _resolve() -> None:
            barrier.wait()
            provider.resolve()

        threads = [threading.Thread(target=_resolve) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1

    def test_set_overrides_factory(self, store) -> None:
        provider = DefaultStoreProvider(factory=lambda: pytest.fail("factory must not run"))
        provider.set(store)
        assert provider.resolve() is store

    def test_resolver_is_evaluated_every_time(self, store) -> None:
        calls = []

        def _resolver():
            calls.append(1)
            return store

        provider = DefaultStoreProvider()
        provider.set(_resolver)
        provider.resolve()
        provider.resolve()

        assert len(calls) == 2

    def test_reset_rebuilds(self, store) -> None:
        calls = []

        def _factory():
            calls.append(1)
            return store

        provider = DefaultStoreProvider(factory=_factory)
        provider.resolve()
        provider.reset()
        provider.resolve()

        assert len(calls) == 2


def test_build_redis_client_uses_store_settings() -> None:
    cfg = StoreSettings(
        url="redis://:secret@cache.internal:6380/3",
        socket_timeout_seconds=1.5,
        socket_connect_timeout_seconds=0.5,
    )

    client = build_redis_client(cfg)

    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "cache.internal"
    assert kwargs["port"] == 6380
    assert kwargs["db"] == 3
    assert kwargs["socket_timeout"] == 1.5
    assert kwargs["socket_connect_timeout"] == 0.5


class TestThrottleStoreSelection:
    def test_uses_default_store_without_override(self, clock, store) -> None:
        throttle = Throttle("default-store", limit=2, ttl=60, clock=clock)
        throttle.allowed()

        assert store.llen(throttle.redis_key) == 1

    def test_fixed_override_ignores_default(self, clock, store) -> None:
        other = fakeredis.FakeRedis(server=fakeredis.FakeServer())
        throttle = Throttle("fixed-store", limit=2, ttl=60, store=other, clock=clock)
        throttle.allowed()

        assert other.llen(throttle.redis_key) == 1
        assert store.llen(throttle.redis_key) == 0

    def test_resolver_override_is_called_per_operation(self, clock) -> None:
        other = fakeredis.FakeRedis(server=fakeredis.FakeServer())
        calls = []

        def _resolver():
            calls.append(1)
            return other

        throttle = Throttle("resolved-store", limit=2, ttl=60, store=_resolver, clock=clock)
        throttle.allowed()
        throttle.peek()
        throttle.reset()

        assert len(calls) == 3

    def test_set_default_store_accepts_resolver(self, clock) -> None:
        other = fakeredis.FakeRedis(server=fakeredis.FakeServer())
        Throttle.set_default_store(lambda: other)

        throttle = Throttle("late-default", limit=2, ttl=60, clock=clock)
        throttle.allowed()

        assert other.llen(throttle.redis_key) == 1
        assert isinstance(default_module.default_store._source, StoreResolver)
