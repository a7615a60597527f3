"""Process-wide default store handle.

Throttles without their own store override share one default handle. It is
built lazily from ``settings.store`` the first time a throttle needs it, or
replaced up front with ``set_default_store()``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable
from urllib.parse import urlparse

import redis

from simple_throttle.adapters.store.base import StoreHandle, StoreSource, store_source
from simple_throttle.core.config import StoreSettings, settings

logger = logging.getLogger(__name__)


def build_redis_client(store_settings: StoreSettings | None = None) -> redis.Redis:
    """Create a redis-py client from store settings.

    Args:
        store_settings: Optional store settings; defaults to global settings.

    Returns:
        redis.Redis: Client connected lazily on first command.
    """

    cfg = store_settings or settings.store
    url = urlparse(cfg.url)
    client = redis.Redis.from_url(
        cfg.url,
        socket_timeout=cfg.socket_timeout_seconds,
        socket_connect_timeout=cfg.socket_connect_timeout_seconds,
    )
    logger.info(
        "store.default_created",
        extra={
            "store_host": url.hostname or "localhost",
            "store_port": url.port or 6379,
            "store_db": (url.path or "/0").lstrip("/") or "0",
            "store_tls": url.scheme == "rediss",
        },
    )
    return client


class DefaultStoreProvider:
    """Lazily-constructed default store shared by every throttle in the process."""

    def __init__(self, factory: Callable[[], StoreHandle] | None = None) -> None:
        self._factory = factory or build_redis_client
        self._source: StoreSource | None = None
        self._lock = threading.Lock()

    def set(self, value: Any) -> None:
        """Replace the default with a handle or a resolver callable."""

        self._source = store_source(value)

    def reset(self) -> None:
        """Forget the current default so the next call rebuilds it."""

        self._source = None

    def resolve(self) -> StoreHandle:
        source = self._source
        if source is None:
            with self._lock:
                if self._source is None:
                    self._source = store_source(self._factory())
                source = self._source
        return source.resolve()


default_store = DefaultStoreProvider()


def set_default_store(value: Any) -> None:
    """Set the store used by throttles that have no override.

    Accepts either a client instance or a zero-argument callable returning
    one. The callable form is evaluated on every throttle operation, so use
    it when the connection is not constant (for example when connections are
    re-initialized after fork).
    """

    default_store.set(value)


def get_default_store() -> StoreHandle:
    """Return the default store handle, constructing it on first use."""

    return default_store.resolve()
