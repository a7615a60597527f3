"""Store adapter layer - resolves the Redis-compatible handle a throttle uses."""

from simple_throttle.adapters.store.base import FixedStore, StoreHandle, StoreResolver, store_source
from simple_throttle.adapters.store.default import (
    DefaultStoreProvider,
    default_store,
    get_default_store,
    set_default_store,
)

__all__ = [
    "DefaultStoreProvider",
    "FixedStore",
    "StoreHandle",
    "StoreResolver",
    "default_store",
    "get_default_store",
    "set_default_store",
    "store_source",
]
