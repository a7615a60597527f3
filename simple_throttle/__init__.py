"""Distributed sliding-window throttles backed by a shared Redis store."""

from simple_throttle.adapters.store import FixedStore, StoreResolver, set_default_store
from simple_throttle.core.registry import ThrottleRegistry, lookup, register
from simple_throttle.core.throttle import Throttle

__all__ = [
    "FixedStore",
    "StoreResolver",
    "Throttle",
    "ThrottleRegistry",
    "lookup",
    "register",
    "set_default_store",
]
