"""Store handle interface and per-throttle store sources.

A throttle talks to the store through a handle exposing the handful of
Redis commands the sliding-window protocol needs. Where that handle comes
from is described by a store source:

- ``FixedStore``: a handle fixed at construction time.
- ``StoreResolver``: a callable evaluated on every operation, for processes
  that re-create connections (e.g., after fork).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, Union


class StoreHandle(Protocol):
    """Subset of the redis-py client API used by the throttle."""

    def script_load(self, script: str) -> str: ...

    def evalsha(self, sha: str, numkeys: int, *keys_and_args: Any) -> Any: ...

    def lrange(self, name: str, start: int, end: int) -> list[Any]: ...

    def delete(self, *names: str) -> int: ...

    def ping(self) -> Any: ...


@dataclass(frozen=True)
class FixedStore:
    """Store source that always yields the same handle."""

    handle: StoreHandle

    def resolve(self) -> StoreHandle:
        return self.handle


@dataclass(frozen=True)
class StoreResolver:
    """Store source evaluated at call time."""

    resolver: Callable[[], StoreHandle]

    def resolve(self) -> StoreHandle:
        return self.resolver()


StoreSource = Union[FixedStore, StoreResolver]


def store_source(value: Any) -> StoreSource | None:
    """Coerce a handle, a resolver callable or an explicit source.

    Args:
        value: ``None``, a ``FixedStore``/``StoreResolver``, a zero-argument
            callable returning a handle, or a handle itself.

    Returns:
        The matching store source, or None when no override was given.

    Examples:
        >>> store_source(None) is None
        True
        >>> isinstance(store_source(lambda: None), StoreResolver)
        True
    """

    if value is None or isinstance(value, (FixedStore, StoreResolver)):
        return value
    if callable(value):
        return StoreResolver(value)
    return FixedStore(value)
