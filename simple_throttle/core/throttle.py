"""Sliding-window throttle coordinated through a shared Redis store.

A throttle allows at most ``limit`` events per rolling ``ttl`` seconds for a
named resource. The window is stored as a Redis list of millisecond
timestamps (oldest first) under ``simple_throttle.<name>``. Every admission
runs one Lua script that trims, checks capacity and records in a single
atomic step, so processes sharing the store never admit past the limit
together.

Example:
    from simple_throttle import Throttle

    throttle = Throttle("search-api", limit=10, ttl=60)
    if throttle.allowed():
        call_search_api()
    else:
        time.sleep(throttle.wait_time())
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable

from simple_throttle.adapters.store.base import StoreHandle, StoreSource, store_source
from simple_throttle.adapters.store.default import default_store, set_default_store
from simple_throttle.core.script import ScriptManager

logger = logging.getLogger(__name__)

KEY_PREFIX = "simple_throttle."

# KEYS[1] list key
# ARGV: limit, ttl_ms, now_ms, pause_to_recover (0/1), amount, force_cleanup (0/1)
#
# Expired entries are popped from the head only while the list is at capacity
# (or when force_cleanup asks for exact accounting), stopping at the first
# fresh entry. At most one entry beyond the effective limit is recorded, which
# is what lets a rejected call keep penalizing in pause-to-recover mode.
WINDOW_SCRIPT = """
local list_key = KEYS[1]
local limit = tonumber(ARGV[1])
local ttl = tonumber(ARGV[2])
local now = ARGV[3]
local pause_to_recover = tonumber(ARGV[4])
local amount = tonumber(ARGV[5])
local force_cleanup = tonumber(ARGV[6])

local size = redis.call('llen', list_key)
if size >= limit or (force_cleanup > 0 and size > 0) then
  local expired = tonumber(now) - ttl
  while size > 0 do
    local t = redis.call('lpop', list_key)
    if tonumber(t) > expired then
      redis.call('lpush', list_key, t)
      break
    end
    size = size - 1
  end
end

local effective_limit = limit
if pause_to_recover > 0 then
  effective_limit = limit + 1
end

if size + amount > effective_limit then
  amount = (effective_limit - size) + 1
end

if size < effective_limit then
  for i = 1, amount do
    redis.call('rpush', list_key, now)
  end
  redis.call('pexpire', list_key, ttl)
end

return size + amount
"""

# One digest cache per process, shared by every throttle.
window_script = ScriptManager(WINDOW_SCRIPT, name="sliding_window")


def _to_int(value: Any) -> int:
    if isinstance(value, bytes):
        value = value.decode()
    return int(value)


class Throttle:
    """Rolling-window limit for one named resource.

    Instances hold no store-side resource; any number of them (in any number
    of processes) with the same name share one window. All operations are
    safe to call concurrently.

    Attributes:
        name: Unique resource name. Non-string names are converted with ``str()``.
        limit: Events allowed per window. Fractional values are compared
            numerically; values ``<= 0`` deny every call.
        ttl: Window length in seconds.
        pause_to_recover: When set, a saturated throttle keeps rejecting until
            callers leave a real gap, instead of admitting as soon as the
            oldest event ages out.
    """

    def __init__(
        self,
        name: Any,
        limit: float,
        ttl: float,
        pause_to_recover: bool = False,
        store: Any = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Create a throttle.

        Args:
            name: Resource name; the store key is ``simple_throttle.<name>``.
            limit: Maximum events per window.
            ttl: Window length in seconds.
            pause_to_recover: Enable the pause-to-recover penalty mode.
            store: Optional store handle, zero-argument resolver returning a
                handle, or explicit ``FixedStore``/``StoreResolver``. Defaults
                to the process-wide default store.
            clock: Wall-clock source in seconds. Must agree across processes
                sharing the store.

        Raises:
            ValueError: If ttl is not positive.
        """
        if ttl <= 0:
            raise ValueError("ttl must be > 0")

        self._name = str(name)
        self.limit = limit
        self.ttl = ttl
        self.pause_to_recover = bool(pause_to_recover)
        self._store_source: StoreSource | None = store_source(store)
        self._clock = clock

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"Throttle(name={self._name!r}, limit={self.limit!r}, ttl={self.ttl!r}, "
            f"pause_to_recover={self.pause_to_recover!r})"
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def redis_key(self) -> str:
        return f"{KEY_PREFIX}{self._name}"

    # ---- registry / default store conveniences ----

    @classmethod
    def register(
        cls,
        name: Any,
        limit: float,
        ttl: float,
        pause_to_recover: bool = False,
        store: Any = None,
    ) -> "Throttle":
        """Register a process-wide throttle that can be fetched with ``lookup``."""

        from simple_throttle.core.registry import register

        return register(name, limit, ttl, pause_to_recover=pause_to_recover, store=store)

    @classmethod
    def lookup(cls, name: Any) -> "Throttle | None":
        """Return the registered throttle with the given name, if any."""

        from simple_throttle.core.registry import lookup

        return lookup(name)

    @staticmethod
    def set_default_store(value: Any) -> None:
        """Set the store (or resolver) used by throttles without an override."""

        set_default_store(value)

    # ---- operations ----

    def allowed(self) -> bool:
        """Return True if the limit has not been reached yet.

        Every call is recorded, allowed or not. In pause-to-recover mode the
        recorded rejection is what keeps a saturating caller locked out.
        """

        count = self._record(1, force_cleanup=False)
        if count <= self.limit:
            return True

        logger.debug(
            "throttle.denied",
            extra={"throttle": self._name, "count": count, "limit": self.limit},
        )
        return False

    def increment(self, amount: int = 1) -> int:
        """Record ``amount`` events and return the resulting count.

        Expired entries are trimmed first so the count is exact. The returned
        value is clamped to at most one past the effective limit; compare it
        with ``limit`` to decide whether to proceed.

        With a negative limit the clamp drives the result below zero and
        nothing is recorded, e.g. ``limit=-5`` with ``increment(3)`` gives -4.

        Raises:
            ValueError: If amount is lower than 1.
        """

        if amount < 1:
            raise ValueError("amount must be >= 1")
        return self._record(amount, force_cleanup=True)

    def peek(self) -> int:
        """Return the number of events currently inside the window.

        Read-only. Computed from a snapshot of the list, so it is advisory
        while other callers are mutating the same throttle.
        """

        return len(self._fresh_entries())

    def wait_time(self) -> float:
        """Return seconds until the next call should be allowed.

        Advisory only: a zero wait time does not guarantee ``allowed()`` will
        succeed, since other processes or threads can claim the slot first.

        Based on the fresh entries only. The wait ends when the entry whose
        expiry brings the count back under ``limit`` ages out, so stale
        entries not yet trimmed from the head are ignored.
        """

        fresh = self._fresh_entries()
        if len(fresh) < self.limit:
            return 0.0
        if self.limit <= 0:
            # Nothing ever frees a slot.
            return self.ttl

        blocking = fresh[len(fresh) - math.ceil(self.limit)]
        remaining_ms = blocking + self._ttl_ms() - self._now_ms()
        return max(0.0, remaining_ms / 1000.0)

    def reset(self) -> None:
        """Clear the window so the throttle starts from zero."""

        self._store().delete(self.redis_key)
        logger.info("throttle.reset", extra={"throttle": self._name})

    # ---- internals ----

    def _store(self) -> StoreHandle:
        if self._store_source is not None:
            return self._store_source.resolve()
        return default_store.resolve()

    def _now_ms(self) -> int:
        return int(round(self._clock() * 1000))

    def _ttl_ms(self) -> int:
        return max(1, int(round(self.ttl * 1000)))

    def _fresh_entries(self) -> list[int]:
        """Snapshot the window and return unexpired timestamps, oldest first."""

        entries = self._store().lrange(self.redis_key, 0, -1)
        threshold = self._now_ms() - self._ttl_ms()
        return sorted(ts for ts in (_to_int(entry) for entry in entries) if ts > threshold)

    def _record(self, amount: int, *, force_cleanup: bool) -> int:
        reply = window_script.evaluate(
            self._store(),
            keys=[self.redis_key],
            args=[
                self.limit,
                self._ttl_ms(),
                self._now_ms(),
                1 if self.pause_to_recover else 0,
                amount,
                1 if force_cleanup else 0,
            ],
        )
        return _to_int(reply)
