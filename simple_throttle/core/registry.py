"""Process-wide directory of named throttles.

Registration is serialized by a lock and publishes a fresh mapping
(copy-on-write), so lookups read an already-published dict without locking
and never observe a half-registered throttle. Racing registrations of the
same name resolve to whichever acquired the lock last.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from simple_throttle.core.config import ThrottleDefinition
from simple_throttle.core.throttle import Throttle

logger = logging.getLogger(__name__)


class ThrottleRegistry:
    """Name -> Throttle mapping shared by the whole process."""

    def __init__(self) -> None:
        self._throttles: dict[str, Throttle] = {}
        self._lock = threading.Lock()

    def add(
        self,
        name: Any,
        limit: float,
        ttl: float,
        pause_to_recover: bool = False,
        store: Any = None,
    ) -> Throttle:
        """Create and publish a throttle, replacing any previous one of that name."""

        throttle = Throttle(name, limit, ttl, pause_to_recover=pause_to_recover, store=store)
        with self._lock:
            throttles = dict(self._throttles)
            throttles[throttle.name] = throttle
            self._throttles = throttles

        logger.debug(
            "registry.added",
            extra={
                "throttle": throttle.name,
                "limit": limit,
                "ttl_s": ttl,
                "pause_to_recover": throttle.pause_to_recover,
            },
        )
        return throttle

    def get(self, name: Any) -> Throttle | None:
        return self._throttles.get(str(name))

    def names(self) -> list[str]:
        return sorted(self._throttles)


_registry: ThrottleRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> ThrottleRegistry:
    """Return the process registry, creating it on first use."""

    global _registry

    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ThrottleRegistry()
    return _registry


def register(
    name: Any,
    limit: float,
    ttl: float,
    pause_to_recover: bool = False,
    store: Any = None,
) -> Throttle:
    """Add a global throttle that can be fetched later with ``lookup``."""

    return get_registry().add(name, limit, ttl, pause_to_recover=pause_to_recover, store=store)


def lookup(name: Any) -> Throttle | None:
    """Return a globally registered throttle, or None if it was never registered."""

    if _registry is None:
        return None
    return _registry.get(name)


def register_from_settings(definitions: Mapping[str, ThrottleDefinition]) -> list[Throttle]:
    """Register every throttle declared in configuration.

    Args:
        definitions: Mapping of throttle name to its definition, typically
            ``settings.app.throttles``.

    Returns:
        The registered throttles, in name order.
    """

    throttles = [
        register(
            name,
            definition.limit,
            definition.ttl,
            pause_to_recover=definition.pause_to_recover,
        )
        for name, definition in sorted(definitions.items())
    ]
    if throttles:
        logger.info(
            "registry.configured",
            extra={"throttles": [t.name for t in throttles]},
        )
    return throttles
