"""Server-side script caching with a single bounded reload.

The store keeps loaded scripts in a cache addressed by SHA1 digest. The
manager remembers the digest after the first ``SCRIPT LOAD`` and evaluates
by digest afterwards. When the store no longer knows the digest (restart,
``SCRIPT FLUSH``, failover to a fresh replica) the manager reloads and
retries the failed evaluation exactly once.

Loading is idempotent (same body, same digest) so concurrent redundant loads
are harmless and no lock is taken.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from redis.exceptions import NoScriptError

from simple_throttle.adapters.store.base import StoreHandle

logger = logging.getLogger(__name__)


class ScriptState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


class ScriptErrorKind(str, Enum):
    NONE = "none"
    UNKNOWN_SCRIPT = "unknown_script"


@dataclass(frozen=True)
class ScriptResult:
    """Outcome of one ``EVALSHA`` attempt.

    Attributes:
        value: Reply from the store when the evaluation succeeded.
        error_kind: Discriminator for recoverable failures.
        error: The store error behind ``error_kind``, re-raised if the retry
            does not recover.
    """

    value: Any = None
    error_kind: ScriptErrorKind = ScriptErrorKind.NONE
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is ScriptErrorKind.NONE


class ScriptManager:
    """Two-state (``UNLOADED`` / ``LOADED(sha)``) cache for one script body."""

    def __init__(self, body: str, *, name: str = "script") -> None:
        self._body = body
        self._name = name
        self._sha: str | None = None

    @property
    def body(self) -> str:
        return self._body

    @property
    def sha(self) -> str | None:
        return self._sha

    @property
    def state(self) -> ScriptState:
        return ScriptState.UNLOADED if self._sha is None else ScriptState.LOADED

    def load(self, store: StoreHandle) -> str:
        """Load the script body into the store and remember its digest."""

        sha = store.script_load(self._body)
        if isinstance(sha, bytes):
            sha = sha.decode()
        self._sha = sha
        logger.debug("script.loaded", extra={"script": self._name, "sha": sha})
        return sha

    def invalidate(self) -> None:
        self._sha = None

    def _evaluate_once(
        self,
        store: StoreHandle,
        keys: Sequence[str],
        args: Sequence[Any],
    ) -> ScriptResult:
        sha = self._sha or self.load(store)
        try:
            value = store.evalsha(sha, len(keys), *keys, *args)
        except NoScriptError as exc:
            return ScriptResult(error_kind=ScriptErrorKind.UNKNOWN_SCRIPT, error=exc)
        return ScriptResult(value=value)

    def evaluate(
        self,
        store: StoreHandle,
        keys: Sequence[str],
        args: Sequence[Any],
    ) -> Any:
        """Evaluate the script by digest, reloading once if the store forgot it.

        Args:
            store: Store handle to run against.
            keys: Key names (``KEYS`` in the script).
            args: Arguments (``ARGV`` in the script).

        Returns:
            The script reply.

        Raises:
            redis.exceptions.NoScriptError: If the digest is still unknown right
                after reloading.
            redis.exceptions.RedisError: Any other store failure, unchanged and
                without retry.
        """

        result = self._evaluate_once(store, keys, args)
        if result.error_kind is ScriptErrorKind.UNKNOWN_SCRIPT:
            logger.info("script.reloaded", extra={"script": self._name})
            self.invalidate()
            result = self._evaluate_once(store, keys, args)

        if not result.ok:
            raise result.error
        return result.value
