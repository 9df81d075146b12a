"""Thread-safe memoization with at-most-once construction per key."""

import threading
from collections.abc import Callable
from typing import Generic
from typing import TypeVar

K = TypeVar("K")
V = TypeVar("V")


class OnceCache(Generic[K, V]):
    """Append-only cache whose factory runs at most once per key.

    Concurrent callers asking for the same missing key serialize on a
    per-key lock; one runs the factory while the others wait and reuse
    its result. A factory that raises leaves the key missing, so a later
    call retries. Per-key locks live only while a caller holds or waits on
    them.
    """

    def __init__(self) -> None:
        self._values: dict[K, V] = {}
        self._key_locks: dict[K, tuple[threading.Lock, int]] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> V | None:
        with self._lock:
            return self._values.get(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def get_or_create(self, key: K, factory: Callable[[], V]) -> V:
        """Return the cached value for key, running factory on the first request."""
        with self._lock:
            if key in self._values:
                return self._values[key]
            key_lock, users = self._key_locks.get(key, (threading.Lock(), 0))
            self._key_locks[key] = (key_lock, users + 1)

        try:
            with key_lock:
                with self._lock:
                    if key in self._values:
                        return self._values[key]
                value = factory()
                with self._lock:
                    self._values[key] = value
                return value
        finally:
            self._release(key)

    def _release(self, key: K) -> None:
        # last user drops the key lock
        with self._lock:
            key_lock, users = self._key_locks[key]
            if users > 1:
                self._key_locks[key] = (key_lock, users - 1)
            else:
                del self._key_locks[key]

    def snapshot(self) -> dict[K, V]:
        """Return a copy of the cached values."""
        with self._lock:
            return dict(self._values)
