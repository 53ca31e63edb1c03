"""Per-key mutual exclusion for order and customer mutations."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLocks:
    """One re-entrant lock per key, created on first use.

    Keys are plain strings such as ``order:42`` or ``customer:c-7``.  When
    both are needed, take the order lock first.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.RLock())
        with lock:
            yield
