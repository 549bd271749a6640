"""
Per-Identity Locks

Indexing a node is a read-modify-write sequence on the shared membership
field of all its entries. At most one such sequence may run per node
identity at a time; this registry hands out one re-entrant lock per
identity.

Thread Safety
-------------
- The registry itself is protected by an RLock
- A lock exists only while some thread holds or waits for it; the last
  holder releases it from the registry
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import RLock
from typing import Dict, Iterator


class IdentityLocks:

    def __init__(self) -> None:
        self._locks: Dict[str, RLock] = {}
        self._holders: Dict[str, int] = {}
        self._registry_lock = RLock()

    def _acquire_entry(self, identity: str) -> RLock:
        with self._registry_lock:
            lock = self._locks.get(identity)
            if lock is None:
                lock = RLock()
                self._locks[identity] = lock
            self._holders[identity] = self._holders.get(identity, 0) + 1
            return lock

    def _release_entry(self, identity: str) -> None:
        with self._registry_lock:
            remaining = self._holders[identity] - 1
            if remaining:
                self._holders[identity] = remaining
            else:
                del self._holders[identity]
                del self._locks[identity]

    @contextmanager
    def hold(self, identity: str) -> Iterator[None]:
        lock = self._acquire_entry(identity)
        try:
            with lock:
                yield
        finally:
            self._release_entry(identity)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
