"""
Per-record write serialization.

Every mutation of a (product_id, warehouse_id) stock record runs while
holding that key's lock. Multi-record operations acquire their keys in
sorted order, so two transfers over the same pair of warehouses can never
deadlock on each other. Alert lifecycle writes use their own registry keyed
by product.

The database row lock (SELECT ... FOR UPDATE) taken inside the transaction
covers writers in other processes; these registries cover concurrent
requests within one process, including on SQLite where FOR UPDATE is a no-op.

A key's lock exists only while someone holds or waits for it.
"""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager

StockKey = tuple[int, int]


class KeyedLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _checkout(self, key: Hashable) -> None:
        self._users[key] = self._users.get(key, 0) + 1

    def _checkin(self, key: Hashable) -> None:
        remaining = self._users[key] - 1
        if remaining:
            self._users[key] = remaining
        else:
            del self._users[key]
            self._locks.pop(key, None)

    @asynccontextmanager
    async def hold(self, *keys: Hashable) -> AsyncIterator[None]:
        """Hold the locks for ``keys`` (deduplicated, sorted) for the block."""
        ordered = sorted(set(keys))
        for key in ordered:
            self._checkout(key)

        acquired: list[asyncio.Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._checkin(key)

    def is_held(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()


stock_locks = KeyedLockRegistry()
alert_locks = KeyedLockRegistry()
