"""Per-key asyncio locks for read-modify-write sections.

Challenge progress, votes and poll picks are each owned by a single
(user, key) pair. Requests for the same pair are serialised in-process with
one of these locks; across processes the row lock (``SELECT ... FOR UPDATE``)
and the table's unique constraint take over.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager


class KeyedLock:
    """A lazily-populated map of ``asyncio.Lock`` objects, one per key.

    Entries are reference counted and dropped once no task holds or waits
    on them, so the map only ever contains keys with in-flight work.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()


progress_locks = KeyedLock()
vote_locks = KeyedLock()
poll_locks = KeyedLock()
