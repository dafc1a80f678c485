# livetrack/core/tracking/locks.py
"""
Блокировки по ключу.

Операции с одним ключом выполняются строго по очереди (asyncio.Lock
отдаёт блокировку в порядке ожидания), разные ключи друг друга не ждут.
Блокировка создаётся по требованию и удаляется, когда её никто не держит.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class KeyedLock:
    """Реестр блокировок asyncio.Lock по ключу."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        # Сколько корутин держат или ждут блокировку
        self._users: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
            self._users[key] = 0
        self._users[key] += 1

        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]
