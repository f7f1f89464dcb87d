"""
target_gate.gate.locks

Per-order async locks.

Responsibilities:
- Serialize read-modify-write sequences on a single order's record.
- Never block operations on different orders against each other.
- Drop lock entries once no task holds or waits on them.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class OrderLocks:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, order_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(order_id, asyncio.Lock())
        self._users[order_id] = self._users.get(order_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[order_id] -= 1
            if self._users[order_id] == 0:
                del self._users[order_id]
                del self._locks[order_id]

    def __len__(self) -> int:
        return len(self._locks)
