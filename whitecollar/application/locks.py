"""Per-shop mutual exclusion for picture admissions.

A shop's capacity check, id assignment and insert must not interleave with
another admission to the same shop. Admissions to different shops never wait
on each other. Entries are dropped as soon as nobody holds or waits on them,
so the registries stay as small as the number of shops under admission.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Final


class ShopLockRegistry:
    """Thread locks keyed by shop id, for the synchronous request path."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}
        self._users: dict[int, int] = {}

    @contextmanager
    def hold(self, shop_id: int) -> Iterator[None]:
        """Hold the lock of one shop for the duration of the block."""
        with self._guard:
            lock = self._locks.setdefault(shop_id, threading.Lock())
            self._users[shop_id] = self._users.get(shop_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[shop_id] -= 1
                if not self._users[shop_id]:
                    del self._users[shop_id]
                    del self._locks[shop_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class AsyncShopLockRegistry:
    """asyncio locks keyed by shop id, for coroutines sharing one event loop."""

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, shop_id: int) -> AsyncIterator[None]:
        """Hold the lock of one shop for the duration of the block."""
        # No await between lookup and registration, so this needs no guard
        lock = self._locks.setdefault(shop_id, asyncio.Lock())
        self._users[shop_id] = self._users.get(shop_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[shop_id] -= 1
            if not self._users[shop_id]:
                del self._users[shop_id]
                del self._locks[shop_id]

    def __len__(self) -> int:
        return len(self._locks)


# Process-wide registries shared by every request
shop_locks: Final = ShopLockRegistry()
async_shop_locks: Final = AsyncShopLockRegistry()
