from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class OwnerLockRegistry:
    """
    One asyncio.Lock per booking-page owner.

    Holding an owner's lock while checking availability and inserting the
    meeting serializes bookings against the same calendar within this
    process. It does not coordinate multiple worker processes; that needs
    an exclusion constraint in the database.

    A lock only exists while some request holds or waits for it, so the
    registry stays as small as the number of owners being booked right now.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def for_owner(self, owner_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(owner_id, asyncio.Lock())
        self._users[owner_id] = self._users.get(owner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[owner_id] -= 1
            if self._users[owner_id] == 0:
                del self._users[owner_id]
                del self._locks[owner_id]

    def __len__(self) -> int:
        return len(self._locks)
