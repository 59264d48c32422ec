"""Per-identity mutual exclusion for attachment edits."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class IdentityLocks:
    """Hands out one asyncio lock per post identity.

    Entries are dropped once nobody holds or waits on them, so the registry
    only grows with the number of posts being edited concurrently.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, identity: str) -> AsyncIterator[None]:
        """Serialize the enclosed block against others for the same identity."""
        lock = self._locks.setdefault(identity, asyncio.Lock())
        self._users[identity] = self._users.get(identity, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[identity] -= 1
            if not self._users[identity]:
                del self._users[identity]
                del self._locks[identity]

    def active(self) -> int:
        """Return how many identities currently have holders or waiters."""
        return len(self._locks)


_POST_LOCKS = IdentityLocks()


def get_post_locks() -> IdentityLocks:
    """Return the process-wide lock registry for post identities."""
    return _POST_LOCKS
