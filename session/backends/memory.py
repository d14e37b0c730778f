"""In-process session store with per-key expiry.

Suitable for development, tests and single-process bots: nothing survives a
restart.
"""

from __future__ import annotations

import asyncio
import heapq
import time
from typing import Callable, Dict, List, Optional, Tuple

from core.logger import PollbotLogger
from session.session import SessionKey
from session.store import SessionStore

logger = PollbotLogger.get_logger(__name__)


class MemoryStore(SessionStore):
    """Dict-backed store guarded by an :class:`asyncio.Lock`.

    Deadlines are also kept in a min-heap; every operation first sweeps the
    keys whose deadline has passed, so expired values never pile up.  Heap
    entries whose deadline was since replaced or cleared are discarded when
    they surface.

    Args:
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: Dict[str, bytes] = {}
        self._deadlines: Dict[str, float] = {}
        self._heap: List[Tuple[float, str]] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        self._sweep()
        return len(self._data)

    def _sweep(self) -> None:
        now = self._clock()
        while self._heap and self._heap[0][0] <= now:
            deadline, name = heapq.heappop(self._heap)
            if self._deadlines.get(name) != deadline:
                continue
            del self._deadlines[name]
            self._data.pop(name, None)
            logger.debug("Session key expired", extra={"session_key": name})

    def _set_deadline(self, name: str, seconds: int) -> None:
        deadline = self._clock() + seconds
        self._deadlines[name] = deadline
        heapq.heappush(self._heap, (deadline, name))

    def _drop(self, name: str) -> None:
        self._data.pop(name, None)
        self._deadlines.pop(name, None)

    async def get(self, key: SessionKey) -> Optional[bytes]:
        async with self._lock:
            self._sweep()
            return self._data.get(str(key))

    async def set(self, key: SessionKey, value: bytes, ttl: Optional[int] = None) -> None:
        name = str(key)
        async with self._lock:
            self._sweep()
            if ttl is not None and ttl <= 0:
                self._drop(name)
                return
            self._data[name] = value
            self._deadlines.pop(name, None)
            if ttl is not None:
                self._set_deadline(name, ttl)

    async def expire(self, key: SessionKey, seconds: int) -> None:
        name = str(key)
        async with self._lock:
            self._sweep()
            if name not in self._data:
                return
            if seconds <= 0:
                self._drop(name)
                return
            self._set_deadline(name, seconds)

    async def delete(self, key: SessionKey) -> None:
        async with self._lock:
            self._sweep()
            self._drop(str(key))

    def clear(self) -> None:
        """Drop every key."""
        self._data.clear()
        self._deadlines.clear()
        self._heap.clear()
