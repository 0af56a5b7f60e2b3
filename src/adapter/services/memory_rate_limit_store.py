import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from src.app.services.rate_limiter import RateLimitResult, RateLimitStore

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class RateLimitEntry:
    count: int
    reset_time: int


class MemoryRateLimitStore(RateLimitStore):
    """
    In-process rate-limit store.

    Correct only within a single process. A lock serializes check-and-increment
    so concurrent requests on the same event loop cannot both take the last slot.
    Expired entries are dropped by a periodic sweep task, not on the request path.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms):
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = asyncio.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    async def check(
        self, identifier: str, window_ms: int, max_requests: int
    ) -> RateLimitResult:
        async with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)

            if entry is None or now > entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + window_ms)
                self._entries[identifier] = entry
                return RateLimitResult(
                    allowed=True,
                    remaining=max_requests - 1,
                    reset_time=entry.reset_time,
                )

            if entry.count < max_requests:
                entry.count += 1
                return RateLimitResult(
                    allowed=True,
                    remaining=max_requests - entry.count,
                    reset_time=entry.reset_time,
                )

            return RateLimitResult(allowed=False, remaining=0, reset_time=entry.reset_time)

    async def reset(self, identifier: str) -> None:
        async with self._lock:
            self._entries.pop(identifier, None)

    async def sweep(self) -> int:
        """Drop every entry whose window has ended, returns how many were removed"""
        async with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now > entry.reset_time]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Rate limit sweep removed {len(expired)} entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def start_sweeper(self, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> None:
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self._sweep_forever(interval_seconds))

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_forever(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            await self.sweep()
