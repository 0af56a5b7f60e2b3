import logging
import time

from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.app.services.rate_limiter import (
    RateLimitResult,
    RateLimitStore,
    RateLimitStoreError,
)

logger = logging.getLogger(__name__)

KEY_PREFIX = "ratelimit:"

# KEYS[1] = window key, ARGV[1] = window length in ms
WINDOW_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if redis.call('PTTL', KEYS[1]) < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
return {count, redis.call('PTTL', KEYS[1])}
"""


class RedisRateLimitStore(RateLimitStore):
    """
    Shared rate-limit store for multi-instance deployments.

    INCR and the expiry of a fresh key run inside one Lua script, so a
    counter never exists without a TTL and Redis drops the window when it
    ends. Counts keep growing past the limit, which still reports
    remaining=0.
    """

    def __init__(self, client: Redis):
        self.client = client
        self._window = client.register_script(WINDOW_SCRIPT)

    @classmethod
    def from_url(cls, url: str) -> "RedisRateLimitStore":
        return cls(Redis.from_url(url, decode_responses=True))

    async def check(
        self, identifier: str, window_ms: int, max_requests: int
    ) -> RateLimitResult:
        key = f"{KEY_PREFIX}{identifier}"

        try:
            count, ttl = await self._window(keys=[key], args=[window_ms])
        except RedisError as e:
            logger.error(f"Rate limit check failed for {identifier}: {e}")
            raise RateLimitStoreError(str(e)) from e

        reset_time = int(time.time() * 1000) + int(ttl)
        count = int(count)

        if count > max_requests:
            return RateLimitResult(allowed=False, remaining=0, reset_time=reset_time)
        return RateLimitResult(
            allowed=True, remaining=max_requests - count, reset_time=reset_time
        )

    async def reset(self, identifier: str) -> None:
        try:
            await self.client.delete(f"{KEY_PREFIX}{identifier}")
        except RedisError as e:
            logger.error(f"Rate limit reset failed for {identifier}: {e}")
            raise RateLimitStoreError(str(e)) from e

    async def close(self) -> None:
        await self.client.aclose()
