"""
Rate Limiter

Fixed-window request counting per identifier string, e.g. "email:<addr>"
or "ip:<addr>". The window opens on the first request and resets at a fixed
offset after it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from config import PasswordResetConfig

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS


class RateLimitStoreError(Exception):
    """The backing store could not be reached or answered nonsense"""


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: int  # epoch milliseconds


class RateLimitStore(ABC):
    """
    Storage backend for the limiter.

    check() must be atomic per identifier: the read of the current window
    and the increment happen as one step.
    """

    @abstractmethod
    async def check(
        self, identifier: str, window_ms: int, max_requests: int
    ) -> RateLimitResult:
        """
        Observe one request for identifier.

        - No entry or an expired window: open a fresh window with count 1
        - count < max_requests: increment, remaining = max_requests - count
        - Otherwise: allowed=False, remaining=0
        """
        pass

    @abstractmethod
    async def reset(self, identifier: str) -> None:
        """Forget the window of an identifier"""
        pass


class RateLimiter:
    """Applies the password reset rate-limit policies on top of a store."""

    def __init__(self, store: RateLimitStore, config: PasswordResetConfig):
        self.store = store
        self.config = config

    async def check(
        self, identifier: str, window_ms: int, max_requests: int
    ) -> RateLimitResult:
        if window_ms <= 0 or max_requests <= 0:
            raise ValueError("window_ms and max_requests must be positive")
        return await self.store.check(identifier, window_ms, max_requests)

    async def by_email(self, email: str) -> RateLimitResult:
        return await self.check(
            f"email:{email.strip().lower()}",
            HOUR_MS,
            self.config.rate_limit_per_email_per_hour,
        )

    async def by_ip(self, ip: str) -> RateLimitResult:
        return await self.check(
            f"ip:{ip}", HOUR_MS, self.config.rate_limit_per_ip_per_hour
        )

    async def by_verification(self, identifier: str) -> RateLimitResult:
        return await self.check(
            f"verify:{identifier}",
            self.config.verify_window_minutes * MINUTE_MS,
            self.config.verify_rate_limit,
        )
