"""Per-caller fixed-window rate limiting.

Counters live in process memory, keyed by ``<category>:<identifier>``.
Windows that have run out are swept at most once per sweep interval, so
callers that stop sending requests do not keep their counters alive.
"""

import math
from dataclasses import dataclass
from time import time
from typing import Callable, Dict, Optional

from estimate_export.core.config import settings, RateLimitSettings
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate-limit check; ``reset`` is a unix epoch second."""

    success: bool
    limit: int
    remaining: int
    reset: int


@dataclass
class _Window:
    started_at: float
    window_seconds: int
    count: int = 0

    def expired(self, now: float) -> bool:
        return now - self.started_at >= self.window_seconds


class RateLimiter:
    """Fixed-window counter per identifier and category."""

    def __init__(
        self,
        config: Optional[RateLimitSettings] = None,
        clock: Callable[[], float] = time,
        sweep_interval: Optional[float] = None,
    ):
        self.config = config or settings.rate_limit
        self._clock = clock
        self._sweep_interval = sweep_interval if sweep_interval is not None else self.config.api_window_seconds
        self._last_sweep = clock()
        self._windows: Dict[str, _Window] = {}

    def __len__(self) -> int:
        return len(self._windows)

    async def check(self, identifier: str, category: str = "API") -> RateLimitResult:
        """Count one request and report whether it is within budget.

        Rejected requests do not consume quota.
        """
        limit, window_seconds = self.config.budget(category)
        key = f"{category.upper()}:{identifier}"
        now = self._clock()
        self._evict_expired(now)

        window = self._windows.get(key)
        if window is None or window.expired(now):
            window = _Window(started_at=now, window_seconds=window_seconds)
            self._windows[key] = window

        reset = int(math.ceil(window.started_at + window_seconds))

        if window.count >= limit:
            LOGGER.warning(
                "Rate limit exceeded",
                extra={"identifier": identifier, "category": category, "limit": limit},
            )
            return RateLimitResult(success=False, limit=limit, remaining=0, reset=reset)

        window.count += 1
        return RateLimitResult(
            success=True,
            limit=limit,
            remaining=limit - window.count,
            reset=reset,
        )

    def reset(self, identifier: Optional[str] = None) -> None:
        """Forget counters for one identifier, or for everyone."""
        if identifier is None:
            self._windows.clear()
            return
        for key in [k for k in self._windows if k.split(":", 1)[1] == identifier]:
            del self._windows[key]

    def _evict_expired(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        expired = [key for key, window in self._windows.items() if window.expired(now)]
        for key in expired:
            del self._windows[key]
        if expired:
            LOGGER.debug("Evicted expired rate-limit windows", extra={"count": len(expired)})


# Global limiter shared by all requests in this process
rate_limiter = RateLimiter()


async def check_rate_limit(identifier: str, category: str = "API") -> RateLimitResult:
    """Check the shared limiter for ``identifier`` in ``category``."""
    return await rate_limiter.check(identifier, category)
