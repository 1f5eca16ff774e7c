# skyward_scraper/utils/ratelimiter.py
import asyncio
import logging
from typing import Optional

from ..waits import Clock, SYSTEM_CLOCK

logger = logging.getLogger(__name__)


class TokenBucket:
    """Allow <rate> acquisitions every <per> seconds; extra callers sleep until a token leaks back."""

    def __init__(self, rate: int, per: float, clock: Optional[Clock] = None):
        self.clock = clock or SYSTEM_CLOCK
        self.capacity = rate
        self.tokens = float(rate)
        self.per = per
        self.updated = self.clock.monotonic()
        self._lock = asyncio.Lock()

    def _leak(self) -> None:
        now = self.clock.monotonic()
        leaked = (now - self.updated) * (self.capacity / self.per)
        self.tokens = min(self.capacity, self.tokens + leaked)
        self.updated = now

    async def acquire(self) -> float:
        """Take one token; returns how long the caller was held back."""
        async with self._lock:
            self._leak()
            waited = 0.0
            if self.tokens < 1:
                waited = (1 - self.tokens) * (self.per / self.capacity)
                logger.info("Throttling browser launch for %.1fs", waited)
                await self.clock.sleep(waited)
                self._leak()
            self.tokens = max(0.0, self.tokens - 1)
            return waited
