# skyward_scraper/waits.py
"""
The one waiting primitive used by the pipeline.

Every "wait until the page looks ready" in the scraper goes through
:func:`wait_until`, and every plain pause goes through ``Clock.sleep``, so
tests can swap in a fake clock and run the 45 s load wait instantly.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Predicate = Callable[[], Union[bool, Awaitable[bool]]]


class Clock:
    """Monotonic time plus an awaitable sleep."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


SYSTEM_CLOCK = Clock()


async def wait_until(
    predicate: Predicate,
    timeout: float,
    interval: float = 0.5,
    clock: Optional[Clock] = None,
    label: str = "condition",
) -> bool:
    """
    Poll ``predicate`` until it is truthy or ``timeout`` seconds pass.

    ``predicate`` may be sync or async. Exceptions it raises count as a
    falsy result (pages mid-navigation throw on evaluate). Returns True when
    the condition was met, False on timeout. The predicate is always tried
    at least once.
    """
    clock = clock or SYSTEM_CLOCK
    deadline = clock.monotonic() + timeout
    while True:
        try:
            result = predicate()
            if inspect.isawaitable(result):
                result = await result
            if result:
                return True
        except Exception as exc:  # noqa: BLE001 - transient page errors while polling
            logger.debug("wait_until(%s): predicate raised %s", label, exc)
        remaining = deadline - clock.monotonic()
        if remaining <= 0:
            logger.debug("wait_until(%s): gave up after %.1fs", label, timeout)
            return False
        await clock.sleep(min(interval, remaining))
