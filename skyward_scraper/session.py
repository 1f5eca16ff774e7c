# skyward_scraper/session.py
"""
Browser Session Manager.

One :class:`BrowserSession` owns at most one visible Chromium process. The
process is launched lazily, reused while ``browser.is_connected()`` holds,
and thrown away with :meth:`BrowserSession.release` (always after a failed
scrape, so the next caller starts clean).

Skyward blocks headless Chromium, so the browser is always headed and every
context gets the same anti-fingerprinting treatment: fixed desktop
viewport, user-agent override, ``--enable-automation`` dropped and an init
script that hides ``navigator.webdriver`` and fills in the navigator
properties headless builds leave empty. Because the script is attached to
the context, the windows Skyward opens after login inherit it.

The session is not safe for concurrent navigation (windows and cookies are
shared), so callers go through :meth:`BrowserSession.with_exclusive_turn`,
a strict FIFO gate.
"""
from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections import deque
from typing import Any, AsyncIterator, Awaitable, Callable, Deque, Optional, Tuple, TypeVar

from playwright.async_api import Browser, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from .config import ScraperConfig, StealthSettings
from .errors import BrowserLaunchError
from .utils.ratelimiter import TokenBucket
from .waits import Clock, SYSTEM_CLOCK

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (driver, browser); the driver only needs an async ``stop()`` and may be None
Launcher = Callable[[StealthSettings], Awaitable[Tuple[Any, Browser]]]

_STEALTH_TEMPLATE = """
() => {
  Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
  window.chrome = window.chrome || { runtime: {} };
  Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
  Object.defineProperty(navigator, 'languages', { get: () => %s });
}
"""


def stealth_script(languages: list) -> str:
    body = _STEALTH_TEMPLATE.strip() % json.dumps(list(languages))
    return f"({body})();"


async def launch_chromium(stealth: StealthSettings) -> Tuple[Any, Browser]:
    """Start Playwright and a visible Chromium configured for the portal."""
    pw = await async_playwright().start()
    try:
        browser = await pw.chromium.launch(
            headless=False,
            args=list(stealth.launch_args),
            ignore_default_args=list(stealth.ignore_default_args),
        )
    except Exception:
        await pw.stop()
        raise
    return pw, browser


class TurnQueue:
    """
    FIFO mutual exclusion.

    ``wait_for_turn`` returns immediately when nobody holds the turn,
    otherwise suspends until every earlier caller has released it.
    ``release_turn`` hands the turn straight to the oldest waiter, so a
    newcomer can never overtake someone already queued.
    """

    def __init__(self) -> None:
        self._busy = False
        self._waiters: Deque[asyncio.Future] = deque()

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def waiting(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    async def wait_for_turn(self) -> None:
        if not self._busy:
            self._busy = True
            return
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await fut
        except asyncio.CancelledError:
            # the turn may have been handed to us right as we were cancelled
            if not fut.cancelled():
                self.release_turn()
            raise

    def release_turn(self) -> None:
        while self._waiters:
            nxt = self._waiters.popleft()
            if not nxt.done():
                nxt.set_result(None)
                return
        self._busy = False


class BrowserSession:
    """Owns the browser process and the turn queue in front of it."""

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        launcher: Optional[Launcher] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or ScraperConfig()
        self._launcher = launcher or launch_chromium
        self._clock = clock or SYSTEM_CLOCK
        self._driver: Any = None
        self._browser: Optional[Browser] = None
        self._launch_limiter = TokenBucket(
            rate=1, per=self.config.timeouts.launch_cooldown_s, clock=self._clock
        )
        self.turns = TurnQueue()

    # ---------------------- LIFECYCLE ----------------------
    @property
    def browser(self) -> Optional[Browser]:
        return self._browser

    def _is_alive(self, browser: Browser) -> bool:
        try:
            return bool(browser.is_connected())
        except PlaywrightError:
            return False

    async def acquire(self) -> Browser:
        """Return a live browser, launching one if there is none or it died."""
        if self._browser is not None:
            if self._is_alive(self._browser):
                return self._browser
            logger.warning("Browser is no longer connected; discarding it")
            await self.release()

        await self._launch_limiter.acquire()
        logger.info("Launching visible Chromium")
        try:
            self._driver, self._browser = await self._launcher(self.config.stealth)
        except Exception as exc:
            self._driver, self._browser = None, None
            raise BrowserLaunchError(f"Could not launch browser: {exc}") from exc
        return self._browser

    async def new_page(self) -> Page:
        """Open a fresh stealth-configured context and return its first page."""
        browser = await self.acquire()
        st = self.config.stealth
        context = await browser.new_context(
            viewport={"width": st.viewport_width, "height": st.viewport_height},
            user_agent=st.user_agent,
            locale=st.locale,
        )
        await context.add_init_script(stealth_script(st.languages))
        context.set_default_navigation_timeout(self.config.timeouts.navigation_s * 1000)
        return await context.new_page()

    async def release(self) -> None:
        """Close and forget the browser. Safe to call any number of times."""
        browser, driver = self._browser, self._driver
        self._browser, self._driver = None, None
        if browser is not None:
            logger.info("Closing browser")
            with contextlib.suppress(PlaywrightError):
                await browser.close()
        if driver is not None:
            with contextlib.suppress(PlaywrightError):
                await driver.stop()

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.release()

    # ---------------------- TURNS ----------------------
    @contextlib.asynccontextmanager
    async def exclusive_turn(self) -> AsyncIterator[None]:
        await self.turns.wait_for_turn()
        try:
            yield
        finally:
            self.turns.release_turn()

    async def with_exclusive_turn(self, op: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run ``op`` once every earlier caller has finished, then let the next one in."""
        async with self.exclusive_turn():
            return await op(*args, **kwargs)
