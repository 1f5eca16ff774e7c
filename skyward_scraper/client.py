# skyward_scraper/client.py
"""
Public entry points.

Every call waits for its turn on the session's FIFO gate, so two requests
never drive the shared browser at the same time. None of these methods
raise: failures come back as unsuccessful results, and after a failure the
browser is torn down so the next caller starts clean. Credentials are only
held for the duration of one call and are scrubbed from every result.
"""
from __future__ import annotations

import contextlib
import logging
from typing import Optional, Tuple

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError

from .config import ScraperConfig
from .debug import DebugRecorder
from .models import ConnectionResult, CourseDetailsResult, ScrapeResult
from .normalizer import (
    build_scrape_result,
    connection_failure,
    connection_success,
    details_failure,
    details_success,
    scrape_failure,
    scrub_credentials,
    scrub_text,
)
from .portals import get_portal
from .portals.base import PortalEngine
from .session import BrowserSession
from .waits import Clock

logger = logging.getLogger(__name__)


class SkywardClient:
    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        session: Optional[BrowserSession] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or ScraperConfig()
        self.session = session or BrowserSession(self.config, clock=clock)
        self.clock = clock

    async def __aenter__(self) -> "SkywardClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ---------------------- PUBLIC ----------------------
    async def scrape_grades(self, username: str, password: str) -> ScrapeResult:
        result = await self.session.with_exclusive_turn(self._scrape_grades, username, password)
        return scrub_credentials(result, (username, password))

    async def scrape_course_details(self, username: str, password: str, course_name: str) -> CourseDetailsResult:
        result = await self.session.with_exclusive_turn(self._course_details, username, password, course_name)
        return scrub_credentials(result, (username, password))

    async def test_connection(self, username: str, password: str) -> ConnectionResult:
        result = await self.session.with_exclusive_turn(self._test_connection, username, password)
        return scrub_credentials(result, (username, password))

    async def close(self) -> None:
        await self.session.release()

    # ---------------------- PIPELINES ----------------------
    async def _start(self, username: str, password: str) -> PortalEngine:
        Engine = get_portal(self.config.portal)
        page = await self.session.new_page()
        return Engine(page, username, password, config=self.config, clock=self.clock, recorder=DebugRecorder(self.config))

    async def _close_context(self, page: Optional[Page]) -> None:
        if page is None:
            return
        with contextlib.suppress(PlaywrightError):
            await page.context.close()

    async def _fail(self, exc: Exception, what: str, engine: Optional[PortalEngine], secrets: Tuple[str, str]) -> None:
        logger.error("%s failed: %s: %s", what, type(exc).__name__, scrub_text(str(exc), list(secrets)))
        try:
            if engine is not None:
                await engine.recorder.screenshot(engine.page, "error")
            await self.session.release()
        except Exception as cleanup_exc:
            logger.warning("Cleanup after failed %s also failed: %s", what.lower(), cleanup_exc)

    async def _scrape_grades(self, username: str, password: str) -> ScrapeResult:
        engine: Optional[PortalEngine] = None
        try:
            engine = await self._start(username, password)
            await engine.login()
            extraction = await engine.fetch_grades()
            await self._close_context(engine.page)
        except Exception as exc:
            await self._fail(exc, "Grade scrape", engine, (username, password))
            return scrape_failure(exc)
        logger.info(
            "Grade scrape finished: %d courses via %s", len(extraction.courses), extraction.strategy or "no strategy"
        )
        return build_scrape_result(extraction)

    async def _course_details(self, username: str, password: str, course_name: str) -> CourseDetailsResult:
        engine: Optional[PortalEngine] = None
        try:
            engine = await self._start(username, password)
            await engine.login()
            details = await engine.fetch_course_details(course_name)
            await self._close_context(engine.page)
        except Exception as exc:
            await self._fail(exc, "Course details", engine, (username, password))
            return details_failure(exc)
        return details_success(details)

    async def _test_connection(self, username: str, password: str) -> ConnectionResult:
        engine: Optional[PortalEngine] = None
        try:
            engine = await self._start(username, password)
            await engine.login()
            await self._close_context(engine.page)
        except Exception as exc:
            await self._fail(exc, "Connection test", engine, (username, password))
            return connection_failure(exc)
        return connection_success()
